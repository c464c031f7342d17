"""Tool registration helpers.

This module registers the seven Harvest tools:
- list_projects, list_project_tasks, get_todays_time (read)
- log_time, start_timer, stop_timer, update_time_entry (write, throttled)
"""

from __future__ import annotations

from harvest_mcp.logging_utils import get_logger
from harvest_mcp.mcp_runtime import MCPServer, ToolSpec
from harvest_mcp.tools.harvest_tools import (
    get_todays_time_tool,
    list_project_tasks_tool,
    list_projects_tool,
    log_time_tool,
    start_timer_tool,
    stop_timer_tool,
    update_time_entry_tool,
)

__all__ = ["get_tool_registry", "get_tool_specs", "register_tools"]


def get_tool_specs() -> list[ToolSpec]:
    return [
        list_projects_tool,
        list_project_tasks_tool,
        log_time_tool,
        get_todays_time_tool,
        start_timer_tool,
        stop_timer_tool,
        update_time_entry_tool,
    ]


def get_tool_registry() -> dict[str, ToolSpec]:
    return {tool.name: tool for tool in get_tool_specs()}


def register_tools(server: MCPServer) -> None:
    """Register the Harvest tools with the MCP server."""
    logger = get_logger(__name__)

    specs = get_tool_specs()
    for tool in specs:
        server.add_tool(tool)

    logger.info("Registered %d tools: %s", len(specs), ", ".join(t.name for t in specs))
