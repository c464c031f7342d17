"""MCP runtime adapter on top of FastMCP."""

from __future__ import annotations

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any, cast

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool import ToolResult as FastToolResult
from mcp.types import TextContent
from pydantic import BaseModel, PrivateAttr


class ToolResult(BaseModel):
    """Uniform tool response envelope: text content plus an error flag."""

    content: list[dict[str, object]]
    is_error: bool = False

    @property
    def text(self) -> str:
        return "\n".join(str(item.get("text", "")) for item in self.content)


ToolHandler = Callable[[dict[str, object]], "ToolResult | Awaitable[ToolResult]"]


@dataclass
class ToolSpec:
    name: str
    description: str
    input_schema: dict[str, object]
    handler: ToolHandler


class SpecTool(Tool):
    """FastMCP tool that forwards raw arguments to a :class:`ToolSpec` handler.

    The handler validates its own input against ``parameters``. Error
    envelopes are raised as ``ToolError``, which the MCP layer reports with
    ``isError`` set and the same text.
    """

    _handler: ToolHandler = PrivateAttr()

    @classmethod
    def from_spec(cls, spec: ToolSpec) -> "SpecTool":
        tool = cls(
            name=spec.name,
            description=spec.description,
            parameters=spec.input_schema,
        )
        tool._handler = spec.handler
        return tool

    async def run(self, arguments: dict[str, Any]) -> FastToolResult:
        filtered = {k: v for k, v in (arguments or {}).items() if v is not None}
        result = await invoke_handler(self._handler, filtered)
        if result.is_error:
            raise ToolError(result.text)
        return FastToolResult(
            content=[
                TextContent(type="text", text=str(item.get("text", "")))
                for item in result.content
            ]
        )


async def invoke_handler(handler: ToolHandler, arguments: dict[str, object]) -> ToolResult:
    raw_result = handler(arguments)
    if _is_awaitable(raw_result):
        result = await cast(Awaitable[ToolResult], raw_result)
    else:
        result = cast(ToolResult, raw_result)
    if not isinstance(result, ToolResult):
        raise TypeError("Tool handler did not return ToolResult")
    return result


class MCPServer:
    """Registers :class:`ToolSpec` objects on a FastMCP server and runs it over stdio."""

    def __init__(self, name: str, version: str, instructions: str) -> None:
        self._server = FastMCP(name=name, version=version, instructions=instructions)
        self._tool_names: list[str] = []

    @property
    def tool_names(self) -> list[str]:
        return list(self._tool_names)

    def add_tool(self, tool: ToolSpec) -> None:
        self._server.add_tool(SpecTool.from_spec(tool))
        self._tool_names.append(tool.name)

    def run(self) -> None:
        self._server.run(transport="stdio")


def _is_awaitable(value: object) -> bool:
    try:
        return inspect.isawaitable(value)
    except TypeError:
        return False
