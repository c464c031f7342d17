"""Entrypoint for the Harvest MCP server."""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

if __package__ in (None, ""):
    sys.path.insert(0, str(Path(__file__).resolve().parents[1]))  # pragma: no cover

from harvest_mcp import __version__
from harvest_mcp.config import load_settings
from harvest_mcp.credentials import EnvCredentialProvider, MissingCredentialsError
from harvest_mcp.logging_utils import configure_logging
from harvest_mcp.mcp_runtime import MCPServer
from harvest_mcp.tools import register_tools
from harvest_mcp.utils.errors import format_log_safe_error

logger = logging.getLogger(__name__)

SERVER_NAME = "harvest-mcp-server"


def build_server() -> MCPServer:
    """Create and configure the MCP server instance."""

    settings = load_settings()

    server = MCPServer(
        name=SERVER_NAME,
        version=__version__,
        instructions=settings.server.instructions,
    )

    # Re-configure logging after FastMCP init so our stderr/file handlers win.
    configure_logging()

    logger.info("Initializing Harvest MCP Server v%s", __version__)
    register_tools(server)
    return server


def check_startup_credentials(provider: EnvCredentialProvider | None = None) -> None:
    """Exit with status 1 when a mandatory credential is missing."""
    provider = provider or EnvCredentialProvider()
    try:
        provider.require()
    except MissingCredentialsError as exc:
        print(str(exc), file=sys.stderr, flush=True)
        sys.exit(1)


def run_entrypoint() -> None:
    """Validate startup configuration, then serve MCP over stdio until EOF."""
    try:
        load_settings()
    except RuntimeError as exc:
        print(str(exc), file=sys.stderr, flush=True)
        sys.exit(1)

    provider = EnvCredentialProvider()
    check_startup_credentials(provider)

    try:
        server = get_server()
        logger.info("Harvest MCP Server v%s running on stdio", __version__)
        server.run()
    except KeyboardInterrupt:
        logger.info("Harvest MCP Server interrupted")
    except Exception as exc:
        logger.error(
            "Fatal error in main(): %s", format_log_safe_error(exc, provider.secrets())
        )
        sys.exit(1)


_server: MCPServer | None = None
_server_lock = threading.Lock()


def get_server() -> MCPServer:
    """Lazily initialise and return the module-level server instance."""
    global _server
    if _server is not None:
        return _server
    with _server_lock:
        if _server is None:
            _server = build_server()
        return _server


if __name__ == "__main__":  # pragma: no cover
    run_entrypoint()
