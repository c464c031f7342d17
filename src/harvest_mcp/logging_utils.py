"""Logging helpers for the Harvest MCP server.

stdout carries the MCP stdio channel, so every handler writes to stderr or a file.
"""

from __future__ import annotations

import logging
import sys
import threading
from pathlib import Path

from fastmcp.exceptions import ToolError

from harvest_mcp.config import load_settings

_LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DATE_FORMAT = "%Y-%m-%dT%H:%M:%S"

# FastMCP logs every ToolError raised by a tool with a traceback at ERROR.
FASTMCP_TOOL_LOGGER = "fastmcp.fastmcp.tools.tool_manager"

_logging_configured = False
_logging_lock = threading.Lock()

_logger = logging.getLogger(__name__)


class ToolErrorEnvelopeFilter(logging.Filter):
    """Drop tracebacks for ToolErrors raised from a handler's error result.

    The handler has already logged the failure. A ToolError chained from
    another exception is an unexpected failure and is kept.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        exc = record.exc_info[1] if record.exc_info else None
        return not (isinstance(exc, ToolError) and exc.__cause__ is None)


_tool_error_filter = ToolErrorEnvelopeFilter()


def configure_logging() -> None:
    """Configure structured logging for the server."""
    global _logging_configured

    settings = load_settings()
    level = getattr(logging, settings.logging.level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []

    stream_handler = logging.StreamHandler(sys.stderr)
    stream_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
    handlers.append(stream_handler)

    if settings.logging.file:
        try:
            Path(settings.logging.file).parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(settings.logging.file)
            file_handler.setFormatter(logging.Formatter(_LOG_FORMAT, datefmt=_DATE_FORMAT))
            handlers.append(file_handler)
        except OSError as exc:
            _logger.warning("Failed to open log file %s: %s", settings.logging.file, exc)

    logging.basicConfig(level=level, handlers=handlers, force=True)
    # httpx logs every request line at INFO.
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
    logging.getLogger(FASTMCP_TOOL_LOGGER).addFilter(_tool_error_filter)

    _logging_configured = True


def get_logger(name: str) -> logging.Logger:
    if not _logging_configured:
        with _logging_lock:
            if not _logging_configured:
                configure_logging()
    return logging.getLogger(name)
