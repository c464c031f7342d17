"""Tool helpers."""

from __future__ import annotations

import json

from harvest_mcp.mcp_runtime import ToolResult
from harvest_mcp.utils.jsonschema import validate_payload
from harvest_mcp.utils.serialization import json_default


class InputValidationError(ValueError):
    """Raised when tool arguments do not match the tool's input schema."""


def validate_or_raise(schema: dict[str, object], payload: dict[str, object]) -> None:
    errors = validate_payload(schema, payload)
    if errors:
        raise InputValidationError("Invalid input: " + "; ".join(errors))


def text_result(text: str) -> ToolResult:
    return ToolResult(content=[{"type": "text", "text": text}])


def error_result(text: str) -> ToolResult:
    return ToolResult(content=[{"type": "text", "text": text}], is_error=True)


def dump_json(value: object) -> str:
    return json.dumps(value, indent=2, ensure_ascii=False, default=json_default)
