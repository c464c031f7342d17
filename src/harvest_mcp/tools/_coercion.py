"""Typed access to tool arguments after schema validation."""

from __future__ import annotations

import re
from collections.abc import Mapping

from harvest_mcp.tools.base import InputValidationError

# ``re.search`` with ``$`` accepts a trailing newline and ``\d`` accepts
# non-ASCII digits, so the schema pattern alone is not enough.
_SPENT_DATE_RE = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")


def coerce_id(payload: Mapping[str, object], field: str) -> int:
    """Return ``payload[field]`` as a positive integer identifier."""
    value = payload[field]
    if isinstance(value, bool):
        raise InputValidationError(f"Invalid input: {field}: expected integer, got boolean")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if not isinstance(value, int):
        raise InputValidationError(
            f"Invalid input: {field}: expected integer, got {type(value).__name__}"
        )
    if value < 1:
        raise InputValidationError(f"Invalid input: {field}: {value} is less than the minimum of 1")
    return value


def coerce_spent_date(value: object) -> str:
    """Return ``value`` if it is exactly ``YYYY-MM-DD`` in ASCII digits."""
    if not isinstance(value, str) or _SPENT_DATE_RE.fullmatch(value) is None:
        raise InputValidationError(
            f"Invalid input: spent_date: {value!r} is not a date in YYYY-MM-DD format"
        )
    return value


def optional_spent_date(payload: Mapping[str, object]) -> str | None:
    value = payload.get("spent_date")
    if value is None:
        return None
    return coerce_spent_date(value)
