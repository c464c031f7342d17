"""Error formatting for tool responses and log lines.

Two independent formatters, both total:

``format_user_error``
    The text an assistant sees when a Harvest call fails. Status-code aware,
    with a remediation hint for permission errors.

``format_log_safe_error``
    The text written to logs. Reads only an allow-list of fields. An httpx
    exception carries the outgoing request, headers included, so neither the
    request nor the exception's attributes are ever serialized wholesale.
"""

from __future__ import annotations

import errno
from collections.abc import Iterable, Mapping

import httpx

from harvest_mcp.utils.masking import mask_secrets

PERMISSION_DENIED = 403

PERMISSION_HINT = (
    "Permission denied: this operation may require admin access. "
    "Use identity-scoped endpoints such as /users/me/project_assignments "
    "and verify HARVEST_ACCOUNT_ID is correct."
)

_UPSTREAM_MESSAGE_KEYS = ("message", "error_description", "error")
_MAX_CAUSE_DEPTH = 5


def format_user_error(
    exc: object,
    source: str = "Harvest API",
    secrets: Iterable[str] = (),
) -> str:
    """Build the user-facing description of a failed upstream call."""
    try:
        status = _status_code(exc)
        message = _upstream_message(exc) or _fallback_message(exc)
        if status is None:
            text = f"{source} error: {message}"
        else:
            text = f"{source} error ({status}): {message}"
        if status == PERMISSION_DENIED:
            text = f"{text.rstrip('.')}. {PERMISSION_HINT}"
    except Exception:  # pragma: no cover - formatter must never raise
        text = f"{source} error: {type(exc).__name__}"
    return mask_secrets(text, secrets)


def format_log_safe_error(exc: object, secrets: Iterable[str] = ()) -> str:
    """Build a credential-free one-line summary of ``exc`` for logging."""
    try:
        parts = [f"{type(exc).__name__}: {_top_level_message(exc)}"]
        status = _status_code(exc)
        if status is not None:
            parts.append(f"status={status}")
        upstream = _upstream_message(exc)
        if upstream:
            parts.append(f"upstream_message={upstream}")
        code = _transport_code(exc)
        if code:
            parts.append(f"code={code}")
        text = " | ".join(parts)
    except Exception:  # pragma: no cover - formatter must never raise
        text = type(exc).__name__
    return mask_secrets(text, secrets)


def _field(obj: object, name: str) -> object:
    if isinstance(obj, Mapping):
        return obj.get(name)
    return getattr(obj, name, None)


def _response_of(exc: object) -> httpx.Response | None:
    if isinstance(exc, httpx.HTTPStatusError):
        return exc.response
    response = _field(exc, "response")
    return response if isinstance(response, httpx.Response) else None


def _status_code(exc: object) -> int | None:
    response = _response_of(exc)
    if response is not None:
        return response.status_code
    for name in ("status_code", "status"):
        value = _field(exc, name)
        if isinstance(value, int) and not isinstance(value, bool):
            return value
    return None


def _upstream_message(exc: object) -> str | None:
    response = _response_of(exc)
    if response is None:
        return None
    try:
        body = response.json()
    except ValueError:
        return None
    if not isinstance(body, Mapping):
        return None
    for key in _UPSTREAM_MESSAGE_KEYS:
        value = body.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def _top_level_message(exc: object) -> str:
    if isinstance(exc, BaseException):
        return " ".join(str(exc).split()) or type(exc).__name__
    message = _field(exc, "message")
    return message if isinstance(message, str) else "<no message>"


def _fallback_message(exc: object) -> str:
    response = _response_of(exc)
    if response is not None:
        return response.reason_phrase or "Request failed"
    return _top_level_message(exc)


def _transport_code(exc: object) -> str | None:
    current: object = exc
    for _ in range(_MAX_CAUSE_DEPTH):
        if current is None:
            break
        if isinstance(current, OSError) and current.errno is not None:
            return errno.errorcode.get(current.errno, str(current.errno))
        code = _field(current, "code")
        if isinstance(code, str) and code:
            return code
        if not isinstance(current, BaseException):
            break
        current = current.__cause__ or current.__context__
    if isinstance(exc, httpx.TransportError):
        return type(exc).__name__
    return None
