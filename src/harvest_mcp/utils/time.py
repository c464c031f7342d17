"""Time helpers."""

from __future__ import annotations

from datetime import date, datetime
from zoneinfo import ZoneInfo


def today(timezone: str | None = None) -> date:
    """Return the current calendar date in ``timezone``, or host local time."""
    if timezone:
        return datetime.now(tz=ZoneInfo(timezone)).date()
    return datetime.now().astimezone().date()


def today_iso(timezone: str | None = None) -> str:
    return today(timezone).isoformat()
