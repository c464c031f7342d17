"""
Harvest time-tracking tools.

This module provides seven tools:
- list_projects: Active projects the caller is assigned to
- list_project_tasks: Active tasks for one assigned project
- log_time: Create a completed time entry
- get_todays_time: Today's entries with a total
- start_timer: Create a running time entry
- stop_timer: Stop a running time entry
- update_time_entry: Patch selected fields of a time entry

Every handler returns a ``ToolResult`` envelope; upstream failures never
propagate out of a handler.
"""

from __future__ import annotations

import logging

import httpx

from harvest_mcp.app import AppContext, get_app_context
from harvest_mcp.harvest.models import ProjectAssignment, ResponseDecodeError, TimeEntry
from harvest_mcp.mcp_runtime import ToolResult, ToolSpec
from harvest_mcp.middleware.throttle import WriteRateLimitError
from harvest_mcp.tools._coercion import coerce_id, coerce_spent_date, optional_spent_date
from harvest_mcp.tools._schemas import (
    EMPTY_SCHEMA,
    LIST_PROJECT_TASKS_SCHEMA,
    LOG_TIME_SCHEMA,
    START_TIMER_SCHEMA,
    STOP_TIMER_SCHEMA,
    UPDATABLE_FIELDS,
    UPDATE_TIME_ENTRY_SCHEMA,
)
from harvest_mcp.tools.base import (
    InputValidationError,
    dump_json,
    error_result,
    text_result,
    validate_or_raise,
)
from harvest_mcp.utils.errors import format_log_safe_error, format_user_error
from harvest_mcp.utils.masking import mask_secrets
from harvest_mcp.utils.time import today_iso

logger = logging.getLogger(__name__)

UPSTREAM_ERRORS = (httpx.HTTPError, ResponseDecodeError)

NO_NOTES = "No notes"


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------

def _format_hours(hours: float | None) -> str:
    """Render hours without a trailing ``.0`` for whole numbers."""
    if hours is None:
        return "0"
    value = float(hours)
    if value.is_integer():
        return str(int(value))
    return repr(round(value, 6))


def _notes(entry: TimeEntry) -> str:
    return entry.notes or NO_NOTES


def _upstream_failure(ctx: AppContext, tool: str, action: str, exc: Exception) -> ToolResult:
    secrets = ctx.secrets()
    logger.warning("%s failed: %s", tool, format_log_safe_error(exc, secrets))
    return error_result(f"Error {action}: {format_user_error(exc, secrets=secrets)}")


def _throttled(tool: str, exc: WriteRateLimitError) -> ToolResult:
    logger.info("%s rejected by write throttle", tool)
    return error_result(str(exc))


def build_update_payload(payload: dict[str, object]) -> dict[str, object]:
    """Return only the updatable fields the caller explicitly supplied."""
    update: dict[str, object] = {}
    for field in UPDATABLE_FIELDS:
        if field not in payload:
            continue
        if field in ("project_id", "task_id"):
            update[field] = coerce_id(payload, field)
        elif field == "spent_date":
            update[field] = coerce_spent_date(payload[field])
        else:
            update[field] = payload[field]
    return update


def project_summary(assignment: ProjectAssignment) -> dict[str, object]:
    project = assignment.project
    return {
        "id": project.id,
        "name": project.name,
        "code": project.code,
        "client": (assignment.client.name if assignment.client else None) or "No client",
        # Not exposed on the identity-scoped endpoint.
        "is_billable": None,
        "budget": assignment.budget,
    }


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------

async def list_projects(payload: dict[str, object]) -> ToolResult:
    """List active projects from the caller's own project assignments."""
    try:
        validate_or_raise(EMPTY_SCHEMA, payload)
    except InputValidationError as exc:
        return error_result(str(exc))
    ctx = get_app_context()

    try:
        assignments = await ctx.client.list_project_assignments()
    except UPSTREAM_ERRORS as exc:
        return _upstream_failure(ctx, "list_projects", "fetching projects", exc)

    projects = [
        project_summary(a)
        for a in assignments
        if a.is_active and a.project.id is not None and a.project.name
    ]
    return text_result(dump_json(projects))


async def list_project_tasks(payload: dict[str, object]) -> ToolResult:
    """List active tasks for a project the caller is assigned to.

    The full assignment list is fetched before matching, so a project on a
    later page is never reported as missing.
    """
    try:
        validate_or_raise(LIST_PROJECT_TASKS_SCHEMA, payload)
        project_id = coerce_id(payload, "project_id")
    except InputValidationError as exc:
        return error_result(str(exc))
    ctx = get_app_context()

    try:
        assignments = await ctx.client.list_project_assignments()
    except UPSTREAM_ERRORS as exc:
        return _upstream_failure(ctx, "list_project_tasks", "fetching tasks", exc)

    assignment = next((a for a in assignments if a.project.id == project_id), None)
    if assignment is None:
        return error_result(
            f"No project assignment found for project_id {project_id}. "
            "You may not be assigned to this project. "
            "Use list_projects to see the projects available to you."
        )

    tasks = [
        {
            "id": ta.task.id,
            "name": ta.task.name,
            "is_active": ta.is_active,
            "billable": ta.billable,
            "hourly_rate": ta.hourly_rate,
        }
        for ta in assignment.task_assignments
        if ta.is_active
    ]
    return text_result(dump_json(tasks))


async def get_todays_time(payload: dict[str, object]) -> ToolResult:
    """Summarize today's time entries."""
    try:
        validate_or_raise(EMPTY_SCHEMA, payload)
    except InputValidationError as exc:
        return error_result(str(exc))
    ctx = get_app_context()
    today = today_iso(ctx.settings.harvest.timezone)

    try:
        entries = await ctx.client.list_time_entries(today, today)
    except UPSTREAM_ERRORS as exc:
        secrets = ctx.secrets()
        logger.warning("get_todays_time failed: %s", format_log_safe_error(exc, secrets))
        message = " ".join(str(exc).split()) or type(exc).__name__
        return error_result(f"Error fetching today's time: {mask_secrets(message, secrets)}")

    rows = [
        {
            "id": e.id,
            "project": e.project.name,
            "task": e.task.name,
            "hours": e.hours,
            "notes": e.notes,
            "is_running": e.is_running,
        }
        for e in entries
    ]
    total_hours = sum(e.hours or 0.0 for e in entries)
    return text_result(
        f"Today's time entries ({len(rows)} total, {total_hours:.2f} hours):\n\n"
        + dump_json(rows)
    )


# ---------------------------------------------------------------------------
# Write tools
# ---------------------------------------------------------------------------

async def log_time(payload: dict[str, object]) -> ToolResult:
    """Create a completed time entry."""
    try:
        validate_or_raise(LOG_TIME_SCHEMA, payload)
        project_id = coerce_id(payload, "project_id")
        task_id = coerce_id(payload, "task_id")
        spent_date = optional_spent_date(payload)
    except InputValidationError as exc:
        return error_result(str(exc))
    ctx = get_app_context()

    try:
        await ctx.throttle.check_or_raise()
    except WriteRateLimitError as exc:
        return _throttled("log_time", exc)

    body = {
        "project_id": project_id,
        "task_id": task_id,
        "spent_date": spent_date or today_iso(ctx.settings.harvest.timezone),
        "hours": payload["hours"],
        "notes": payload.get("notes") or "",
    }
    try:
        entry = await ctx.client.create_time_entry(body)
    except UPSTREAM_ERRORS as exc:
        return _upstream_failure(ctx, "log_time", "logging time", exc)

    logger.info("Logged time entry %d", entry.id)
    return text_result(
        f"Successfully logged {_format_hours(entry.hours)} hours to "
        f"{entry.project.name} - {entry.task.name}\n"
        f"Date: {entry.spent_date.isoformat()}\n"
        f"Notes: {_notes(entry)}\n"
        f"Entry ID: {entry.id}"
    )


async def start_timer(payload: dict[str, object]) -> ToolResult:
    """Start a running timer by creating an entry without hours."""
    try:
        validate_or_raise(START_TIMER_SCHEMA, payload)
        project_id = coerce_id(payload, "project_id")
        task_id = coerce_id(payload, "task_id")
    except InputValidationError as exc:
        return error_result(str(exc))
    ctx = get_app_context()

    try:
        await ctx.throttle.check_or_raise()
    except WriteRateLimitError as exc:
        return _throttled("start_timer", exc)

    body = {
        "project_id": project_id,
        "task_id": task_id,
        "spent_date": today_iso(ctx.settings.harvest.timezone),
        "notes": payload.get("notes") or "",
    }
    try:
        entry = await ctx.client.create_time_entry(body)
    except UPSTREAM_ERRORS as exc:
        return _upstream_failure(ctx, "start_timer", "starting timer", exc)

    logger.info("Started timer %d", entry.id)
    return text_result(
        f"Timer started for {entry.project.name} - {entry.task.name}\n"
        f"Entry ID: {entry.id}\n"
        f"Notes: {_notes(entry)}"
    )


async def stop_timer(payload: dict[str, object]) -> ToolResult:
    """Stop a running timer.

    No local state check: stopping an entry that is already stopped reports
    Harvest's own error.
    """
    try:
        validate_or_raise(STOP_TIMER_SCHEMA, payload)
        time_entry_id = coerce_id(payload, "time_entry_id")
    except InputValidationError as exc:
        return error_result(str(exc))
    ctx = get_app_context()

    try:
        await ctx.throttle.check_or_raise()
    except WriteRateLimitError as exc:
        return _throttled("stop_timer", exc)

    try:
        entry = await ctx.client.stop_time_entry(time_entry_id)
    except UPSTREAM_ERRORS as exc:
        return _upstream_failure(ctx, "stop_timer", "stopping timer", exc)

    logger.info("Stopped timer %d", entry.id)
    return text_result(
        f"Timer stopped. Logged {_format_hours(entry.hours)} hours to "
        f"{entry.project.name} - {entry.task.name}"
    )


async def update_time_entry(payload: dict[str, object]) -> ToolResult:
    """Patch only the fields the caller supplied.

    An update with no fields is rejected locally rather than sent as an
    empty PATCH.
    """
    try:
        validate_or_raise(UPDATE_TIME_ENTRY_SCHEMA, payload)
        time_entry_id = coerce_id(payload, "time_entry_id")
        update = build_update_payload(payload)
    except InputValidationError as exc:
        return error_result(str(exc))
    if not update:
        return error_result(
            "No fields to update. Provide at least one of: "
            + ", ".join(UPDATABLE_FIELDS)
            + "."
        )
    ctx = get_app_context()

    try:
        await ctx.throttle.check_or_raise()
    except WriteRateLimitError as exc:
        return _throttled("update_time_entry", exc)

    try:
        entry = await ctx.client.update_time_entry(time_entry_id, update)
    except UPSTREAM_ERRORS as exc:
        return _upstream_failure(ctx, "update_time_entry", "updating time entry", exc)

    logger.info("Updated time entry %d (%s)", entry.id, ", ".join(sorted(update)))
    return text_result(
        f"Successfully updated time entry {entry.id}\n"
        f"Project: {entry.project.name}\n"
        f"Task: {entry.task.name}\n"
        f"Hours: {_format_hours(entry.hours)}\n"
        f"Date: {entry.spent_date.isoformat()}\n"
        f"Notes: {_notes(entry)}"
    )


# ---------------------------------------------------------------------------
# Tool specs
# ---------------------------------------------------------------------------

list_projects_tool = ToolSpec(
    name="list_projects",
    description=(
        "List active projects you are assigned to in Harvest. "
        "Returns id, name, code, client and budget for each project."
    ),
    input_schema=EMPTY_SCHEMA,
    handler=list_projects,
)

list_project_tasks_tool = ToolSpec(
    name="list_project_tasks",
    description="List active tasks for a specific project you are assigned to.",
    input_schema=LIST_PROJECT_TASKS_SCHEMA,
    handler=list_project_tasks,
)

log_time_tool = ToolSpec(
    name="log_time",
    description=(
        "Log a completed time entry to Harvest. "
        "Required: 'project_id', 'task_id', 'hours' (0-24). "
        "Optional: 'spent_date' (YYYY-MM-DD, defaults to today), 'notes'."
    ),
    input_schema=LOG_TIME_SCHEMA,
    handler=log_time,
)

get_todays_time_tool = ToolSpec(
    name="get_todays_time",
    description="Get all of today's time entries with the total hours logged.",
    input_schema=EMPTY_SCHEMA,
    handler=get_todays_time,
)

start_timer_tool = ToolSpec(
    name="start_timer",
    description="Start a running timer for a project and task.",
    input_schema=START_TIMER_SCHEMA,
    handler=start_timer,
)

stop_timer_tool = ToolSpec(
    name="stop_timer",
    description="Stop a running timer by time entry ID.",
    input_schema=STOP_TIMER_SCHEMA,
    handler=stop_timer,
)

update_time_entry_tool = ToolSpec(
    name="update_time_entry",
    description=(
        "Update an existing time entry. Only the fields you provide are changed "
        "(project_id, task_id, spent_date, hours, notes)."
    ),
    input_schema=UPDATE_TIME_ENTRY_SCHEMA,
    handler=update_time_entry,
)
