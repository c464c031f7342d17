"""Input schemas for the Harvest tools."""

from __future__ import annotations

MAX_HOURS = 24
MAX_NOTES_LENGTH = 2000
DATE_PATTERN = r"^[0-9]{4}-[0-9]{2}-[0-9]{2}$"


def _id_field(description: str) -> dict[str, object]:
    return {"type": "integer", "minimum": 1, "description": description}


PROJECT_ID = _id_field("The ID of the project (from list_projects)")
TASK_ID = _id_field("The ID of the task (from list_project_tasks)")
TIME_ENTRY_ID = _id_field("The ID of the time entry")

SPENT_DATE = {
    "type": "string",
    "pattern": DATE_PATTERN,
    "description": "Date in YYYY-MM-DD format",
}

HOURS = {
    "type": "number",
    "minimum": 0,
    "maximum": MAX_HOURS,
    "description": "Number of hours (0-24, decimals allowed, e.g. 1.5)",
}

NOTES = {
    "type": "string",
    "maxLength": MAX_NOTES_LENGTH,
    "description": "Notes about the time entry",
}

EMPTY_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {},
    "additionalProperties": False,
}

LIST_PROJECT_TASKS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"project_id": PROJECT_ID},
    "required": ["project_id"],
    "additionalProperties": False,
}

LOG_TIME_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "project_id": PROJECT_ID,
        "task_id": TASK_ID,
        "spent_date": {
            **SPENT_DATE,
            "description": "Date in YYYY-MM-DD format (defaults to today)",
        },
        "hours": HOURS,
        "notes": NOTES,
    },
    "required": ["project_id", "task_id", "hours"],
    "additionalProperties": False,
}

START_TIMER_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "project_id": PROJECT_ID,
        "task_id": TASK_ID,
        "notes": {**NOTES, "description": "Notes about what you're working on"},
    },
    "required": ["project_id", "task_id"],
    "additionalProperties": False,
}

STOP_TIMER_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "time_entry_id": {**TIME_ENTRY_ID, "description": "The ID of the time entry to stop"},
    },
    "required": ["time_entry_id"],
    "additionalProperties": False,
}

UPDATE_TIME_ENTRY_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "time_entry_id": {**TIME_ENTRY_ID, "description": "The ID of the time entry to update"},
        "project_id": PROJECT_ID,
        "task_id": TASK_ID,
        "spent_date": SPENT_DATE,
        "hours": HOURS,
        "notes": NOTES,
    },
    "required": ["time_entry_id"],
    "additionalProperties": False,
}

UPDATABLE_FIELDS = ("project_id", "task_id", "spent_date", "hours", "notes")
