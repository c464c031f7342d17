"""Response contracts for the Harvest v2 endpoints this server uses.

Upstream bodies are decoded at the client boundary. A missing or ill-typed
required field raises :class:`ResponseDecodeError` instead of leaking ``None``
into tool output.
"""

from __future__ import annotations

from datetime import date
from typing import TypeVar

from pydantic import BaseModel, ValidationError

ModelT = TypeVar("ModelT", bound=BaseModel)


class ResponseDecodeError(ValueError):
    """Raised when a Harvest response does not match the expected shape."""


class NamedRef(BaseModel):
    id: int
    name: str


class ClientRef(BaseModel):
    id: int | None = None
    name: str | None = None


class ProjectRef(BaseModel):
    id: int | None = None
    name: str | None = None
    code: str | None = None


class TaskAssignment(BaseModel):
    id: int
    is_active: bool
    billable: bool | None = None
    hourly_rate: float | None = None
    task: NamedRef


class ProjectAssignment(BaseModel):
    id: int
    is_active: bool
    budget: float | None = None
    project: ProjectRef
    client: ClientRef | None = None
    task_assignments: list[TaskAssignment] = []


class TimeEntry(BaseModel):
    id: int
    spent_date: date
    hours: float | None = None
    notes: str | None = None
    is_running: bool = False
    project: NamedRef
    task: NamedRef


def decode(model: type[ModelT], payload: object) -> ModelT:
    """Validate one upstream object against ``model``."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ResponseDecodeError(
            f"Unexpected {model.__name__} response: {_summarize(exc)}"
        ) from exc


def decode_list(model: type[ModelT], items: list[object]) -> list[ModelT]:
    return [decode(model, item) for item in items]


def _summarize(exc: ValidationError) -> str:
    # Field paths only; input values may echo arbitrary upstream data.
    parts = []
    for error in exc.errors():
        loc = ".".join(str(p) for p in error.get("loc", ())) or "<root>"
        parts.append(f"{loc}: {error.get('msg', 'invalid')}")
    return "; ".join(parts)
