from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

from harvest_mcp import app as app_module
from harvest_mcp import config
from harvest_mcp.app import AppContext, build_app_context
from harvest_mcp.config import HarvestSettings, Settings
from harvest_mcp.credentials import EnvCredentialProvider

API_BASE = "https://api.harvest.test/v2"
ACCOUNT_ID = "acct-98765"
ACCESS_TOKEN = "tok-secret-abc123"
TODAY = "2026-10-18"

Route = httpx.Response | Callable[[httpx.Request], httpx.Response]


class FakeHarvest:
    """Routes requests by method and path, recording everything it receives."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self._routes: dict[tuple[str, str], list[Route]] = {}

    def add(self, method: str, path: str, *responses: Route) -> None:
        """Queue responses for a route. The last one repeats once the queue drains."""
        self._routes.setdefault((method.upper(), "/v2" + path), []).extend(responses)

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        queue = self._routes.get((request.method, request.url.path))
        if not queue:
            return httpx.Response(404, json={"message": "Not found"})
        route = queue.pop(0) if len(queue) > 1 else queue[0]
        if callable(route):
            return route(request)
        # Fresh copy per request; a response object is consumed once sent.
        return httpx.Response(route.status_code, headers=route.headers, content=route.content)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.method == method and r.url.path == "/v2" + path
        ]


def time_entry(
    entry_id: int = 1,
    hours: float | None = 1.0,
    notes: str | None = "Feature work",
    project: str = "Website Redesign",
    task: str = "Development",
    spent_date: str = TODAY,
    is_running: bool = False,
) -> dict[str, object]:
    return {
        "id": entry_id,
        "spent_date": spent_date,
        "hours": hours,
        "notes": notes,
        "is_running": is_running,
        "project": {"id": 12345, "name": project},
        "task": {"id": 67890, "name": task},
    }


def project_assignment(
    assignment_id: int,
    project_id: int | None,
    name: str | None = "Website Redesign",
    is_active: bool = True,
    client: str | None = "Acme Corp",
    tasks: list[dict[str, object]] | None = None,
) -> dict[str, object]:
    return {
        "id": assignment_id,
        "is_active": is_active,
        "budget": 1000.0,
        "project": {"id": project_id, "name": name, "code": "WR"},
        "client": {"id": 7, "name": client} if client else None,
        "task_assignments": tasks or [],
    }


def task_assignment(
    task_id: int, name: str, is_active: bool = True, hourly_rate: float | None = 150.0
) -> dict[str, object]:
    return {
        "id": task_id * 10,
        "is_active": is_active,
        "billable": True,
        "hourly_rate": hourly_rate,
        "task": {"id": task_id, "name": name},
    }


@pytest.fixture(autouse=True)
def _reset_caches() -> None:
    config._load_settings_cached.cache_clear()
    app_module.get_app_context.cache_clear()
    yield
    config._load_settings_cached.cache_clear()
    app_module.get_app_context.cache_clear()


@pytest.fixture
def credentials_env() -> dict[str, str]:
    return {"HARVEST_ACCOUNT_ID": ACCOUNT_ID, "HARVEST_ACCESS_TOKEN": ACCESS_TOKEN}


@pytest.fixture
def fake_harvest() -> FakeHarvest:
    return FakeHarvest()


@pytest.fixture
def settings() -> Settings:
    return Settings(harvest=HarvestSettings(api_base=API_BASE, timezone="UTC"))


@pytest.fixture
def app_ctx(
    monkeypatch: pytest.MonkeyPatch,
    settings: Settings,
    credentials_env: dict[str, str],
    fake_harvest: FakeHarvest,
) -> AppContext:
    ctx = build_app_context(
        settings,
        EnvCredentialProvider(credentials_env),
        transport=httpx.MockTransport(fake_harvest.handler),
    )
    monkeypatch.setattr("harvest_mcp.tools.harvest_tools.get_app_context", lambda: ctx)
    monkeypatch.setattr("harvest_mcp.tools.harvest_tools.today_iso", lambda _tz=None: TODAY)
    return ctx
