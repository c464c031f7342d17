"""Async HTTP client for the Harvest v2 REST API."""

from __future__ import annotations

import logging
from collections.abc import Mapping

import httpx

from harvest_mcp.config import HarvestSettings
from harvest_mcp.credentials import EnvCredentialProvider
from harvest_mcp.harvest.models import (
    ProjectAssignment,
    ResponseDecodeError,
    TimeEntry,
    decode,
    decode_list,
)
from harvest_mcp.harvest.pagination import collect_pages

logger = logging.getLogger(__name__)


class HarvestClient:
    """Thin wrapper around ``httpx.AsyncClient`` bound to the Harvest base URL.

    Credentials are attached by a request event hook immediately before each
    request is sent, using whatever the provider resolves at that moment.
    GET requests are retried on transport errors; POST and PATCH never are,
    so a flaky connection cannot create a time entry twice.
    """

    def __init__(
        self,
        settings: HarvestSettings,
        credentials: EnvCredentialProvider,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._credentials = credentials
        self._http = httpx.AsyncClient(
            base_url=settings.api_base,
            headers={"Content-Type": "application/json"},
            timeout=settings.request_timeout_seconds,
            transport=transport,
            event_hooks={"request": [self._inject_credentials]},
        )

    @property
    def page_size(self) -> int:
        return self._settings.page_size

    async def _inject_credentials(self, request: httpx.Request) -> None:
        creds = self._credentials.current()
        request.headers["Authorization"] = f"Bearer {creds.access_token}"
        request.headers["Harvest-Account-Id"] = creds.account_id
        request.headers["User-Agent"] = creds.user_agent

    async def aclose(self) -> None:
        await self._http.aclose()

    async def get(
        self, path: str, params: Mapping[str, object] | None = None
    ) -> dict[str, object]:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: Mapping[str, object]) -> dict[str, object]:
        return await self._request("POST", path, json=json)

    async def patch(
        self, path: str, json: Mapping[str, object] | None = None
    ) -> dict[str, object]:
        return await self._request("PATCH", path, json=json)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: Mapping[str, object] | None = None,
        json: Mapping[str, object] | None = None,
    ) -> dict[str, object]:
        attempts = 1 + (self._settings.get_retries if method == "GET" else 0)
        attempt = 0
        while True:
            attempt += 1
            try:
                response = await self._http.request(
                    method,
                    path,
                    params=dict(params) if params is not None else None,
                    json=dict(json) if json is not None else None,
                )
                break
            except httpx.TransportError as exc:
                if attempt >= attempts:
                    raise
                logger.warning(
                    "%s %s failed with %s, retrying (%d/%d)",
                    method,
                    path,
                    type(exc).__name__,
                    attempt,
                    attempts - 1,
                )

        response.raise_for_status()
        try:
            body = response.json()
        except ValueError as exc:
            raise ResponseDecodeError(f"Response from {path} is not valid JSON") from exc
        if not isinstance(body, dict):
            raise ResponseDecodeError(f"Response from {path} is not a JSON object")
        return body

    # ------------------------------------------------------------------
    # Endpoint helpers
    # ------------------------------------------------------------------

    async def list_project_assignments(self) -> list[ProjectAssignment]:
        records = await collect_pages(
            self,
            "/users/me/project_assignments",
            "project_assignments",
            per_page=self.page_size,
        )
        return decode_list(ProjectAssignment, records)

    async def list_time_entries(self, from_date: str, to_date: str) -> list[TimeEntry]:
        records = await collect_pages(
            self,
            "/time_entries",
            "time_entries",
            params={"from": from_date, "to": to_date},
            per_page=self.page_size,
        )
        return decode_list(TimeEntry, records)

    async def create_time_entry(self, payload: Mapping[str, object]) -> TimeEntry:
        return decode(TimeEntry, await self.post("/time_entries", json=payload))

    async def update_time_entry(
        self, time_entry_id: int, payload: Mapping[str, object]
    ) -> TimeEntry:
        return decode(TimeEntry, await self.patch(f"/time_entries/{time_entry_id}", json=payload))

    async def stop_time_entry(self, time_entry_id: int) -> TimeEntry:
        return decode(TimeEntry, await self.patch(f"/time_entries/{time_entry_id}/stop"))
