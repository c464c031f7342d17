"""Aggregate paged Harvest collection endpoints into a single list."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import TYPE_CHECKING

from harvest_mcp.harvest.models import ResponseDecodeError

if TYPE_CHECKING:
    from harvest_mcp.harvest.client import HarvestClient

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 100


async def collect_pages(
    client: "HarvestClient",
    path: str,
    key: str,
    params: Mapping[str, object] | None = None,
    per_page: int = DEFAULT_PER_PAGE,
) -> list[object]:
    """Fetch every page of ``path`` and concatenate the ``key`` arrays.

    Pages are requested sequentially starting at page 1 and following the
    ``next_page`` value Harvest returns until it is null. Server order is kept.
    """
    items: list[object] = []
    page: int | None = 1
    while page is not None:
        query: dict[str, object] = dict(params or {})
        query["page"] = page
        query["per_page"] = per_page
        body = await client.get(path, params=query)

        records = body.get(key)
        if not isinstance(records, list):
            raise ResponseDecodeError(f"Response from {path} is missing the '{key}' array")
        items.extend(records)
        logger.debug("Fetched %s page %d (%d records)", path, page, len(records))

        page = _next_page(body)
    return items


def _next_page(body: Mapping[str, object]) -> int | None:
    value = body.get("next_page")
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, int):
        raise ResponseDecodeError(f"Invalid next_page value: {value!r}")
    return value
