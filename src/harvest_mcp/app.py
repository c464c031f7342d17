"""Application context assembly."""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from harvest_mcp.config import Settings, load_settings
from harvest_mcp.credentials import EnvCredentialProvider
from harvest_mcp.harvest.client import HarvestClient
from harvest_mcp.middleware.throttle import WriteThrottle


@dataclass
class AppContext:
    """Application-wide dependency container.

    Holds the single Harvest client and the single write throttle shared by
    every tool handler. Initialized once and cached for the lifetime of the
    process.
    """

    settings: Settings
    credentials: EnvCredentialProvider
    client: HarvestClient
    throttle: WriteThrottle

    def secrets(self) -> tuple[str, ...]:
        return self.credentials.secrets()


def build_app_context(
    settings: Settings,
    credentials: EnvCredentialProvider | None = None,
    **client_kwargs: object,
) -> AppContext:
    credentials = credentials or EnvCredentialProvider()
    return AppContext(
        settings=settings,
        credentials=credentials,
        client=HarvestClient(settings.harvest, credentials, **client_kwargs),
        throttle=WriteThrottle(
            limit=settings.throttle.limit,
            window_seconds=settings.throttle.window_seconds,
        ),
    )


@lru_cache(maxsize=1)
def get_app_context() -> AppContext:
    """Get or create the application context."""
    return build_app_context(load_settings())
