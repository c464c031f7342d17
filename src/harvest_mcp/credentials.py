"""Harvest credential resolution.

Credentials are read from the process environment on every outbound request
rather than captured once at startup, so a rotated token is picked up without
restarting the server. The only validation happens once, at startup, through
:meth:`EnvCredentialProvider.require`.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass

ACCOUNT_ID_ENV = "HARVEST_ACCOUNT_ID"
ACCESS_TOKEN_ENV = "HARVEST_ACCESS_TOKEN"
USER_AGENT_ENV = "HARVEST_USER_AGENT"

DEFAULT_USER_AGENT = "Harvest MCP Server (harvest-mcp@example.com)"


class MissingCredentialsError(RuntimeError):
    """Raised at startup when a mandatory Harvest credential is not set."""

    def __init__(self, missing: list[str]) -> None:
        super().__init__(
            f"Error: {' and '.join(missing)} must be set in environment or .env file"
        )
        self.missing = missing


@dataclass(frozen=True)
class HarvestCredentials:
    """Immutable snapshot of the credentials used for one request."""

    account_id: str
    access_token: str
    user_agent: str = DEFAULT_USER_AGENT

    def __repr__(self) -> str:
        return f"HarvestCredentials(account_id=***, access_token=***, user_agent={self.user_agent!r})"

    def secrets(self) -> tuple[str, ...]:
        return tuple(value for value in (self.access_token, self.account_id) if value)


class EnvCredentialProvider:
    """Resolve credentials from an environment mapping at call time."""

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        self._environ = environ if environ is not None else os.environ

    def current(self) -> HarvestCredentials:
        return HarvestCredentials(
            account_id=self._environ.get(ACCOUNT_ID_ENV, ""),
            access_token=self._environ.get(ACCESS_TOKEN_ENV, ""),
            user_agent=self._environ.get(USER_AGENT_ENV) or DEFAULT_USER_AGENT,
        )

    def require(self) -> HarvestCredentials:
        creds = self.current()
        missing = [
            name
            for name, value in (
                (ACCOUNT_ID_ENV, creds.account_id),
                (ACCESS_TOKEN_ENV, creds.access_token),
            )
            if not value
        ]
        if missing:
            raise MissingCredentialsError(missing)
        return creds

    def secrets(self) -> tuple[str, ...]:
        return self.current().secrets()
