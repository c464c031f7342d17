"""Configuration management for the Harvest MCP server."""

from __future__ import annotations

import logging
import os
from functools import lru_cache
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError, field_validator

_config_logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.harvestapp.com/v2"


class LoggingSettings(BaseModel):
    level: str = Field(default="INFO", description="Python logging level name")
    file: str | None = Field(default=None, description="Optional log file path")


class HarvestSettings(BaseModel):
    api_base: str = Field(default=DEFAULT_API_BASE)
    request_timeout_seconds: float = Field(default=30.0, gt=0, le=300)
    get_retries: int = Field(
        default=1,
        ge=0,
        le=5,
        description="Retries for GET requests on transport errors. Writes are never retried.",
    )
    page_size: int = Field(default=100, ge=1, le=2000)
    timezone: str | None = Field(
        default=None,
        description="IANA zone used to compute today's date. Host local time when unset.",
    )

    @field_validator("api_base")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value.startswith(("http://", "https://")):
            raise ValueError("api_base must use http or https")
        return value

    @field_validator("timezone")
    @classmethod
    def _validate_timezone(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        try:
            ZoneInfo(value.strip())
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone: {value!r}") from exc
        return value.strip()


class ThrottleSettings(BaseModel):
    limit: int = Field(default=30, ge=1, description="Write operations allowed per window")
    window_seconds: float = Field(default=60.0, gt=0)


class ServerSettings(BaseModel):
    instructions: str = Field(
        default=(
            "Use these tools to read and log time in Harvest. "
            "Call list_projects and list_project_tasks first to find valid IDs."
        )
    )


class Settings(BaseModel):
    server: ServerSettings = Field(default_factory=ServerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    harvest: HarvestSettings = Field(default_factory=HarvestSettings)
    throttle: ThrottleSettings = Field(default_factory=ThrottleSettings)


ENV_KEYS = {
    "instructions": "MCP_INSTRUCTIONS",
    "log_level": "LOG_LEVEL",
    "log_file": "LOG_FILE",
    "api_base": "HARVEST_API_BASE",
    "request_timeout": "HARVEST_REQUEST_TIMEOUT_SECONDS",
    "get_retries": "HARVEST_GET_RETRIES",
    "page_size": "HARVEST_PAGE_SIZE",
    "timezone": "HARVEST_TIMEZONE",
    "write_limit": "HARVEST_WRITE_LIMIT",
    "write_window": "HARVEST_WRITE_WINDOW_SECONDS",
}


def _project_root() -> Path:
    return Path(__file__).resolve().parents[2]


def _resolve_path(path: str) -> str:
    candidate = Path(path)
    root = _project_root().resolve()
    if candidate.is_absolute():
        resolved = candidate.resolve()
    else:
        resolved = (root / candidate).resolve()
    if not resolved.is_relative_to(root):
        raise ValueError(f"Path traversal detected: '{path}' resolves outside project root")
    return str(resolved)


def _env_int(key: str, default: int) -> int:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError:
        _config_logger.warning(
            "Invalid integer value for %s: %r, using default %d", key, value, default
        )
        return default


def _env_float(key: str, default: float) -> float:
    value = os.getenv(key)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        _config_logger.warning(
            "Invalid float value for %s: %r, using default %s", key, value, default
        )
        return default


def load_env_file() -> None:
    """Load ``.env`` from the project root without overriding the real environment."""
    load_dotenv(dotenv_path=_project_root() / ".env")


def load_settings() -> Settings:
    """Load configuration and cache the result."""

    return _load_settings_cached()


@lru_cache(maxsize=1)
def _load_settings_cached() -> Settings:
    load_env_file()
    log_file_env = os.getenv(ENV_KEYS["log_file"])

    settings_data: dict[str, object] = {
        "server": {
            "instructions": os.getenv(ENV_KEYS["instructions"], ServerSettings().instructions),
        },
        "logging": {
            "level": os.getenv(ENV_KEYS["log_level"], LoggingSettings().level),
            "file": _resolve_path(log_file_env) if log_file_env else None,
        },
        "harvest": {
            "api_base": os.getenv(ENV_KEYS["api_base"], HarvestSettings().api_base),
            "request_timeout_seconds": _env_float(
                ENV_KEYS["request_timeout"],
                HarvestSettings().request_timeout_seconds,
            ),
            "get_retries": _env_int(ENV_KEYS["get_retries"], HarvestSettings().get_retries),
            "page_size": _env_int(ENV_KEYS["page_size"], HarvestSettings().page_size),
            "timezone": os.getenv(ENV_KEYS["timezone"]),
        },
        "throttle": {
            "limit": _env_int(ENV_KEYS["write_limit"], ThrottleSettings().limit),
            "window_seconds": _env_float(
                ENV_KEYS["write_window"],
                ThrottleSettings().window_seconds,
            ),
        },
    }

    try:
        return Settings.model_validate(settings_data)
    except ValidationError as exc:
        raise RuntimeError(f"Invalid configuration: {exc}") from exc
