from __future__ import annotations

import pytest

from harvest_mcp import config


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    monkeypatch.setattr(config, "load_dotenv", lambda **_: None)
    for key in config.ENV_KEYS.values():
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


def test_defaults(clean_env: pytest.MonkeyPatch) -> None:
    settings = config.load_settings()

    assert settings.harvest.api_base == "https://api.harvestapp.com/v2"
    assert settings.harvest.request_timeout_seconds == 30.0
    assert settings.harvest.get_retries == 1
    assert settings.harvest.page_size == 100
    assert settings.harvest.timezone is None
    assert settings.throttle.limit == 30
    assert settings.throttle.window_seconds == 60.0
    assert settings.logging.level == "INFO"
    assert settings.logging.file is None


def test_env_overrides(clean_env: pytest.MonkeyPatch) -> None:
    clean_env.setenv("HARVEST_API_BASE", "https://harvest.internal/v2/")
    clean_env.setenv("HARVEST_PAGE_SIZE", "50")
    clean_env.setenv("HARVEST_TIMEZONE", "Europe/Berlin")
    clean_env.setenv("HARVEST_WRITE_LIMIT", "5")
    clean_env.setenv("HARVEST_WRITE_WINDOW_SECONDS", "10")
    clean_env.setenv("LOG_LEVEL", "DEBUG")

    settings = config.load_settings()

    assert settings.harvest.api_base == "https://harvest.internal/v2"
    assert settings.harvest.page_size == 50
    assert settings.harvest.timezone == "Europe/Berlin"
    assert settings.throttle.limit == 5
    assert settings.throttle.window_seconds == 10.0
    assert settings.logging.level == "DEBUG"


def test_settings_are_cached(clean_env: pytest.MonkeyPatch) -> None:
    assert config.load_settings() is config.load_settings()


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("HARVEST_TIMEZONE", "Mars/Olympus_Mons"),
        ("HARVEST_API_BASE", "ftp://api.harvestapp.com/v2"),
        ("HARVEST_WRITE_LIMIT", "0"),
        ("HARVEST_REQUEST_TIMEOUT_SECONDS", "-1"),
    ],
)
def test_invalid_values_raise_runtime_error(
    clean_env: pytest.MonkeyPatch, key: str, value: str
) -> None:
    clean_env.setenv(key, value)

    with pytest.raises(RuntimeError, match="Invalid configuration"):
        config.load_settings()


def test_resolve_path_absolute_inside_project() -> None:
    root = str(config._project_root().resolve())
    absolute = f"{root}/logs/harvest.log"
    assert config._resolve_path(absolute) == absolute


def test_resolve_path_absolute_outside_project_rejected() -> None:
    with pytest.raises(ValueError, match="Path traversal detected"):
        config._resolve_path("/tmp/example")


def test_env_int_uses_default_for_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_INT_VALUE", "")
    assert config._env_int("TEST_INT_VALUE", 7) == 7


def test_env_int_invalid_value_returns_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_INT_INVALID", "not_a_number")
    assert config._env_int("TEST_INT_INVALID", 42) == 42


def test_env_float_invalid_value_returns_default(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TEST_FLOAT_INVALID", "not_a_float")
    assert config._env_float("TEST_FLOAT_INVALID", 2.5) == 2.5
