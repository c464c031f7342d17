from unittest.mock import patch

from harvest_mcp.app import AppContext, build_app_context, get_app_context
from harvest_mcp.config import Settings, ThrottleSettings
from harvest_mcp.credentials import EnvCredentialProvider


def test_build_app_context_wires_settings():
    settings = Settings(throttle=ThrottleSettings(limit=5, window_seconds=10))
    credentials = EnvCredentialProvider({"HARVEST_ACCOUNT_ID": "1", "HARVEST_ACCESS_TOKEN": "t"})

    ctx = build_app_context(settings, credentials)

    assert isinstance(ctx, AppContext)
    assert ctx.throttle.limit == 5
    assert ctx.throttle.window_seconds == 10
    assert ctx.client.page_size == 100
    assert ctx.secrets() == ("t", "1")


@patch("harvest_mcp.app.load_settings")
def test_get_app_context_is_cached(mock_load_settings):
    mock_load_settings.return_value = Settings()

    first = get_app_context()
    second = get_app_context()

    assert first is second
    assert first.client is second.client
    assert first.throttle is second.throttle
    mock_load_settings.assert_called_once()
