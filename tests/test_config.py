from __future__ import annotations

from pathlib import Path

import pytest

from discord_archiver import config
from discord_archiver.config import ConfigurationError, load_settings

_ENV = {
    "DISCORD_TOKEN": "tok",
    "USER_AGENT": "agent/1.0",
    "ACCEPT_LANGUAGE": "en-US,en;q=0.5",
    "DISCORD_LOCALE": "en-US",
    "DISCORD_TIMEZONE": "Europe/Paris",
    "X_SUPER_PROPERTIES": "e30=",
    "DISCORD_COOKIES": "__dcfduid=abc",
    "REFERER": "https://discord.com/channels/@me",
    "API_BASE_URL": "https://discord.com/api/v9/",
}


def test_defaults_for_optional_settings() -> None:
    settings = load_settings(dict(_ENV))

    assert settings.api_base == "https://discord.com/api/v9"
    assert settings.output_dir == Path("output")
    assert settings.page_delay == 1.0
    assert settings.channel_delay == 1.0
    assert settings.api_timeout == 30.0


def test_optional_overrides_and_bad_numbers() -> None:
    env = dict(
        _ENV,
        OUTPUT_DIR="archive",
        DISCORD_PAGE_DELAY="0.25",
        DISCORD_CHANNEL_DELAY="soon",
        DISCORD_API_TIMEOUT="0.1",
    )

    settings = load_settings(env)

    assert settings.output_dir == Path("archive")
    assert settings.page_delay == 0.25
    assert settings.channel_delay == 1.0
    assert settings.api_timeout == 1.0


def test_every_missing_value_is_reported() -> None:
    env = dict(_ENV)
    del env["DISCORD_TOKEN"]
    env["REFERER"] = "   "

    with pytest.raises(ConfigurationError) as excinfo:
        load_settings(env)

    assert excinfo.value.missing == ["DISCORD_TOKEN", "REFERER"]
    assert "DISCORD_TOKEN" in str(excinfo.value)
    assert isinstance(excinfo.value, ValueError)


def test_headers_follow_configured_values() -> None:
    headers = load_settings(dict(_ENV)).headers()

    assert headers["Authorization"] == "tok"
    assert headers["User-Agent"] == "agent/1.0"
    assert headers["Cookie"] == "__dcfduid=abc"
    assert headers["X-Discord-Timezone"] == "Europe/Paris"
    assert headers["Host"] == headers["Alt-Used"] == "discord.com"


def test_process_environment_is_used_by_default(monkeypatch) -> None:
    monkeypatch.setattr(config, "_load_dotenv", lambda: None)
    for key, value in _ENV.items():
        monkeypatch.setenv(key, value)
    monkeypatch.setenv("OUTPUT_DIR", "from-env")

    assert load_settings().output_dir == Path("from-env")
