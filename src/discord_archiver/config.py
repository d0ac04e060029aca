from __future__ import annotations

import os
from collections.abc import Mapping
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from urllib.parse import urlparse

DEFAULT_OUTPUT_DIR = "output"
DEFAULT_PAGE_DELAY = 1.0
DEFAULT_CHANNEL_DELAY = 1.0
DEFAULT_API_TIMEOUT = 30.0

# environment variable -> settings field
REQUIRED_SETTINGS = (
    ("DISCORD_TOKEN", "token"),
    ("USER_AGENT", "user_agent"),
    ("ACCEPT_LANGUAGE", "accept_language"),
    ("DISCORD_LOCALE", "locale"),
    ("DISCORD_TIMEZONE", "timezone"),
    ("X_SUPER_PROPERTIES", "super_properties"),
    ("DISCORD_COOKIES", "cookies"),
    ("REFERER", "referer"),
    ("API_BASE_URL", "api_base"),
)


class ConfigurationError(ValueError):
    def __init__(self, missing: list[str]):
        self.missing = list(missing)
        super().__init__(
            "Missing required configuration: " + ", ".join(self.missing)
        )


@lru_cache(maxsize=1)
def _load_dotenv() -> None:
    from dotenv import find_dotenv, load_dotenv

    env_path = find_dotenv(usecwd=True)
    if env_path:
        load_dotenv(env_path, override=False)


def _parse_float(raw: str | None, *, default: float, minimum: float = 0.0) -> float:
    raw = (raw or "").strip()
    if not raw:
        return default
    try:
        return max(minimum, float(raw))
    except ValueError:
        return default


@dataclass(frozen=True)
class ArchiverSettings:
    token: str
    user_agent: str
    accept_language: str
    locale: str
    timezone: str
    super_properties: str
    cookies: str
    referer: str
    api_base: str
    output_dir: Path = Path(DEFAULT_OUTPUT_DIR)
    page_delay: float = DEFAULT_PAGE_DELAY
    channel_delay: float = DEFAULT_CHANNEL_DELAY
    api_timeout: float = DEFAULT_API_TIMEOUT

    @property
    def api_host(self) -> str:
        return urlparse(self.api_base).netloc

    def headers(self) -> dict[str, str]:
        """Headers sent with every API request, mirroring the web client."""
        return {
            "Content-Type": "application/json",
            "Host": self.api_host,
            "User-Agent": self.user_agent,
            "Accept": "*/*",
            "Accept-Language": self.accept_language,
            "Authorization": self.token,
            "X-Super-Properties": self.super_properties,
            "X-Discord-Locale": self.locale,
            "X-Discord-Timezone": self.timezone,
            "X-Debug-Options": "bugReporterEnabled",
            "Alt-Used": self.api_host,
            "Referer": self.referer,
            "Cookie": self.cookies,
            "Sec-Fetch-Dest": "empty",
            "Sec-Fetch-Mode": "cors",
            "Sec-Fetch-Site": "same-origin",
        }


def load_settings(env: Mapping[str, str] | None = None) -> ArchiverSettings:
    """Build settings from the environment.

    When ``env`` is omitted, a ``.env`` file found from the working directory
    is loaded first (without overriding variables that are already set) and
    ``os.environ`` is read. Every missing required value is reported at once.
    """
    if env is None:
        _load_dotenv()
        env = os.environ

    values: dict[str, str] = {}
    missing: list[str] = []
    for name, field_name in REQUIRED_SETTINGS:
        value = (env.get(name) or "").strip()
        if not value:
            missing.append(name)
            continue
        values[field_name] = value
    if missing:
        raise ConfigurationError(missing)

    values["api_base"] = values["api_base"].rstrip("/")
    output_dir = (env.get("OUTPUT_DIR") or "").strip() or DEFAULT_OUTPUT_DIR
    return ArchiverSettings(
        **values,
        output_dir=Path(output_dir),
        page_delay=_parse_float(
            env.get("DISCORD_PAGE_DELAY"), default=DEFAULT_PAGE_DELAY
        ),
        channel_delay=_parse_float(
            env.get("DISCORD_CHANNEL_DELAY"), default=DEFAULT_CHANNEL_DELAY
        ),
        api_timeout=_parse_float(
            env.get("DISCORD_API_TIMEOUT"), default=DEFAULT_API_TIMEOUT, minimum=1.0
        ),
    )
