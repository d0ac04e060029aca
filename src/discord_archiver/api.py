from __future__ import annotations

from typing import Any

import requests

from .config import ArchiverSettings
from .runtime import verbose_log

MAX_PAGE_SIZE = 100


class DiscordAPIError(RuntimeError):
    def __init__(
        self,
        reason: str,
        *,
        path: str | None = None,
        status_code: int | None = None,
        detail: str | None = None,
    ):
        self.reason = reason
        self.path = path
        self.status_code = status_code
        message_by_reason = {
            "not_found": "Discord resource not found",
            "unauthorized": "Discord API authorization failed",
            "forbidden": "Discord API forbidden (insufficient permissions)",
            "http_error": "Discord API request failed",
            "transport": "Discord API request could not be sent",
            "invalid_payload": "Unexpected Discord API payload",
        }
        message = message_by_reason.get(reason, "Discord API request failed")
        if status_code is not None:
            message = f"{message} (status {status_code})"
        if path:
            message = f"{message}: {path}"
        if detail:
            message = f"{message} [{detail}]"
        super().__init__(message)

    @property
    def is_forbidden(self) -> bool:
        return self.reason == "forbidden"


def _reason_for_status(status_code: int) -> str:
    if status_code == 403:
        return "forbidden"
    if status_code == 401:
        return "unauthorized"
    if status_code == 404:
        return "not_found"
    return "http_error"


class DiscordClient:
    """Single-request-at-a-time client for the endpoints the archiver reads.

    Nothing is retried: any non-2xx status or transport failure surfaces as a
    ``DiscordAPIError`` for the caller to handle.
    """

    def __init__(self, settings: ArchiverSettings):
        self.settings = settings
        self._headers = settings.headers()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.settings.api_base}{path}"
        verbose_log(f"  GET {path} {params or ''}".rstrip())
        try:
            response = requests.get(
                url,
                headers=self._headers,
                params=params,
                timeout=self.settings.api_timeout,
            )
        except requests.RequestException as exc:
            raise DiscordAPIError(
                "transport", path=path, detail=type(exc).__name__
            ) from exc

        if not 200 <= response.status_code < 300:
            raise DiscordAPIError(
                _reason_for_status(response.status_code),
                path=path,
                status_code=response.status_code,
            )
        try:
            return response.json()
        except ValueError as exc:
            raise DiscordAPIError(
                "invalid_payload", path=path, status_code=response.status_code
            ) from exc

    def _get_list(self, path: str, params: dict[str, Any] | None = None) -> list:
        payload = self._get(path, params)
        if not isinstance(payload, list):
            raise DiscordAPIError("invalid_payload", path=path, detail="expected list")
        return payload

    def get_user_guilds(self) -> list[Any]:
        """Return the guild listing exactly as the server sent it."""
        return self._get_list("/users/@me/guilds")

    def get_guild_channels(self, guild_id: str) -> list[dict[str, Any]]:
        payload = self._get_list(f"/guilds/{guild_id}/channels")
        return [c for c in payload if isinstance(c, dict)]

    def get_messages_page(
        self,
        channel_id: str,
        *,
        limit: int = MAX_PAGE_SIZE,
        before: str | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {"limit": min(MAX_PAGE_SIZE, max(1, int(limit)))}
        if before:
            params["before"] = before
        payload = self._get_list(f"/channels/{channel_id}/messages", params)
        return [m for m in payload if isinstance(m, dict)]
