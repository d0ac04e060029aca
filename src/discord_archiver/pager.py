from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Protocol

import click

from .api import MAX_PAGE_SIZE, DiscordAPIError
from .gate import DecisionKind, InteractiveGate
from .rate import DelayKind, RateGovernor

logger = logging.getLogger(__name__)

DEFAULT_PROMPT_THRESHOLD = 1000
THRESHOLD_PROMPT = "      Extract all messages? (y/N, or enter a number to limit): "


class StopReason(str, Enum):
    EXHAUSTED = "exhausted"
    FORBIDDEN = "forbidden"
    TRANSPORT_ERROR = "transport_error"
    USER_LIMIT = "user_limit"
    USER_DECLINED = "user_declined"


class MessagePageSource(Protocol):
    def get_messages_page(
        self, channel_id: str, *, limit: int = ..., before: str | None = None
    ) -> list[dict[str, Any]]: ...


def _message_id(message: dict[str, Any]) -> str | None:
    raw = message.get("id")
    if raw is None:
        return None
    value = str(raw).strip()
    return value or None


def _oldest_id(page: list[dict[str, Any]]) -> str | None:
    for message in reversed(page):
        message_id = _message_id(message)
        if message_id is not None:
            return message_id
    return None


class ChannelPager:
    """Walks one channel's history backward, newest page first.

    Each page is requested with ``before`` set to the oldest id of the
    previous page. A page shorter than ``page_size`` ends the walk. The first
    time the accumulated count reaches ``prompt_threshold`` the operator is
    asked whether to continue, stop, or cap the channel at a number of
    messages; that question is asked at most once per channel.

    The per-channel state (``threshold_checked``, ``effective_limit``,
    ``stop_reason``, ``requests_made``) is reset by every ``extract`` call and
    stays readable afterwards.
    """

    def __init__(
        self,
        client: MessagePageSource,
        gate: InteractiveGate,
        governor: RateGovernor,
        *,
        page_size: int = MAX_PAGE_SIZE,
        prompt_threshold: int = DEFAULT_PROMPT_THRESHOLD,
    ):
        if not 1 <= page_size <= MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        self.client = client
        self.gate = gate
        self.governor = governor
        self.page_size = page_size
        self.prompt_threshold = prompt_threshold
        self._reset()

    def _reset(self) -> None:
        self.threshold_checked = False
        self.effective_limit: int | None = None
        self.stop_reason: StopReason | None = None
        self.requests_made = 0

    def _limit_reached(self, messages: list[dict[str, Any]]) -> bool:
        if self.effective_limit is None or len(messages) < self.effective_limit:
            return False
        del messages[self.effective_limit :]
        return True

    def _negotiate(self, messages: list[dict[str, Any]]) -> StopReason | None:
        self.threshold_checked = True
        click.echo(f"\n      Found {self.prompt_threshold}+ messages in this channel")
        decision = self.gate.ask(THRESHOLD_PROMPT)

        if decision.kind is DecisionKind.LIMIT:
            self.effective_limit = decision.limit
            click.echo(f"      Limiting to {decision.limit} messages\n")
            if self._limit_reached(messages):
                return StopReason.USER_LIMIT
            return None
        if decision.kind is DecisionKind.YES:
            click.echo("      Continuing to extract all messages...\n")
            return None
        click.echo(f"      Stopping at {len(messages)} messages\n")
        return StopReason.USER_DECLINED

    def _fetch_page(self, channel_id: str, cursor: str | None) -> list[dict[str, Any]]:
        self.requests_made += 1
        return self.client.get_messages_page(
            channel_id, limit=self.page_size, before=cursor
        )

    def extract(self, channel_id: str) -> list[dict[str, Any]]:
        self._reset()
        messages: list[dict[str, Any]] = []
        cursor: str | None = None
        seen_cursors: set[str] = set()
        seen_ids: set[str] = set()

        while True:
            try:
                page = self._fetch_page(channel_id, cursor)
            except DiscordAPIError as exc:
                if exc.is_forbidden:
                    logger.warning("No permission to read channel %s", channel_id)
                    click.echo("      No permission to read messages")
                    self.stop_reason = StopReason.FORBIDDEN
                else:
                    logger.error(
                        "Stopping channel %s after %d messages: %s",
                        channel_id,
                        len(messages),
                        exc,
                    )
                    self.stop_reason = StopReason.TRANSPORT_ERROR
                break

            if not page:
                self.stop_reason = StopReason.EXHAUSTED
                break

            fresh: list[dict[str, Any]] = []
            for message in page:
                message_id = _message_id(message)
                if message_id is None:
                    logger.warning("Skipping message without an id in channel %s", channel_id)
                elif message_id not in seen_ids:
                    seen_ids.add(message_id)
                    fresh.append(message)
            if not fresh:
                logger.warning("Channel %s returned no new messages; stopping", channel_id)
                self.stop_reason = StopReason.EXHAUSTED
                break

            messages.extend(fresh)
            click.echo(f"      Retrieved {len(messages)} messages...")

            next_cursor = _oldest_id(page)
            if next_cursor is None or next_cursor in seen_cursors:
                logger.warning(
                    "Channel %s has no usable cursor after %s; stopping", channel_id, cursor
                )
                self.stop_reason = StopReason.EXHAUSTED
                break
            seen_cursors.add(next_cursor)
            cursor = next_cursor

            if self._limit_reached(messages):
                self.stop_reason = StopReason.USER_LIMIT
                break

            if len(page) < self.page_size:
                self.stop_reason = StopReason.EXHAUSTED
                break

            if not self.threshold_checked and len(messages) >= self.prompt_threshold:
                stop = self._negotiate(messages)
                if stop is not None:
                    self.stop_reason = stop
                    break

            self.governor.wait(DelayKind.PAGE)

        if messages:
            click.echo(f"      Total: {len(messages)} messages")
        return messages
