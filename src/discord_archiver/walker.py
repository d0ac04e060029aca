from __future__ import annotations

import logging
from typing import Any, Protocol

import click

from .api import DiscordAPIError
from .models import Channel, ChannelExtractionResult, Guild, GuildExtractionRecord, Message
from .pager import ChannelPager
from .rate import DelayKind, RateGovernor

logger = logging.getLogger(__name__)


class ChannelListingSource(Protocol):
    def get_guild_channels(self, guild_id: str) -> list[dict[str, Any]]: ...


class GuildWalker:
    def __init__(
        self,
        client: ChannelListingSource,
        pager: ChannelPager,
        governor: RateGovernor,
    ):
        self.client = client
        self.pager = pager
        self.governor = governor

    def _list_channels(self, guild: Guild) -> list[Channel]:
        try:
            payload = self.client.get_guild_channels(guild.id)
        except DiscordAPIError as exc:
            logger.error("Error fetching channels for guild %s: %s", guild.id, exc)
            click.echo(f"   Error fetching channels: {exc}")
            payload = []
        return [Channel.from_payload(item) for item in payload]

    def walk(self, guild: Guild) -> GuildExtractionRecord:
        """Extract every eligible channel of ``guild`` in listing order."""
        channels = self._list_channels(guild)
        self.governor.wait(DelayKind.CHANNEL)

        record = GuildExtractionRecord(guild=guild)
        eligible = [ch for ch in channels if ch.is_eligible]
        click.echo(f"   Found {len(eligible)} text channels\n")

        for index, channel in enumerate(eligible, start=1):
            click.echo(f"   [{index}/{len(eligible)}] Channel: {channel.name}")
            raw_messages = self.pager.extract(channel.id)
            self.governor.wait(DelayKind.CHANNEL)
            record.channels.append(
                ChannelExtractionResult(
                    channel=channel,
                    messages=[Message.from_payload(raw) for raw in raw_messages],
                )
            )
        return record
