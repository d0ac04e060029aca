from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Protocol

import click

from .archive import ArchiveWriter
from .gate import InteractiveGate
from .models import Guild, GuildExtractionRecord
from .walker import GuildWalker

GUILD_PROMPT = "   Extract messages from this server? (y/N): "
RULE = "─" * 50


class GuildListingSource(Protocol):
    def get_user_guilds(self) -> list[Any]: ...


@dataclass
class RunSummary:
    total: int = 0
    records: list[GuildExtractionRecord] = field(default_factory=list)
    snapshots: list[Path] = field(default_factory=list)
    guild_listing: Path | None = None

    @property
    def processed(self) -> int:
        return len(self.records)


class Orchestrator:
    def __init__(
        self,
        client: GuildListingSource,
        gate: InteractiveGate,
        walker: GuildWalker,
        writer: ArchiveWriter,
    ):
        self.client = client
        self.gate = gate
        self.walker = walker
        self.writer = writer

    def _fetch_guilds(self, summary: RunSummary) -> list[Guild]:
        click.echo("Fetching your Discord servers...\n")
        payload = self.client.get_user_guilds()
        summary.guild_listing = self.writer.write_guild_listing(payload)

        guilds = [Guild.from_payload(item) for item in payload if isinstance(item, dict)]
        click.echo(f"Found {len(guilds)} servers:\n")
        for index, guild in enumerate(guilds, start=1):
            click.echo(f"{index}. {guild.name}")
            click.echo(f"   ID: {guild.id}")
            click.echo(f"   Owner: {'Yes' if guild.owner else 'No'}")
            click.echo("")
        return guilds

    def run(self) -> RunSummary:
        """Prompt for each accessible guild and archive the ones accepted.

        A snapshot of every record gathered so far is written after each
        guild. API errors on the guild listing and write errors propagate.
        """
        summary = RunSummary()
        if self.writer.ensure_output_dir():
            click.echo(f"Created output directory: {self.writer.output_dir}\n")

        guilds = self._fetch_guilds(summary)
        summary.total = len(guilds)
        if not guilds:
            click.echo("No servers found!")
            return summary

        click.echo(RULE)
        click.echo("\nNow processing each server...\n")

        for index, guild in enumerate(guilds, start=1):
            click.echo(f"\n[{index}/{len(guilds)}] Server: {guild.name}")
            if not self.gate.ask(GUILD_PROMPT).proceeds:
                click.echo("   Skipped\n")
                continue

            click.echo("   Starting extraction...\n")
            record = self.walker.walk(guild)
            summary.records.append(record)
            snapshot = self.writer.persist(summary.records)
            summary.snapshots.append(snapshot)

            click.echo(
                f"   Extracted {record.total_messages} total messages from {guild.name}"
            )
            click.echo(f"   Saved to: {snapshot}\n")

        click.echo(RULE)
        click.echo("\n=== Scraping Complete! ===")
        click.echo(f"Total servers processed: {summary.processed}/{summary.total}")
        return summary
