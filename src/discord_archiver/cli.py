import logging
import time
from dataclasses import replace
from pathlib import Path

import click

from .api import DiscordAPIError, DiscordClient
from .archive import ArchiveWriter
from .config import ArchiverSettings, ConfigurationError, load_settings
from .gate import ConsoleGate, InteractiveGate
from .orchestrator import Orchestrator
from .pager import ChannelPager
from .rate import RateGovernor
from .runtime import reset_verbose_logging, set_verbose_logging
from .walker import GuildWalker


def build_orchestrator(
    settings: ArchiverSettings,
    *,
    gate: InteractiveGate | None = None,
    sleep=time.sleep,
) -> Orchestrator:
    gate = gate or ConsoleGate()
    client = DiscordClient(settings)
    governor = RateGovernor(
        page_delay=settings.page_delay,
        channel_delay=settings.channel_delay,
        sleep=sleep,
    )
    pager = ChannelPager(client, gate, governor)
    walker = GuildWalker(client, pager, governor)
    writer = ArchiveWriter(settings.output_dir)
    return Orchestrator(client, gate, walker, writer)


def _apply_overrides(settings, output_dir, page_delay, channel_delay):
    overrides = {}
    if output_dir:
        overrides["output_dir"] = Path(output_dir)
    if page_delay is not None:
        overrides["page_delay"] = page_delay
    if channel_delay is not None:
        overrides["channel_delay"] = channel_delay
    return replace(settings, **overrides) if overrides else settings


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False),
    default=None,
    help="Directory for guilds.json and snapshots (overrides OUTPUT_DIR).",
)
@click.option(
    "--page-delay",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait between message pages.",
)
@click.option(
    "--channel-delay",
    type=click.FloatRange(min=0),
    default=None,
    help="Seconds to wait after each channel listing and channel.",
)
@click.option("-v", "--verbose", is_flag=True, help="Trace requests to stderr.")
def cli(output_dir, page_delay, channel_delay, verbose):
    """
    Archive the message history of the Discord servers you can access.

    Prompts for each server, then walks every text channel newest-first and
    writes a snapshot of everything gathered after each server completes.
    """
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    try:
        settings = load_settings()
    except ConfigurationError as exc:
        raise click.ClickException(str(exc)) from exc
    settings = _apply_overrides(settings, output_dir, page_delay, channel_delay)

    click.echo("=== Discord Message Scraper ===\n")
    token = set_verbose_logging(verbose)
    try:
        build_orchestrator(settings).run()
    except DiscordAPIError as exc:
        raise click.ClickException(f"Error fetching guilds: {exc}") from exc
    except OSError as exc:
        raise click.ClickException(f"Failed to write archive: {exc}") from exc
    finally:
        reset_verbose_logging(token)


def main():
    cli()


if __name__ == "__main__":
    main()
