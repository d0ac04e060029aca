from __future__ import annotations

import json

import pytest

from discord_archiver.api import DiscordAPIError
from discord_archiver.archive import ArchiveWriter
from discord_archiver.gate import ScriptedGate
from discord_archiver.orchestrator import GUILD_PROMPT, Orchestrator
from discord_archiver.pager import ChannelPager
from discord_archiver.rate import RateGovernor
from discord_archiver.walker import GuildWalker

_GUILDS = [
    {"id": "1", "name": "Alpha", "owner": True, "icon": "abc", "permissions": "8"},
    {"id": "2", "name": "Beta", "owner": False, "icon": None},
    {"id": "3", "name": "Gamma", "owner": False, "icon": None},
]


class _FakeAPI:
    def __init__(self, guilds, *, guild_error=None):  # type: ignore[no-untyped-def]
        self.guilds = guilds
        self.guild_error = guild_error
        self.listed: list[str] = []

    def get_user_guilds(self):  # type: ignore[no-untyped-def]
        if self.guild_error is not None:
            raise self.guild_error
        return self.guilds

    def get_guild_channels(self, guild_id):  # type: ignore[no-untyped-def]
        self.listed.append(guild_id)
        return [{"id": f"{guild_id}0", "name": "general", "type": 0}]

    def get_messages_page(self, channel_id, *, limit=100, before=None):  # type: ignore[no-untyped-def]
        if before is not None:
            return []
        return [
            {"id": f"{channel_id}{n}", "author": {"id": "1", "username": "u"}, "content": "hi"}
            for n in (2, 1)
        ]


def _orchestrator(api, answers, output_dir):  # type: ignore[no-untyped-def]
    gate = ScriptedGate(answers)
    governor = RateGovernor(page_delay=0, channel_delay=0)
    walker = GuildWalker(api, ChannelPager(api, gate, governor), governor)
    stamps = iter(range(1000, 2000))
    writer = ArchiveWriter(output_dir, clock=lambda: next(stamps))
    return Orchestrator(api, gate, walker, writer), gate


def test_opted_in_guilds_are_walked_and_checkpointed(tmp_path) -> None:
    api = _FakeAPI(_GUILDS)
    orchestrator, gate = _orchestrator(api, ["y", "", "5"], tmp_path / "out")

    summary = orchestrator.run()

    assert api.listed == ["1", "3"]
    assert summary.processed == 2
    assert summary.total == 3
    assert gate.prompts == [GUILD_PROMPT] * 3
    assert len(summary.snapshots) == 2

    first = json.loads(summary.snapshots[0].read_text(encoding="utf-8"))
    last = json.loads(summary.snapshots[-1].read_text(encoding="utf-8"))
    assert [r["guild"]["name"] for r in first] == ["Alpha"]
    assert [r["guild"]["name"] for r in last] == ["Alpha", "Gamma"]
    assert last[0]["guild"] == {"id": "1", "name": "Alpha", "owner": True, "icon": "abc"}
    assert last[1]["channels"][0]["messageCount"] == 2

    listing = json.loads((tmp_path / "out" / "guilds.json").read_text(encoding="utf-8"))
    assert listing == _GUILDS


def test_empty_guild_listing_is_not_an_error(tmp_path) -> None:
    orchestrator, gate = _orchestrator(_FakeAPI([]), [], tmp_path)

    summary = orchestrator.run()

    assert summary.total == 0
    assert summary.snapshots == []
    assert gate.prompts == []
    assert (tmp_path / "guilds.json").exists()


def test_guild_listing_failure_propagates(tmp_path) -> None:
    api = _FakeAPI([], guild_error=DiscordAPIError("unauthorized", status_code=401))
    orchestrator, _ = _orchestrator(api, [], tmp_path)

    with pytest.raises(DiscordAPIError):
        orchestrator.run()


def test_persistence_failure_halts_the_run(tmp_path) -> None:
    api = _FakeAPI(_GUILDS)
    orchestrator, _ = _orchestrator(api, ["y", "y", "y"], tmp_path)

    def _fail(records):  # type: ignore[no-untyped-def]
        raise OSError("disk full")

    orchestrator.writer.persist = _fail

    with pytest.raises(OSError):
        orchestrator.run()
    assert api.listed == ["1"]


def test_guild_listing_file_keeps_unexpected_entries(tmp_path) -> None:
    listing = [_GUILDS[0], "junk"]
    orchestrator, gate = _orchestrator(_FakeAPI(listing), ["n"], tmp_path)

    summary = orchestrator.run()

    assert summary.total == 1
    assert len(gate.prompts) == 1
    assert json.loads((tmp_path / "guilds.json").read_text(encoding="utf-8")) == listing
