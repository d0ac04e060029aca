from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Callable, Sequence

from .models import GuildExtractionRecord

GUILD_LISTING_FILENAME = "guilds.json"
SNAPSHOT_PREFIX = "discord_data_"


def _epoch_ms() -> int:
    return time.time_ns() // 1_000_000


def _write_json(path: Path, payload: Any) -> None:
    tmp = path.with_name(path.name + ".tmp")
    try:
        tmp.write_text(
            json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
        )
        tmp.replace(path)
    except OSError:
        tmp.unlink(missing_ok=True)
        raise


class ArchiveWriter:
    """Writes the guild listing and full-rewrite snapshots into one directory.

    Every ``persist`` call produces a new ``discord_data_{epoch_ms}.json``
    holding all records gathered so far; earlier snapshots are left in
    place. Write errors are raised to the caller.
    """

    def __init__(self, output_dir: Path | str, *, clock: Callable[[], int] = _epoch_ms):
        self.output_dir = Path(output_dir)
        self._clock = clock

    def ensure_output_dir(self) -> bool:
        """Create the output directory; returns True when it did not exist."""
        if self.output_dir.is_dir():
            return False
        self.output_dir.mkdir(parents=True, exist_ok=True)
        return True

    def write_guild_listing(self, guilds: list[Any]) -> Path:
        path = self.output_dir / GUILD_LISTING_FILENAME
        _write_json(path, guilds)
        return path

    def _snapshot_path(self) -> Path:
        stamp = self._clock()
        path = self.output_dir / f"{SNAPSHOT_PREFIX}{stamp}.json"
        while path.exists():
            stamp += 1
            path = self.output_dir / f"{SNAPSHOT_PREFIX}{stamp}.json"
        return path

    def persist(self, records: Sequence[GuildExtractionRecord]) -> Path:
        path = self._snapshot_path()
        _write_json(path, [record.to_dict() for record in records])
        return path
