"""
Message shard catalog.

Message history is split across ``message_N.db`` files, each covering a
contiguous time window. The catalog opens every shard once, reads the anchor
timestamp that marks the start of its window, and keeps the shards ordered by
that timestamp. A shard's window ends where the next one starts; the newest
shard is open-ended and ends "now".
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .db import ReadOnlyDatabase
from .discovery import MESSAGE_FILE_PATTERN, find_files
from .errors import ArchiveError, InitializationFailure
from .models import ShardInfo

logger = logging.getLogger(__name__)

ANCHOR_QUERY = "SELECT timestamp FROM Timestamp LIMIT 1"


def as_utc(value: datetime) -> datetime:
    """Normalize a datetime to aware UTC; naive values are taken as local time."""
    return value.astimezone(timezone.utc)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Shard:
    """One opened message shard and its coverage window."""

    file_path: Path
    start_time: datetime
    end_time: datetime
    handle: ReadOnlyDatabase


class ShardCatalog:
    """Opens, orders and looks up the archive's message shards."""

    def __init__(self, timeout: int = 30, recursive: bool = True):
        self.timeout = timeout
        self.recursive = recursive
        self._shards: List[Shard] = []
        self._index: Dict[str, int] = {}

    @property
    def shards(self) -> Tuple[Shard, ...]:
        return tuple(self._shards)

    def __len__(self) -> int:
        return len(self._shards)

    async def initialize(self, root_path: Union[str, Path]) -> None:
        """Discover and open every message shard under ``root_path``.

        Shards that cannot be opened or have no readable anchor timestamp are
        skipped with a warning.

        Raises:
            InitializationFailure: if no shard could be used
        """
        candidates = find_files(root_path, MESSAGE_FILE_PATTERN, self.recursive)
        if not candidates:
            raise InitializationFailure(
                "no usable shard", {"path": str(root_path), "pattern": MESSAGE_FILE_PATTERN}
            )

        opened: List[Tuple[Path, datetime, ReadOnlyDatabase]] = []
        for path in candidates:
            handle = ReadOnlyDatabase(path, timeout=self.timeout)
            try:
                await handle.initialize()
                start_time = await self._read_anchor(handle)
            except ArchiveError as e:
                logger.warning(f"Skipping message shard {path}: {e}")
                await self._discard(handle)
                continue
            opened.append((path, start_time, handle))

        if not opened:
            raise InitializationFailure("no usable shard", {"path": str(root_path)})

        # sorted() is stable: equal anchors keep discovery order
        opened.sort(key=lambda item: item[1])

        now = utc_now()
        self._shards = []
        for i, (path, start_time, handle) in enumerate(opened):
            end_time = opened[i + 1][1] if i + 1 < len(opened) else now
            self._shards.append(Shard(path, start_time, end_time, handle))
        self._index = {str(shard.file_path): i for i, shard in enumerate(self._shards)}

        logger.info(f"Opened {len(self._shards)} message shard(s) under {root_path}")

    @staticmethod
    async def _read_anchor(handle: ReadOnlyDatabase) -> datetime:
        row = await handle.fetch_one(ANCHOR_QUERY)
        if row is None or row["timestamp"] is None:
            raise InitializationFailure(f"no anchor timestamp in {handle.db_path}")
        try:
            return datetime.fromtimestamp(int(row["timestamp"]), tz=timezone.utc)
        except (TypeError, ValueError, OverflowError, OSError) as e:
            raise InitializationFailure(
                f"unreadable anchor timestamp in {handle.db_path}: {e}",
                {"path": str(handle.db_path), "value": repr(row["timestamp"])},
            )

    @staticmethod
    async def _discard(handle: ReadOnlyDatabase) -> None:
        try:
            await handle.close()
        except ArchiveError as e:
            logger.warning(f"Failed to close skipped shard {handle.db_path}: {e}")

    def end_of(self, index: int, now: Optional[datetime] = None) -> datetime:
        """End boundary of shard ``index``; the last shard ends at ``now``."""
        if index == len(self._shards) - 1:
            return now or utc_now()
        return self._shards[index].end_time

    def overlapping(self, start_time: datetime, end_time: datetime) -> List[Shard]:
        """Shards whose window overlaps ``[start_time, end_time)``, oldest first."""
        start_time, end_time = as_utc(start_time), as_utc(end_time)
        now = utc_now()
        return [
            shard
            for i, shard in enumerate(self._shards)
            if shard.start_time < end_time and self.end_of(i, now) > start_time
        ]

    def shard_for_path(self, path: Union[str, Path]) -> Optional[Shard]:
        index = self._index.get(str(path))
        return self._shards[index] if index is not None else None

    def describe(self) -> List[ShardInfo]:
        now = utc_now()
        return [
            ShardInfo(
                file_path=str(shard.file_path),
                start_time=shard.start_time,
                end_time=self.end_of(i, now),
            )
            for i, shard in enumerate(self._shards)
        ]

    async def close(self) -> List[Exception]:
        """Close every shard handle and return the errors encountered."""
        errors: List[Exception] = []
        for shard in self._shards:
            try:
                await shard.handle.close()
            except ArchiveError as e:
                errors.append(e)
        return errors
