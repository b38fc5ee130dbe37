"""
An in-memory, TTL-bound store for search results, keyed by a generated id.
"""

import asyncio
import logging
import time
from collections.abc import Callable, Iterable
from contextlib import suppress
from dataclasses import dataclass

from vuxo_cli.models.track import Track

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SearchEntry:
    """One cached search or top-hits result."""

    id: int
    keyword: str
    tracks: tuple[Track, ...]
    created_at: float


class SearchStore:
    """
    Holds search results so that pagination and download buttons can refer
    to them by a small integer id.

    Entries expire ``ttl`` seconds after creation. Expired entries are
    dropped when read, and a background sweep reclaims the ones nobody reads
    again. Ids start at 1 and are never reused during the process lifetime.
    """

    def __init__(
        self,
        ttl: float = 3600,
        sweep_interval: float = 1800,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Args:
            ttl: Seconds an entry stays retrievable.
            sweep_interval: Seconds between background purges.
            clock: Monotonic time source, replaceable in tests.
        """
        self.ttl = ttl
        self.sweep_interval = sweep_interval
        self._clock = clock
        self._entries: dict[int, SearchEntry] = {}
        self._next_id = 1
        self._sweep_task: asyncio.Task | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def save(self, keyword: str, tracks: Iterable[Track]) -> int:
        search_id = self._next_id
        self._next_id += 1
        self._entries[search_id] = SearchEntry(
            id=search_id,
            keyword=keyword,
            tracks=tuple(tracks),
            created_at=self._clock(),
        )
        return search_id

    def get(self, search_id: int) -> SearchEntry | None:
        """Returns the entry, or None if it is unknown or has expired."""
        entry = self._entries.get(search_id)
        if entry is None:
            return None
        if self._clock() - entry.created_at > self.ttl:
            del self._entries[search_id]
            return None
        return entry

    def purge(self) -> int:
        """Removes every expired entry and returns how many were removed."""
        now = self._clock()
        expired = [
            sid for sid, entry in self._entries.items() if now - entry.created_at > self.ttl
        ]
        for sid in expired:
            del self._entries[sid]
        if expired:
            log.debug(f"Search store sweep: removed {len(expired)} expired entries.")
        return len(expired)

    async def start_background_sweep(self) -> None:
        """Starts the periodic background purge task."""
        if self._sweep_task is None or self._sweep_task.done():
            self._sweep_task = asyncio.create_task(self._sweep_loop())
            log.debug("Started search store sweep task.")

    async def _sweep_loop(self) -> None:
        while True:
            await asyncio.sleep(self.sweep_interval)
            self.purge()

    async def stop_background_sweep(self) -> None:
        """Stops the background purge task gracefully."""
        if self._sweep_task and not self._sweep_task.done():
            self._sweep_task.cancel()
            with suppress(asyncio.CancelledError):
                await self._sweep_task
            log.debug("Stopped search store sweep task.")
        self._sweep_task = None
