"""
A FIFO concurrency limiter for audio downloads.
"""

import asyncio
import logging
from collections import deque
from collections.abc import Awaitable, Callable
from typing import TypeVar

log = logging.getLogger(__name__)

T = TypeVar("T")


class DownloadQueue:
    """
    Lets at most ``max_concurrency`` tasks run at once; the rest wait in
    arrival order.

    A finished task hands its slot directly to the oldest waiter, so a
    newcomer can never overtake someone already queued.

    Usage:
        queue = DownloadQueue(5)
        await queue.run(lambda: send_track(track))
    """

    def __init__(self, max_concurrency: int = 5):
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1.")
        self._max_concurrency = max_concurrency
        self._active = 0
        self._waiters: deque[asyncio.Future] = deque()

    @property
    def max_concurrency(self) -> int:
        return self._max_concurrency

    @property
    def active(self) -> int:
        """Number of slots currently held."""
        return self._active

    @property
    def waiting(self) -> int:
        """Number of callers queued for a slot."""
        return sum(1 for w in self._waiters if not w.done())

    async def run(self, task: Callable[[], Awaitable[T]]) -> T:
        """Runs ``task()`` inside a slot, releasing it however the task ends."""
        await self._acquire()
        try:
            return await task()
        finally:
            self._release()

    async def _acquire(self) -> None:
        if self._active < self._max_concurrency and not self._waiters:
            self._active += 1
            return

        waiter = asyncio.get_running_loop().create_future()
        self._waiters.append(waiter)
        log.debug(f"Download queued ({len(self._waiters)} waiting).")
        try:
            await waiter
        except asyncio.CancelledError:
            if waiter.done() and not waiter.cancelled():
                # The slot was already handed over; pass it on.
                self._release()
            elif waiter in self._waiters:
                # A release may already have popped it while skipping.
                self._waiters.remove(waiter)
            raise

    def _release(self) -> None:
        while self._waiters:
            waiter = self._waiters.popleft()
            if not waiter.done():
                waiter.set_result(None)
                return
        self._active = max(0, self._active - 1)
