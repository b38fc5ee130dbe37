"""
Exponential backoff policy shared by the page fetchers.
"""

import asyncio
from dataclasses import dataclass


@dataclass(frozen=True)
class RetryPolicy:
    """How many times to try an operation and how long to wait in between."""

    attempts: int = 3
    base_delay: float = 0.3
    max_delay: float = 5.0

    def __post_init__(self):
        if self.attempts < 1:
            raise ValueError("A retry policy needs at least one attempt.")

    def delay_for(self, attempt: int) -> float:
        """Delay after the failed 0-based ``attempt``."""
        return min(self.base_delay * (2**attempt), self.max_delay)

    async def wait(self, attempt: int) -> None:
        await asyncio.sleep(self.delay_for(attempt))
