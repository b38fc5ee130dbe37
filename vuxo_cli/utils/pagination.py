"""
Splits track lists into fixed-size pages.
"""

import math
from collections.abc import Sequence
from dataclasses import dataclass

from vuxo_cli.models.track import Track

PAGE_SIZE = 10


@dataclass(frozen=True)
class Page:
    number: int
    total_pages: int
    start: int
    items: tuple[Track, ...]

    @property
    def has_previous(self) -> bool:
        return self.number > 0

    @property
    def has_next(self) -> bool:
        return self.number < self.total_pages - 1

    def track_at(self, position: int) -> Track | None:
        """Returns the 1-based ``position``-th track on this page."""
        if 1 <= position <= len(self.items):
            return self.items[position - 1]
        return None


def page_count(total: int, page_size: int = PAGE_SIZE) -> int:
    return max(math.ceil(total / page_size), 1)


def paginate(tracks: Sequence[Track], page: int, page_size: int = PAGE_SIZE) -> Page:
    """Returns ``page`` of ``tracks``, clamped to the valid range."""
    total_pages = page_count(len(tracks), page_size)
    number = max(0, min(page, total_pages - 1))
    start = number * page_size
    return Page(
        number=number,
        total_pages=total_pages,
        start=start,
        items=tuple(tracks[start : start + page_size]),
    )
