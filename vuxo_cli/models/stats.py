"""
Statistics for a download session.
"""

from dataclasses import dataclass, field


@dataclass
class DownloadStats:
    """Tracks the outcome of every track in a download session."""

    tracks_downloaded: int = 0
    tracks_skipped_exists: int = 0
    tracks_failed: int = 0
    total_size_downloaded: int = 0
    failures: list[tuple[str, str]] = field(default_factory=list)

    @property
    def tracks_total(self) -> int:
        return self.tracks_downloaded + self.tracks_skipped_exists + self.tracks_failed

    def record_failure(self, name: str, error: Exception) -> None:
        self.tracks_failed += 1
        self.failures.append((name, f"{type(error).__name__}: {error}"))
