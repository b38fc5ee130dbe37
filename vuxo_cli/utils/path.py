"""
Utilities for building safe file names for downloaded tracks.
"""

from pathlib import Path

from pathvalidate import sanitize_filename

from vuxo_cli.models.track import Track


def create_dir(directory_path: Path) -> None:
    """Creates a directory if it does not already exist."""
    directory_path.mkdir(parents=True, exist_ok=True)


def track_filename(track: Track, ext: str = "mp3") -> str:
    """``Performer - Title.mp3`` with characters invalid on any platform removed."""
    stem = sanitize_filename(track.name, platform="universal").strip() or "track"
    return f"{stem}.{ext}"
