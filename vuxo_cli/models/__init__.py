"""
Data Models Layer.

This package contains Pydantic models that define the core data structures
used throughout the application, such as configuration and tracks.
"""

from .config import AppConfig
from .stats import DownloadStats
from .track import LibraryTrack, Track, build_track_id

__all__ = ["AppConfig", "DownloadStats", "LibraryTrack", "Track", "build_track_id"]
