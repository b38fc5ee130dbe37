"""
Pydantic models for scraped tracks and their stored library form.
"""

import re
import time
from collections.abc import Mapping
from typing import Any

from pydantic import BaseModel, Field, model_validator

from vuxo_cli.exceptions import ErrorKind, LibraryError

_NON_ALNUM = re.compile(r"[\W_]+")


def build_track_id(performer: str = "", title: str = "") -> str:
    """
    Builds the dedup key for a track: letters and digits of performer and
    title, lower-cased. Works for Latin and Cyrillic alike.
    """
    base = f"{performer} {title}".strip().lower()
    return _NON_ALNUM.sub("", base)


class Track(BaseModel):
    """A single search result scraped from the site."""

    index: int = 0
    performer: str
    title: str
    name: str = ""
    audio_url: str

    @model_validator(mode="after")
    def default_name(self) -> "Track":
        if not self.name.strip():
            self.name = f"{self.performer} - {self.title}"
        return self

    @property
    def track_id(self) -> str:
        return build_track_id(self.performer, self.title)


class LibraryTrack(BaseModel):
    """A track as stored in a user's favorites, history or playlists."""

    track_id: str
    performer: str
    title: str
    name: str
    audio_url: str = ""
    added_at: float = Field(default_factory=time.time)

    @classmethod
    def from_track(cls, track: Any) -> "LibraryTrack":
        """
        Normalizes any track-shaped record (a Track, a LibraryTrack or a plain
        mapping) into its stored form.

        Raises:
            LibraryError: If performer or title is missing.
        """
        if isinstance(track, BaseModel):
            data = track.model_dump()
        elif isinstance(track, Mapping):
            data = dict(track)
        else:
            raise LibraryError(ErrorKind.INVALID_TRACK, f"Not a track: {track!r}")

        performer = str(data.get("performer") or "").strip()
        title = str(data.get("title") or "").strip()
        if not performer or not title:
            raise LibraryError(
                ErrorKind.INVALID_TRACK, "Invalid track: performer and title are required"
            )
        name = str(data.get("name") or f"{performer} - {title}").strip()

        return cls(
            track_id=build_track_id(performer, title),
            performer=performer,
            title=title,
            name=name,
            audio_url=str(data.get("audio_url") or "").strip(),
        )
