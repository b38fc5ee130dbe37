"""
Pydantic models for a user's stored library.
"""

from pydantic import BaseModel, Field

from .track import LibraryTrack


class Playlist(BaseModel):
    name: str
    description: str = ""
    created_at: float
    tracks: list[LibraryTrack] = Field(default_factory=list)


class UserProfile(BaseModel):
    """Everything the library knows about one user."""

    user_id: str
    first_name: str = ""
    last_name: str = ""
    username: str = ""
    language: str = ""
    created_at: float
    last_active: float
    favorites: list[LibraryTrack] = Field(default_factory=list)
    recently_played: list[LibraryTrack] = Field(default_factory=list)
    playlists: list[Playlist] = Field(default_factory=list)
