"""
Manages the SQLite database holding each user's favorites, recently played
tracks and playlists.
"""

import asyncio
import logging
import sqlite3
import time
from contextlib import closing
from pathlib import Path
from typing import Any

from vuxo_cli.exceptions import ErrorKind, LibraryError
from vuxo_cli.models.track import LibraryTrack
from vuxo_cli.models.user import Playlist, UserProfile

log = logging.getLogger(__name__)

RECENTLY_PLAYED_LIMIT = 50
MAX_PLAYLIST_NAME = 64
MAX_PLAYLIST_DESCRIPTION = 256
PROFILE_FIELDS = ("first_name", "last_name", "username", "language")

_TRACK_COLUMNS = "track_id, performer, title, name, audio_url, added_at"

_TRACK_DDL = (
    "track_id TEXT NOT NULL, performer TEXT NOT NULL, title TEXT NOT NULL,"
    " name TEXT NOT NULL, audio_url TEXT NOT NULL DEFAULT '', added_at REAL NOT NULL"
)

_SCHEMA = f"""
CREATE TABLE IF NOT EXISTS users (
    user_id TEXT PRIMARY KEY NOT NULL,
    first_name TEXT NOT NULL DEFAULT '',
    last_name TEXT NOT NULL DEFAULT '',
    username TEXT NOT NULL DEFAULT '',
    language TEXT NOT NULL DEFAULT '',
    created_at REAL NOT NULL,
    last_active REAL NOT NULL
);
CREATE TABLE IF NOT EXISTS favorites (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
    {_TRACK_DDL},
    UNIQUE (user_id, track_id)
);
CREATE TABLE IF NOT EXISTS recently_played (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
    {_TRACK_DDL},
    UNIQUE (user_id, track_id)
);
CREATE TABLE IF NOT EXISTS playlists (
    playlist_id INTEGER PRIMARY KEY AUTOINCREMENT,
    user_id TEXT NOT NULL REFERENCES users(user_id) ON DELETE CASCADE,
    name TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    created_at REAL NOT NULL,
    UNIQUE (user_id, name)
);
CREATE TABLE IF NOT EXISTS playlist_tracks (
    seq INTEGER PRIMARY KEY AUTOINCREMENT,
    playlist_id INTEGER NOT NULL REFERENCES playlists(playlist_id) ON DELETE CASCADE,
    {_TRACK_DDL},
    UNIQUE (playlist_id, track_id)
);
"""


def _require_user_id(user_id: Any) -> str:
    """Accepts an int or a string of digits (Telegram ids are numeric)."""
    if isinstance(user_id, bool):
        raise LibraryError(ErrorKind.INVALID_USER, f"Invalid user id: {user_id!r}")
    if isinstance(user_id, int):
        return str(user_id)
    uid = str(user_id if user_id is not None else "").strip()
    if not uid.lstrip("-").isdigit():
        raise LibraryError(ErrorKind.INVALID_USER, f"Invalid user id: {user_id!r}")
    return uid


def _require_playlist_name(name: Any) -> str:
    n = str(name if name is not None else "").strip()
    if not n:
        raise LibraryError(ErrorKind.INVALID_PLAYLIST_NAME, "Playlist name is required")
    if len(n) > MAX_PLAYLIST_NAME:
        raise LibraryError(ErrorKind.INVALID_PLAYLIST_NAME, "Playlist name too long")
    return n


def _track_row(track: LibraryTrack) -> tuple:
    return (
        track.track_id,
        track.performer,
        track.title,
        track.name,
        track.audio_url,
        track.added_at,
    )


def _to_track(row: sqlite3.Row) -> LibraryTrack:
    return LibraryTrack(**dict(row))


class UserLibrary:
    """
    Per-user favorites, listening history and playlists in SQLite.

    Every mutating call creates the user on demand, so callers never need to
    register a user first.
    """

    def __init__(self, db_path: Path, pool_size: int = 5):
        self.db_path = db_path
        self._connection_semaphore = asyncio.Semaphore(pool_size)
        self._initialize_db()

    def _get_connection(self) -> sqlite3.Connection:
        """Gets a new database connection with optimized PRAGMA settings."""
        conn = sqlite3.connect(self.db_path, timeout=30, check_same_thread=False)
        conn.row_factory = sqlite3.Row
        conn.execute("PRAGMA journal_mode=WAL;")
        conn.execute("PRAGMA synchronous=NORMAL;")
        conn.execute("PRAGMA foreign_keys=ON;")
        return conn

    def _initialize_db(self) -> None:
        """Creates the database file and tables if they don't exist."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        with closing(self._get_connection()) as conn:
            conn.executescript(_SCHEMA)
            conn.commit()
        log.debug(f"User library ready at '{self.db_path}'")

    async def _run_in_executor(self, func, *args):
        """Runs a synchronous database function within the connection pool semaphore."""
        async with self._connection_semaphore:
            return await asyncio.to_thread(func, *args)

    @staticmethod
    def _touch_user(conn: sqlite3.Connection, uid: str) -> None:
        now = time.time()
        conn.execute(
            "INSERT INTO users (user_id, created_at, last_active) VALUES (?, ?, ?) "
            "ON CONFLICT(user_id) DO UPDATE SET last_active = excluded.last_active",
            (uid, now, now),
        )

    # Users

    def _get_user_sync(self, uid: str) -> UserProfile | None:
        with closing(self._get_connection()) as conn:
            user = conn.execute("SELECT * FROM users WHERE user_id = ?", (uid,)).fetchone()
            if user is None:
                return None
            favorites = conn.execute(
                f"SELECT {_TRACK_COLUMNS} FROM favorites WHERE user_id = ? ORDER BY seq",
                (uid,),
            ).fetchall()
            recent = conn.execute(
                f"SELECT {_TRACK_COLUMNS} FROM recently_played WHERE user_id = ?"
                " ORDER BY seq DESC",
                (uid,),
            ).fetchall()
            playlists = []
            for pl in conn.execute(
                "SELECT * FROM playlists WHERE user_id = ? ORDER BY playlist_id", (uid,)
            ).fetchall():
                tracks = conn.execute(
                    f"SELECT {_TRACK_COLUMNS} FROM playlist_tracks"
                    " WHERE playlist_id = ? ORDER BY seq",
                    (pl["playlist_id"],),
                ).fetchall()
                playlists.append(
                    Playlist(
                        name=pl["name"],
                        description=pl["description"],
                        created_at=pl["created_at"],
                        tracks=[_to_track(t) for t in tracks],
                    )
                )
        return UserProfile(
            **{key: user[key] for key in user.keys()},
            favorites=[_to_track(t) for t in favorites],
            recently_played=[_to_track(t) for t in recent],
            playlists=playlists,
        )

    async def get_user(self, user_id: Any) -> UserProfile | None:
        return await self._run_in_executor(self._get_user_sync, _require_user_id(user_id))

    def _update_user_sync(self, uid: str, fields: dict[str, str]) -> None:
        with closing(self._get_connection()) as conn, conn:
            self._touch_user(conn, uid)
            if fields:
                assignments = ", ".join(f"{key} = ?" for key in fields)
                conn.execute(
                    f"UPDATE users SET {assignments} WHERE user_id = ?",  # noqa: S608
                    (*fields.values(), uid),
                )

    async def create_or_update_user(self, user_id: Any, **fields: Any) -> UserProfile:
        """
        Creates the user if needed and stores the given profile fields
        (first_name, last_name, username, language).
        """
        uid = _require_user_id(user_id)
        unknown = set(fields) - set(PROFILE_FIELDS)
        if unknown:
            raise ValueError(f"Unknown profile field(s): {', '.join(sorted(unknown))}")
        clean = {k: str(v if v is not None else "").strip() for k, v in fields.items()}
        await self._run_in_executor(self._update_user_sync, uid, clean)
        return await self.get_user(uid)

    # Favorites

    def _add_favorite_sync(self, uid: str, track: LibraryTrack) -> bool:
        with closing(self._get_connection()) as conn, conn:
            self._touch_user(conn, uid)
            cur = conn.execute(
                f"INSERT OR IGNORE INTO favorites (user_id, {_TRACK_COLUMNS})"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                (uid, *_track_row(track)),
            )
            return cur.rowcount > 0

    async def add_to_favorites(self, user_id: Any, track: Any) -> bool:
        """Adds a track unless one with the same track id is already there."""
        uid = _require_user_id(user_id)
        normalized = LibraryTrack.from_track(track)
        return await self._run_in_executor(self._add_favorite_sync, uid, normalized)

    def _remove_favorite_sync(self, uid: str, track_id: str) -> bool:
        with closing(self._get_connection()) as conn, conn:
            self._touch_user(conn, uid)
            cur = conn.execute(
                "DELETE FROM favorites WHERE user_id = ? AND track_id = ?",
                (uid, track_id),
            )
            return cur.rowcount > 0

    async def remove_from_favorites(self, user_id: Any, track_id: str) -> bool:
        uid = _require_user_id(user_id)
        tid = str(track_id if track_id is not None else "").strip()
        if not tid:
            raise LibraryError(ErrorKind.INVALID_TRACK, "trackId is required")
        return await self._run_in_executor(self._remove_favorite_sync, uid, tid)

    # Recently played

    def _add_recent_sync(self, uid: str, track: LibraryTrack) -> None:
        with closing(self._get_connection()) as conn, conn:
            self._touch_user(conn, uid)
            conn.execute(
                "DELETE FROM recently_played WHERE user_id = ? AND track_id = ?",
                (uid, track.track_id),
            )
            conn.execute(
                f"INSERT INTO recently_played (user_id, {_TRACK_COLUMNS})"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                (uid, *_track_row(track)),
            )
            conn.execute(
                "DELETE FROM recently_played WHERE user_id = ? AND seq NOT IN ("
                " SELECT seq FROM recently_played WHERE user_id = ?"
                " ORDER BY seq DESC LIMIT ?)",
                (uid, uid, RECENTLY_PLAYED_LIMIT),
            )

    async def add_to_recently_played(self, user_id: Any, track: Any) -> None:
        """Moves the track to the front of the history, keeping the newest 50."""
        uid = _require_user_id(user_id)
        normalized = LibraryTrack.from_track(track)
        await self._run_in_executor(self._add_recent_sync, uid, normalized)

    # Playlists

    def _create_playlist_sync(self, uid: str, name: str, description: str) -> Playlist:
        created_at = time.time()
        with closing(self._get_connection()) as conn, conn:
            self._touch_user(conn, uid)
            try:
                conn.execute(
                    "INSERT INTO playlists (user_id, name, description, created_at)"
                    " VALUES (?, ?, ?, ?)",
                    (uid, name, description, created_at),
                )
            except sqlite3.IntegrityError as e:
                raise LibraryError(
                    ErrorKind.PLAYLIST_EXISTS, f"Playlist '{name}' already exists"
                ) from e
        return Playlist(name=name, description=description, created_at=created_at)

    async def create_playlist(
        self, user_id: Any, name: str, description: str = ""
    ) -> Playlist:
        """
        Raises:
            LibraryError: PLAYLIST_EXISTS if the user already has a playlist
            with this name, INVALID_PLAYLIST_NAME for an empty or long name.
        """
        uid = _require_user_id(user_id)
        playlist_name = _require_playlist_name(name)
        desc = str(description or "").strip()[:MAX_PLAYLIST_DESCRIPTION]
        return await self._run_in_executor(
            self._create_playlist_sync, uid, playlist_name, desc
        )

    def _add_to_playlist_sync(self, uid: str, name: str, track: LibraryTrack) -> bool:
        with closing(self._get_connection()) as conn, conn:
            self._touch_user(conn, uid)
            row = conn.execute(
                "SELECT playlist_id FROM playlists WHERE user_id = ? AND name = ?",
                (uid, name),
            ).fetchone()
            if row is None:
                raise LibraryError(
                    ErrorKind.PLAYLIST_NOT_FOUND, f"Playlist '{name}' not found"
                )
            cur = conn.execute(
                f"INSERT OR IGNORE INTO playlist_tracks (playlist_id, {_TRACK_COLUMNS})"
                " VALUES (?, ?, ?, ?, ?, ?, ?)",
                (row["playlist_id"], *_track_row(track)),
            )
            return cur.rowcount > 0

    async def add_to_playlist(self, user_id: Any, playlist_name: str, track: Any) -> bool:
        """Adds a track to a playlist; returns False if it was already there."""
        uid = _require_user_id(user_id)
        name = _require_playlist_name(playlist_name)
        normalized = LibraryTrack.from_track(track)
        return await self._run_in_executor(
            self._add_to_playlist_sync, uid, name, normalized
        )

    def _delete_playlist_sync(self, uid: str, name: str) -> bool:
        with closing(self._get_connection()) as conn, conn:
            self._touch_user(conn, uid)
            cur = conn.execute(
                "DELETE FROM playlists WHERE user_id = ? AND name = ?", (uid, name)
            )
            return cur.rowcount > 0

    async def delete_playlist(self, user_id: Any, playlist_name: str) -> bool:
        uid = _require_user_id(user_id)
        name = _require_playlist_name(playlist_name)
        return await self._run_in_executor(self._delete_playlist_sync, uid, name)
