"""
Parses the site's result pages into Track records.
"""

import logging

from bs4 import BeautifulSoup

from vuxo_cli.exceptions import PlaylistNotFoundError
from vuxo_cli.models.track import Track

log = logging.getLogger(__name__)


def _first_text(item, selector: str) -> str:
    el = item.select_one(selector)
    return el.get_text().strip() if el else ""


def parse_tracks(html: str) -> list[Track]:
    """
    Extracts the tracks listed in ``ul.playlist``.

    Items missing a performer, a title or an audio URL are dropped. Indexes
    keep the item's position in the list, skipped items included.

    Raises:
        PlaylistNotFoundError: If the page has no ``ul.playlist`` element.
    """
    soup = BeautifulSoup(html, "html.parser")
    playlist = soup.select_one("ul.playlist")
    if playlist is None:
        raise PlaylistNotFoundError("Playlist element not found in HTML")

    tracks = []
    skipped = 0
    for i, item in enumerate(playlist.find_all("li")):
        performer = _first_text(item, ".playlist-name-artist")
        title = _first_text(item, ".playlist-name-title")
        play = item.select_one(".playlist-play")
        audio_url = str(play.get("data-url") or "").strip() if play else ""

        if not performer or not title or not audio_url:
            skipped += 1
            continue

        tracks.append(
            Track(index=i, performer=performer, title=title, audio_url=audio_url)
        )

    if skipped:
        log.debug(f"Skipped {skipped} incomplete playlist item(s).")
    return tracks
