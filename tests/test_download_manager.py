from unittest.mock import AsyncMock, MagicMock

from vuxo_cli.core.download_manager import DownloadManager
from vuxo_cli.core.download_queue import DownloadQueue
from vuxo_cli.exceptions import FileTooLargeError
from vuxo_cli.models.track import Track


class FakeStream:
    def __init__(self, data):
        self.data = data
        self.content_length = len(data)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return None

    async def __aiter__(self):
        yield self.data


def make_client(failing_urls=()):
    async def open_audio_stream(url):
        if url in failing_urls:
            raise FileTooLargeError(10, 5)
        return FakeStream(url.encode())

    client = MagicMock()
    client.open_audio_stream = AsyncMock(side_effect=open_audio_stream)
    return client


async def test_tracks_sharing_a_filename_are_downloaded_once(tmp_path):
    first = Track(performer="A", title="B", audio_url="https://cdn/1.mp3")
    twin = Track(index=1, performer="A", title="B", audio_url="https://cdn/2.mp3")
    client = make_client(failing_urls={"https://cdn/2.mp3"})

    stats = await DownloadManager(client, DownloadQueue(2), tmp_path).download_tracks(
        [first, twin]
    )

    client.open_audio_stream.assert_awaited_once_with("https://cdn/1.mp3")
    assert (tmp_path / "A - B.mp3").read_bytes() == b"https://cdn/1.mp3"
    assert (stats.tracks_downloaded, stats.tracks_skipped_exists) == (1, 1)
    assert stats.tracks_failed == 0


async def test_one_failure_does_not_stop_the_batch(tmp_path, make_tracks):
    tracks = make_tracks(3)
    client = make_client(failing_urls={tracks[1].audio_url})

    stats = await DownloadManager(client, DownloadQueue(1), tmp_path).download_tracks(
        tracks
    )

    assert stats.tracks_downloaded == 2
    assert stats.tracks_failed == 1
    assert stats.failures[0][0] == "Artist 1 - Song 1"
    assert sorted(p.name for p in tmp_path.iterdir()) == [
        "Artist 0 - Song 0.mp3",
        "Artist 2 - Song 2.mp3",
    ]
