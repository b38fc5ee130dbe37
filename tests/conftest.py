import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from vuxo_cli.models.config import AppConfig
from vuxo_cli.models.track import Track
from vuxo_cli.utils.retry import RetryPolicy


def _playlist_html(items, container=True):
    """
    Builds a result page. Each item is (performer, title, audio_url); use
    None to leave a field out.
    """
    lis = []
    for performer, title, url in items:
        parts = []
        if performer is not None:
            parts.append(f'<span class="playlist-name-artist">{performer}</span>')
        if title is not None:
            parts.append(f'<span class="playlist-name-title">{title}</span>')
        if url is not None:
            parts.append(f'<a class="playlist-play" data-url="{url}"></a>')
        lis.append(f"<li>{''.join(parts)}</li>")
    body = "".join(lis)
    if container:
        body = f'<ul class="playlist">{body}</ul>'
    return f"<html><body><h1>Music</h1>{body}</body></html>"


@pytest.fixture
def playlist_html():
    return _playlist_html


@pytest.fixture
def config(tmp_path):
    return AppConfig(
        database_path=tmp_path / "library.sqlite",
        debug_html_path=tmp_path / "debug_last.html",
        request_timeout=2.0,
    )


@pytest.fixture
def make_tracks():
    def _make(count):
        return [
            Track(
                index=i,
                performer=f"Artist {i}",
                title=f"Song {i}",
                audio_url=f"https://cdn.example/{i}.mp3",
            )
            for i in range(count)
        ]

    return _make


@pytest.fixture
def backoff_delays(monkeypatch):
    """Records retry delays instead of sleeping."""
    delays = []

    async def fake_wait(self, attempt):
        delays.append(self.delay_for(attempt))

    monkeypatch.setattr(RetryPolicy, "wait", fake_wait)
    return delays


@pytest.fixture
async def serve():
    """Starts a local aiohttp server with the given GET handlers."""
    servers = []

    async def _serve(routes):
        app = web.Application()
        for path, handler in routes.items():
            app.router.add_get(path, handler)
        server = TestServer(app)
        await server.start_server()
        servers.append(server)
        return server

    yield _serve

    for server in servers:
        await server.close()
