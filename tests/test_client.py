import asyncio

import pytest
from aiohttp import web

from vuxo_cli.api.client import VuxoClient, sanitize_keyword
from vuxo_cli.exceptions import (
    HttpStatusError,
    InvalidQueryError,
    PlaylistNotFoundError,
    RequestTimeoutError,
)
from vuxo_cli.utils.retry import RetryPolicy


@pytest.fixture
async def client(config):
    async with VuxoClient(config) as c:
        yield c


def counting_handler(responses):
    """Serves the given (status, body) pairs in turn, repeating the last one."""
    hits = []

    async def handler(request):
        status, body = responses[min(len(hits), len(responses) - 1)]
        hits.append(request)
        return web.Response(status=status, text=body, content_type="text/html")

    return handler, hits


async def test_fetch_tracks_returns_complete_items(serve, client, playlist_html):
    html = playlist_html(
        [
            ("A", "One", "https://cdn/1.mp3"),
            ("B", None, "https://cdn/2.mp3"),
            ("C", "Three", "https://cdn/3.mp3"),
        ]
    )
    handler, hits = counting_handler([(200, html)])
    server = await serve({"/": handler})

    tracks = await client.fetch_tracks(str(server.make_url("/")))

    assert [t.name for t in tracks] == ["A - One", "C - Three"]
    assert len(hits) == 1


async def test_missing_container_exhausts_attempts_with_backoff(
    serve, client, backoff_delays
):
    handler, hits = counting_handler([(200, "<html><body>maintenance</body></html>")])
    server = await serve({"/": handler})

    with pytest.raises(PlaylistNotFoundError):
        await client.fetch_tracks(str(server.make_url("/")))

    assert len(hits) == 3
    assert backoff_delays == [0.3, 0.6]


async def test_http_error_is_retried_then_succeeds(
    serve, client, playlist_html, backoff_delays
):
    handler, hits = counting_handler(
        [(503, "busy"), (200, playlist_html([("A", "B", "https://cdn/x.mp3")]))]
    )
    server = await serve({"/": handler})

    tracks = await client.fetch_tracks(str(server.make_url("/")))

    assert len(tracks) == 1
    assert len(hits) == 2
    assert backoff_delays == [0.3]


async def test_http_error_surfaces_after_last_attempt(serve, config, backoff_delays):
    handler, hits = counting_handler([(404, "gone")])
    server = await serve({"/": handler})

    async with VuxoClient(config, RetryPolicy(attempts=2)) as client:
        with pytest.raises(HttpStatusError) as exc_info:
            await client.fetch_tracks(str(server.make_url("/")))

    assert exc_info.value.status == 404
    assert len(hits) == 2
    assert backoff_delays == [0.3]


async def test_empty_results_are_not_retried(serve, client, playlist_html):
    handler, hits = counting_handler([(200, playlist_html([]))])
    server = await serve({"/": handler})

    assert await client.fetch_tracks(str(server.make_url("/"))) == []
    assert len(hits) == 1


async def test_slow_page_times_out(serve, config, backoff_delays):
    async def slow(request):
        await asyncio.sleep(0.5)
        return web.Response(text="late")

    server = await serve({"/": slow})
    config.request_timeout = 0.1

    async with VuxoClient(config) as client:
        with pytest.raises(RequestTimeoutError):
            await client.fetch_tracks(str(server.make_url("/")))

    assert len(backoff_delays) == 2


async def test_page_requests_send_default_and_override_headers(
    serve, config, playlist_html
):
    seen = {}

    async def handler(request):
        seen["headers"] = request.headers
        return web.Response(text=playlist_html([]), content_type="text/html")

    server = await serve({"/": handler})
    config.header_overrides = {"Accept-Language": "uz"}

    async with VuxoClient(config) as client:
        await client.fetch_tracks(str(server.make_url("/")))

    headers = seen["headers"]
    assert headers["Accept-Language"] == "uz"
    assert headers["User-Agent"].startswith("Mozilla/5.0")
    assert "Referer" not in headers


async def test_debug_html_is_saved_without_changing_result(
    serve, config, playlist_html
):
    html = playlist_html([("A", "B", "https://cdn/x.mp3")])
    handler, _ = counting_handler([(200, html)])
    server = await serve({"/": handler})
    config.debug_html = True

    async with VuxoClient(config) as client:
        tracks = await client.fetch_tracks(str(server.make_url("/")))

    assert len(tracks) == 1
    assert config.debug_html_path.read_text(encoding="utf-8") == html


async def test_unwritable_debug_path_is_ignored(serve, config, playlist_html, tmp_path):
    handler, _ = counting_handler([(200, playlist_html([("A", "B", "https://x")]))])
    server = await serve({"/": handler})
    config.debug_html = True
    config.debug_html_path = tmp_path / "missing-dir" / "page.html"

    async with VuxoClient(config) as client:
        assert len(await client.fetch_tracks(str(server.make_url("/")))) == 1


@pytest.mark.parametrize("keyword", ["!!!", "   ", "", "?!.,", None])
async def test_invalid_keywords_fail_without_network(config, keyword):
    client = VuxoClient(config)

    with pytest.raises(InvalidQueryError):
        await client.search_tracks(keyword)

    assert client._session is None


@pytest.mark.parametrize(
    ("keyword", "expected"),
    [
        ("Daft Punk", "daft-punk"),
        ("  Daft   Punk!! ", "daft-punk"),
        ("AC/DC", "acdc"),
        ("Jack & Jill", "jack-jill"),
        ("Мот  Капкан", "мот-капкан"),
        ("under_score", "under_score"),
    ],
)
def test_sanitize_keyword(keyword, expected):
    assert sanitize_keyword(keyword) == expected


async def test_search_and_top_hits_urls(config, monkeypatch):
    client = VuxoClient(config)
    urls = []

    async def fake_fetch_tracks(url):
        urls.append(url)
        return []

    monkeypatch.setattr(client, "fetch_tracks", fake_fetch_tracks)

    await client.search_tracks("  Daft   Punk!! ")
    await client.get_top_hits()

    assert urls == ["https://daft-punk.vuxo7.com", "https://vuxo7.com"]


def test_retry_delays_are_capped():
    policy = RetryPolicy(attempts=6, base_delay=1.0, max_delay=3.0)

    assert [policy.delay_for(n) for n in range(4)] == [1.0, 2.0, 3.0, 3.0]


def test_retry_policy_needs_an_attempt():
    with pytest.raises(ValueError):
        RetryPolicy(attempts=0)


async def test_undecodable_bytes_are_replaced(serve, client):
    body = (
        b'<ul class="playlist"><li>'
        b'<span class="playlist-name-artist">Bad \xff\xfe Bytes</span>'
        b'<span class="playlist-name-title">Song</span>'
        b'<a class="playlist-play" data-url="https://cdn/1.mp3"></a>'
        b"</li></ul>"
    )
    hits = []

    async def handler(request):
        hits.append(request)
        return web.Response(body=body, content_type="text/html", charset="utf-8")

    server = await serve({"/": handler})

    tracks = await client.fetch_tracks(str(server.make_url("/")))

    assert len(hits) == 1
    assert [t.title for t in tracks] == ["Song"]
    assert tracks[0].performer.startswith("Bad ")
    assert "�" in tracks[0].performer
