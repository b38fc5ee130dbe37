import logging

import pytest
from typer.testing import CliRunner

from vuxo_cli.api.client import VuxoClient
from vuxo_cli.cli.app import app
from vuxo_cli.exceptions import InvalidQueryError

runner = CliRunner()


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


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    monkeypatch.setenv("DATABASE_PATH", str(tmp_path / "library.sqlite"))
    monkeypatch.setenv("HEADERS_FILE", str(tmp_path / "header.json"))
    monkeypatch.delenv("MAX_PARALLEL_DOWNLOADS", raising=False)


@pytest.fixture
def fake_site(monkeypatch, make_tracks):
    calls = []

    async def search_tracks(self, keyword):
        calls.append(keyword)
        if not keyword.strip("!"):
            raise InvalidQueryError(f"Empty keyword after sanitisation: {keyword!r}")
        return [] if keyword == "nothing" else make_tracks(15)

    async def get_top_hits(self):
        calls.append(None)
        return make_tracks(3)

    async def open_audio_stream(self, url):
        if url.endswith("/1.mp3"):
            raise InvalidQueryError("broken link")
        return FakeStream(url.encode())

    monkeypatch.setattr(VuxoClient, "search_tracks", search_tracks)
    monkeypatch.setattr(VuxoClient, "get_top_hits", get_top_hits)
    monkeypatch.setattr(VuxoClient, "open_audio_stream", open_audio_stream)
    return calls


def test_search_shows_requested_page(fake_site):
    result = runner.invoke(app, ["search", "daft punk", "--page", "2"])

    assert result.exit_code == 0
    assert fake_site == ["daft punk"]
    assert "15 tracks, page 2/2" in result.output
    assert "Artist 14" in result.output
    assert "Artist 9" not in result.output


def test_search_without_results(fake_site):
    result = runner.invoke(app, ["search", "nothing"])

    assert result.exit_code == 0
    assert "Nothing found." in result.output


def test_invalid_search_exits_with_error_panel(fake_site):
    result = runner.invoke(app, ["search", "!!!"])

    assert result.exit_code == 1
    assert "InvalidQueryError" in result.output


def test_top(fake_site):
    result = runner.invoke(app, ["top"])

    assert result.exit_code == 0
    assert fake_site == [None]
    assert "Top hits" in result.output


def test_download_picked_tracks(fake_site, tmp_path):
    out = tmp_path / "music"

    result = runner.invoke(
        app, ["download", "daft punk", "-n", "1", "-n", "3", "-n", "3", "-o", str(out)]
    )

    assert result.exit_code == 0, result.output
    assert sorted(p.name for p in out.iterdir()) == [
        "Artist 0 - Song 0.mp3",
        "Artist 2 - Song 2.mp3",
    ]
    assert (out / "Artist 2 - Song 2.mp3").read_bytes() == b"https://cdn.example/2.mp3"


def test_download_skips_existing_and_reports_failures(fake_site, tmp_path):
    out = tmp_path / "music"
    out.mkdir()
    (out / "Artist 0 - Song 0.mp3").write_bytes(b"old")

    result = runner.invoke(app, ["download", "--top", "--all", "-o", str(out)])

    assert result.exit_code == 1
    assert (out / "Artist 0 - Song 0.mp3").read_bytes() == b"old"
    assert (out / "Artist 2 - Song 2.mp3").exists()
    assert not (out / "Artist 1 - Song 1.mp3").exists()
    assert "Download Summary" in result.output


@pytest.mark.parametrize(
    "args",
    [
        ["download", "-n", "1"],
        ["download", "daft punk", "--top", "-n", "1"],
        ["download", "daft punk"],
    ],
)
def test_download_argument_errors(fake_site, args):
    result = runner.invoke(app, args)

    assert result.exit_code == 1
    assert fake_site == []


def test_invalid_worker_count_is_a_configuration_error(fake_site):
    result = runner.invoke(app, ["download", "x", "-n", "1", "-w", "99"])

    assert result.exit_code == 1
    assert "ConfigurationError" in result.output


def test_library_commands():
    user = "501"

    assert runner.invoke(app, ["library", "playlist-create", user, "Mix"]).exit_code == 0
    duplicate = runner.invoke(app, ["library", "playlist-create", user, "Mix"])
    assert duplicate.exit_code == 1
    assert "playlist_exists" in duplicate.output

    add = ["--performer", "Daft Punk", "--title", "Aerodynamic"]
    assert runner.invoke(app, ["library", "fav-add", user, *add]).exit_code == 0
    again = runner.invoke(app, ["library", "fav-add", user, *add])
    assert "Already in favorites" in again.output
    assert runner.invoke(app, ["library", "playlist-add", user, "Mix", *add]).exit_code == 0

    shown = runner.invoke(app, ["library", "show", user])
    assert shown.exit_code == 0
    assert "daftpunkaerodynamic" in shown.output
    assert "Playlist: Mix" in shown.output

    removed = runner.invoke(app, ["library", "fav-remove", user, "daftpunkaerodynamic"])
    assert "Removed from favorites" in removed.output
    assert runner.invoke(app, ["library", "playlist-delete", user, "Mix"]).exit_code == 0


def test_library_show_unknown_user():
    result = runner.invoke(app, ["library", "show", "999"])

    assert result.exit_code == 1


def test_version():
    result = runner.invoke(app, ["--version"])

    assert result.exit_code == 0
    assert "vuxo-cli" in result.output


@pytest.mark.parametrize(
    ("flags", "level"), [([], "INFO"), (["-v"], "INFO"), (["-vv"], "DEBUG")]
)
def test_verbosity_flags(flags, level):
    result = runner.invoke(app, [*flags, "show-config"])

    assert result.exit_code == 0
    assert logging.getLogger("vuxo_cli").level == logging.getLevelName(level)
