import json
from pathlib import Path

import pytest

from vuxo_cli.exceptions import ConfigurationError
from vuxo_cli.models.config import DEFAULT_MAX_FILE_SIZE
from vuxo_cli.storage.config_manager import ConfigManager


@pytest.fixture
def env(tmp_path):
    return {"HEADERS_FILE": str(tmp_path / "header.json")}


def test_defaults(env, monkeypatch, tmp_path):
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "xdg"))

    config = ConfigManager(env).load_config()

    assert config.base_host == "vuxo7.com"
    assert config.max_parallel_downloads == 5
    assert config.request_timeout == 15.0
    assert config.max_file_size == DEFAULT_MAX_FILE_SIZE
    assert config.debug_html is False
    assert config.header_overrides == {}
    assert config.database_path == tmp_path / "xdg" / "vuxo-cli" / "library.sqlite"


def test_environment_values(env, tmp_path):
    env.update(
        {
            "BOT_TOKEN": "123:abc",
            "DATABASE_PATH": str(tmp_path / "db.sqlite"),
            "MAX_PARALLEL_DOWNLOADS": "8",
            "REQUEST_TIMEOUT": "4.5",
            "MAX_FILE_SIZE": "1024",
            "VUXO_HOST": "https://Mirror.Example/",
            "DEBUG_HTML": "yes",
        }
    )

    config = ConfigManager(env).load_config()

    assert config.bot_token == "123:abc"
    assert config.database_path == tmp_path / "db.sqlite"
    assert config.max_parallel_downloads == 8
    assert config.request_timeout == 4.5
    assert config.max_file_size == 1024
    assert config.base_host == "mirror.example"
    assert config.site_url == "https://mirror.example"
    assert config.debug_html is True


def test_bot_token_is_not_shown_in_repr(env):
    env["BOT_TOKEN"] = "secret-token"

    assert "secret-token" not in repr(ConfigManager(env).load_config())


def test_cli_options_win_over_environment(env):
    env["MAX_PARALLEL_DOWNLOADS"] = "8"

    config = ConfigManager(env).load_config({"max_parallel_downloads": 2})

    assert config.max_parallel_downloads == 2


@pytest.mark.parametrize(
    ("key", "value"),
    [
        ("MAX_PARALLEL_DOWNLOADS", "0"),
        ("MAX_PARALLEL_DOWNLOADS", "33"),
        ("REQUEST_TIMEOUT", "-1"),
        ("REQUEST_TIMEOUT", "soon"),
        ("MAX_FILE_SIZE", "0"),
        ("VUXO_HOST", "https://example.com/path"),
    ],
)
def test_invalid_values_raise_configuration_error(env, key, value):
    env[key] = value

    with pytest.raises(ConfigurationError):
        ConfigManager(env).load_config()


def test_header_overrides_are_loaded(env):
    Path(env["HEADERS_FILE"]).write_text(
        json.dumps({"User-Agent": "custom", "Cookie": "a=b"}), encoding="utf-8"
    )

    config = ConfigManager(env).load_config()

    assert config.header_overrides == {"user-agent": "custom", "cookie": "a=b"}


@pytest.mark.parametrize("content", ["{not json", "[1, 2]"])
def test_bad_headers_file(env, content):
    Path(env["HEADERS_FILE"]).write_text(content, encoding="utf-8")

    with pytest.raises(ConfigurationError):
        ConfigManager(env).load_config()


def test_dotenv_file_is_loaded(tmp_path, monkeypatch):
    dotenv = tmp_path / ".env"
    dotenv.write_text(
        f"MAX_PARALLEL_DOWNLOADS=3\nHEADERS_FILE={tmp_path / 'none.json'}\n",
        encoding="utf-8",
    )
    for key in ("MAX_PARALLEL_DOWNLOADS", "HEADERS_FILE"):
        # Recorded first so whatever load_dotenv sets is undone afterwards.
        monkeypatch.setenv(key, "")
        monkeypatch.delenv(key)

    config = ConfigManager(dotenv_path=dotenv).load_config()

    assert config.max_parallel_downloads == 3
