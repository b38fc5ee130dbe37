"""
Loads the application configuration from the environment (and an optional
``.env`` file), applies CLI overrides and validates it.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

from dotenv import load_dotenv
from pydantic import ValidationError

from vuxo_cli.exceptions import ConfigurationError
from vuxo_cli.models.config import AppConfig

log = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes", "on"}

# Environment variable -> config field
ENV_KEYS = {
    "BOT_TOKEN": "bot_token",
    "WEB_APP_URL": "web_app_url",
    "DATABASE_PATH": "database_path",
    "VUXO_HOST": "base_host",
    "REQUEST_TIMEOUT": "request_timeout",
    "MAX_FILE_SIZE": "max_file_size",
    "MAX_PARALLEL_DOWNLOADS": "max_parallel_downloads",
    "DEBUG_HTML": "debug_html",
    "DEBUG_HTML_PATH": "debug_html_path",
}


def get_config_dir() -> Path:
    if os.name == "nt":
        base_dir = Path(os.getenv("APPDATA", "~\\AppData\\Roaming"))
    else:
        base_dir = Path(os.getenv("XDG_CONFIG_HOME", "~/.config"))
    return base_dir.expanduser() / "vuxo-cli"


class ConfigManager:
    """Builds an AppConfig from environment variables and a headers file."""

    def __init__(
        self,
        env: dict[str, str] | None = None,
        dotenv_path: Path | None = None,
    ):
        """
        Args:
            env: Mapping to read settings from. Defaults to ``os.environ``
                after loading ``.env``.
            dotenv_path: Explicit ``.env`` file to load. Ignored when ``env``
                is given.
        """
        if env is None:
            load_dotenv(dotenv_path=dotenv_path)
            env = dict(os.environ)
        self._env = env

    def load_config(self, cli_options: dict[str, Any] | None = None) -> AppConfig:
        """
        Loads configuration from the environment, applies CLI overrides, and
        validates it.

        Raises:
            ConfigurationError: If the headers file is malformed or validation
            fails.
        """
        settings = self._get_config_as_dict()
        settings["header_overrides"] = self._load_header_overrides(
            Path(self._env.get("HEADERS_FILE", "header.json"))
        )

        if cli_options:
            settings.update(cli_options)

        try:
            return AppConfig(**settings)
        except ValidationError as e:
            raise ConfigurationError(f"Configuration validation failed:\n{e}") from e

    def _get_config_as_dict(self) -> dict[str, Any]:
        settings: dict[str, Any] = {
            "database_path": get_config_dir() / "library.sqlite",
        }
        for env_key, field in ENV_KEYS.items():
            value = self._env.get(env_key)
            if value is None or value == "":
                continue
            if field == "debug_html":
                settings[field] = value.strip().lower() in _TRUTHY
            elif field in ("database_path", "debug_html_path"):
                settings[field] = Path(value).expanduser()
            else:
                settings[field] = value
        return settings

    @staticmethod
    def _load_header_overrides(path: Path) -> dict[str, str]:
        """Reads the optional JSON object of header overrides."""
        if not path.is_file():
            return {}
        try:
            with open(path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise ConfigurationError(f"Could not read headers file '{path}': {e}") from e
        if not isinstance(data, dict):
            raise ConfigurationError(
                f"Headers file '{path}' must contain a JSON object."
            )
        log.debug(f"Loaded {len(data)} header override(s) from {path}")
        return {str(k): str(v) for k, v in data.items()}
