"""
Pydantic model for application configuration.
Provides robust validation for all settings.
"""

from pathlib import Path

from pydantic import BaseModel, Field, field_validator

DEFAULT_HOST = "vuxo7.com"
DEFAULT_MAX_FILE_SIZE = 50 * 1024 * 1024  # 50 MB


class AppConfig(BaseModel):
    """A validated configuration model for the application."""

    # Telegram
    bot_token: str = Field(default="", repr=False)
    web_app_url: str = ""

    # Storage
    database_path: Path

    # Site & HTTP
    base_host: str = DEFAULT_HOST
    request_timeout: float = 15.0
    max_file_size: int = DEFAULT_MAX_FILE_SIZE
    header_overrides: dict[str, str] = Field(default_factory=dict)

    # Downloads
    max_parallel_downloads: int = 5

    # Debugging
    debug_html: bool = False
    debug_html_path: Path = Path("debug_last.html")

    class Config:
        """Pydantic model configuration."""

        validate_assignment = True
        str_strip_whitespace = True

    @field_validator("max_parallel_downloads")
    @classmethod
    def validate_workers(cls, v: int) -> int:
        """Ensures a reasonable number of parallel downloads."""
        if v < 1 or v > 32:
            raise ValueError("Max parallel downloads must be between 1 and 32.")
        return v

    @field_validator("request_timeout")
    @classmethod
    def validate_timeout(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("Request timeout must be positive.")
        return v

    @field_validator("max_file_size")
    @classmethod
    def validate_max_file_size(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("Max file size must be positive.")
        return v

    @field_validator("base_host")
    @classmethod
    def validate_host(cls, v: str) -> str:
        """Accepts a bare host name; scheme and slashes are stripped."""
        host = v.removeprefix("https://").removeprefix("http://").strip("/")
        if not host or "/" in host:
            raise ValueError(f"Invalid site host: {v!r}")
        return host.lower()

    @field_validator("header_overrides")
    @classmethod
    def normalize_headers(cls, v: dict[str, str]) -> dict[str, str]:
        return {str(k).lower(): str(val) for k, val in v.items()}

    @property
    def site_url(self) -> str:
        return f"https://{self.base_host}"
