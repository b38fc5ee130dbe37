"""
Defines custom exceptions for the application to allow for more specific error handling.
"""

from enum import Enum


class VuxoCliError(Exception):
    """Base exception for all application-specific errors."""


class ConfigurationError(VuxoCliError):
    """Raised for issues related to configuration loading or validation."""


class RequestTimeoutError(VuxoCliError, TimeoutError):
    """Raised when an outbound request does not complete within its deadline."""


class HttpStatusError(VuxoCliError):
    """Raised when the remote site answers with a non-2xx status."""

    def __init__(self, status: int, url: str):
        super().__init__(f"HTTP {status} for {url}")
        self.status = status
        self.url = url


class PlaylistNotFoundError(VuxoCliError):
    """Raised when a page does not contain the track results container."""


class InvalidQueryError(VuxoCliError):
    """Raised when a search keyword is empty after sanitisation."""


class FileTooLargeError(VuxoCliError):
    """Raised when an audio file is larger than the configured size cap."""

    def __init__(self, size: int, limit: int):
        super().__init__(f"File exceeds {limit} bytes (got at least {size})")
        self.size = size
        self.limit = limit


class ErrorKind(Enum):
    """Discriminant for user library failures."""

    INVALID_USER = "invalid_user"
    INVALID_TRACK = "invalid_track"
    INVALID_PLAYLIST_NAME = "invalid_playlist_name"
    PLAYLIST_EXISTS = "playlist_exists"
    PLAYLIST_NOT_FOUND = "playlist_not_found"


class LibraryError(VuxoCliError):
    """Raised by the user library; inspect ``kind`` to tell failures apart."""

    def __init__(self, kind: ErrorKind, message: str):
        super().__init__(message)
        self.kind = kind
