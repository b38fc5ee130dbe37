"""
Async client for the vuxo7 site: fetches result pages with retries, parses
them into tracks and opens size-capped audio streams.
"""

import asyncio
import logging
import re

import aiofiles
import aiohttp

from vuxo_cli.exceptions import (
    HttpStatusError,
    InvalidQueryError,
    PlaylistNotFoundError,
    RequestTimeoutError,
)
from vuxo_cli.media.stream import AudioStream, open_audio_stream
from vuxo_cli.models.config import AppConfig
from vuxo_cli.models.track import Track
from vuxo_cli.utils.retry import RetryPolicy

from .headers import build_audio_headers, build_page_headers
from .parser import parse_tracks

log = logging.getLogger(__name__)

RETRYABLE_ERRORS = (
    RequestTimeoutError,
    HttpStatusError,
    PlaylistNotFoundError,
    aiohttp.ClientError,
)

_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")


def sanitize_keyword(keyword: str | None) -> str:
    """
    Turns a free-text query into the subdomain label the site expects:
    punctuation removed, lower-cased, words joined by hyphens.
    """
    cleaned = _PUNCTUATION.sub("", str(keyword or "")).strip().lower()
    return _WHITESPACE.sub("-", cleaned)


class VuxoClient:
    """
    Async client for the site's HTML pages and audio CDN.

    Features:
    - Retries page fetches with exponential backoff
    - Hard timeout on every outbound request
    - Size-capped audio streaming
    - Connection pooling
    """

    def __init__(self, config: AppConfig, retry_policy: RetryPolicy | None = None):
        self.config = config
        self.retry_policy = retry_policy or RetryPolicy()
        self.page_headers = build_page_headers(config.header_overrides)
        self.audio_headers = build_audio_headers(
            config.base_host, config.header_overrides
        )
        self._session: aiohttp.ClientSession | None = None

    async def __aenter__(self) -> "VuxoClient":
        await self._initialize_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    async def _initialize_session(self) -> aiohttp.ClientSession:
        """Ensures an active aiohttp session is available."""
        if self._session is None or self._session.closed:
            workers = self.config.max_parallel_downloads
            connector = aiohttp.TCPConnector(
                limit=workers * 2 + 4,
                limit_per_host=workers + 2,
                ttl_dns_cache=300,
                enable_cleanup_closed=True,
            )
            self._session = aiohttp.ClientSession(connector=connector)
        return self._session

    async def close(self) -> None:
        """Gracefully closes the aiohttp session."""
        if self._session and not self._session.closed:
            await self._session.close()

    async def fetch_text(self, url: str) -> str:
        """
        GETs a page and returns its body.

        Raises:
            RequestTimeoutError: If the request exceeds ``request_timeout``.
            HttpStatusError: On a non-2xx response.
        """
        session = await self._initialize_session()
        timeout = aiohttp.ClientTimeout(total=self.config.request_timeout)
        try:
            async with session.get(
                url, headers=self.page_headers, timeout=timeout, allow_redirects=True
            ) as r:
                html = await r.text(errors="replace")
                if self.config.debug_html:
                    await self._dump_html(html)
                if not 200 <= r.status < 300:
                    raise HttpStatusError(r.status, url)
                return html
        except asyncio.TimeoutError as e:
            raise RequestTimeoutError(
                f"Request to {url} timed out after {self.config.request_timeout}s"
            ) from e

    async def _dump_html(self, html: str) -> None:
        try:
            async with aiofiles.open(
                self.config.debug_html_path, "w", encoding="utf-8"
            ) as f:
                await f.write(html)
        except OSError as e:
            log.debug(f"Could not write debug HTML: {e}")

    async def fetch_tracks(self, url: str) -> list[Track]:
        """Fetches and parses a result page, retrying transient failures."""
        policy = self.retry_policy
        last_exception: Exception | None = None
        for attempt in range(policy.attempts):
            try:
                return parse_tracks(await self.fetch_text(url))
            except RETRYABLE_ERRORS as e:
                last_exception = e
                log.debug(
                    f"Fetch attempt {attempt + 1}/{policy.attempts} for {url}"
                    f" failed: {e}"
                )
                if attempt < policy.attempts - 1:
                    await policy.wait(attempt)

        raise last_exception

    async def get_top_hits(self) -> list[Track]:
        return await self.fetch_tracks(self.config.site_url)

    async def search_tracks(self, keyword: str) -> list[Track]:
        """
        Searches the site for ``keyword``.

        Raises:
            InvalidQueryError: If nothing searchable is left after sanitising.
        """
        cleaned = sanitize_keyword(keyword)
        if not cleaned:
            raise InvalidQueryError(f"Empty keyword after sanitisation: {keyword!r}")
        return await self.fetch_tracks(f"https://{cleaned}.{self.config.base_host}")

    async def open_audio_stream(self, url: str) -> AudioStream:
        session = await self._initialize_session()
        return await open_audio_stream(
            session,
            url,
            headers=self.audio_headers,
            timeout=self.config.request_timeout,
            max_size=self.config.max_file_size,
        )
