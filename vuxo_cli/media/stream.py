"""
Opens audio files as size-capped, single-pass byte streams.
"""

import asyncio
import logging
from collections.abc import AsyncIterator

import aiohttp

from vuxo_cli.exceptions import FileTooLargeError, HttpStatusError, RequestTimeoutError

log = logging.getLogger(__name__)


class AudioStream:
    """
    A pull-based stream over an HTTP response body.

    Counts bytes as they pass and fails with FileTooLargeError the moment the
    total exceeds ``max_size``, whatever the server claimed in its headers.
    The stream can be iterated once; the response is released when iteration
    ends, fails, or the stream is closed.
    """

    CHUNK_SIZE = 65536  # 64 KB

    def __init__(self, response: aiohttp.ClientResponse, max_size: int):
        self._response = response
        self.max_size = max_size
        self.bytes_read = 0
        self._started = False
        self._closed = False

    @property
    def content_length(self) -> int | None:
        return self._response.content_length

    @property
    def closed(self) -> bool:
        return self._closed

    def __aiter__(self) -> AsyncIterator[bytes]:
        if self._started or self._closed:
            raise RuntimeError("Audio streams can only be read once.")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[bytes]:
        try:
            async for chunk in self._response.content.iter_chunked(self.CHUNK_SIZE):
                self.bytes_read += len(chunk)
                if self.bytes_read > self.max_size:
                    raise FileTooLargeError(self.bytes_read, self.max_size)
                yield chunk
        finally:
            await self.aclose()

    async def aclose(self) -> None:
        if not self._closed:
            self._closed = True
            self._response.close()

    async def __aenter__(self) -> "AudioStream":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()


async def open_audio_stream(
    session: aiohttp.ClientSession,
    url: str,
    headers: dict[str, str],
    timeout: float,
    max_size: int,
) -> AudioStream:
    """
    Requests an audio file and returns its body as an AudioStream.

    ``timeout`` bounds the time until the response headers arrive; reading
    the body afterwards is only bounded by per-read socket stalls.

    Raises:
        RequestTimeoutError: If the server does not answer in time.
        HttpStatusError: On a non-2xx response.
        FileTooLargeError: If the declared Content-Length exceeds ``max_size``.
    """
    request_timeout = aiohttp.ClientTimeout(
        total=None, sock_connect=timeout, sock_read=60
    )
    try:
        response = await asyncio.wait_for(
            session.get(
                url, headers=headers, timeout=request_timeout, allow_redirects=True
            ),
            timeout,
        )
    except asyncio.TimeoutError as e:
        raise RequestTimeoutError(f"Audio request timed out after {timeout}s") from e

    if not 200 <= response.status < 300:
        response.close()
        raise HttpStatusError(response.status, url)

    declared = response.content_length
    if declared is not None and declared > max_size:
        response.close()
        raise FileTooLargeError(declared, max_size)

    log.debug(f"Opened audio stream {url} ({declared or 'unknown'} bytes)")
    return AudioStream(response, max_size)
