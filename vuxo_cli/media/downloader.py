"""
Writes audio streams to disk.
"""

import logging
import os
from collections.abc import Callable
from pathlib import Path

import aiofiles

from vuxo_cli.media.stream import AudioStream

log = logging.getLogger(__name__)


async def save_stream(
    stream: AudioStream,
    destination_path: Path,
    on_chunk: Callable[[int], None] | None = None,
) -> int:
    """
    Streams ``stream`` into ``destination_path`` and returns the byte count.

    ``on_chunk`` is called with the size of every chunk written. A partially
    written file is removed before the error is re-raised.
    """
    bytes_written = 0
    try:
        async with stream, aiofiles.open(destination_path, "wb") as f:
            async for chunk in stream:
                await f.write(chunk)
                bytes_written += len(chunk)
                if on_chunk:
                    on_chunk(len(chunk))
    except BaseException:
        try:
            os.remove(destination_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            log.warning(f"Could not remove partial file '{destination_path}': {e}")
        raise
    log.debug(f"Saved {bytes_written} bytes to '{destination_path.name}'")
    return bytes_written
