"""
Media Layer.

This package is responsible for streaming audio files from the site and
writing them to disk.
"""

from .downloader import save_stream
from .stream import AudioStream, open_audio_stream

__all__ = ["AudioStream", "open_audio_stream", "save_stream"]
