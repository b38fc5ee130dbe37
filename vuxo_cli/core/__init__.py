"""
Core Logic Layer.

Contains the download concurrency limiter and the batch download manager
used by the CLI.
"""

from .download_manager import DownloadManager
from .download_queue import DownloadQueue

__all__ = ["DownloadManager", "DownloadQueue"]
