"""
Storage Layer.

This package handles all state: configuration loading, the in-memory search
result store and the SQLite user library.
"""

from .config_manager import ConfigManager
from .library import UserLibrary
from .search_store import SearchEntry, SearchStore

__all__ = ["ConfigManager", "SearchEntry", "SearchStore", "UserLibrary"]
