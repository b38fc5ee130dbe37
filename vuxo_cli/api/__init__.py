"""
Site Access Layer.

This package handles all communication with the music site: page fetching,
HTML parsing and audio requests.
"""

from .client import VuxoClient, sanitize_keyword
from .parser import parse_tracks

__all__ = ["VuxoClient", "parse_tracks", "sanitize_keyword"]
