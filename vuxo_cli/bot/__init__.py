"""
Telegram Bot Layer.

aiogram router, keyboards and message templates for searching and
downloading tracks from a chat.
"""

from .app import make_bot, make_dispatcher, run_bot

__all__ = ["make_bot", "make_dispatcher", "run_bot"]
