"""
vuxo-cli: search, download and collect music from vuxo7.com from the
terminal or through a Telegram bot.
"""

__version__ = "0.3.0"
