# Message templates for the Telegram bot. All texts use HTML parse mode.

from html import escape

from vuxo_cli.storage.search_store import SearchEntry
from vuxo_cli.utils.pagination import Page

TOP_KEYWORD = "Top hits"

WELCOME_TEXT = (
    "🎵 <b>Hi, {name}!</b>\n\n"
    "Send me a song or artist name and I'll find it for you.\n\n"
    "• /top - today's most popular tracks\n"
    "• /favorites - your saved tracks\n"
    "• /recent - recently played\n"
    "• /lang - choose your language\n"
    "• /app - open the app\n"
    "• /about - about this bot\n"
    "• /help - how it works"
)

HELP_TEXT = (
    "❓ <b>How to use the bot</b>\n\n"
    "1️⃣ Type a song or artist name\n"
    "2️⃣ Tap a number to download that track\n"
    "3️⃣ Use ◀ ▶ to flip pages, or the middle button to get the whole page\n"
    "4️⃣ Tap ⭐ under a track to keep it in /favorites"
)

OPEN_APP_BUTTON = "🎧 Open the app"
ALL_BUTTON = "⬇️ All"
FAVORITE_BUTTON = "⭐ Favorite"

LOADING_TOP_TEXT = "⏳ Loading top hits..."
SEARCHING_TEXT = "🔍 Searching for <b>{keyword}</b>..."
INVALID_TEXT = "⚠️ Please send a song or artist name (up to 100 characters)."
NOT_FOUND_TEXT = "😕 Nothing found. Try another spelling."
FAILED_SEARCH_TEXT = "❌ Search failed. Please try again in a minute."
FAILED_TOP_TEXT = "❌ Failed to load the top list. Please try again later."
EXPIRED_TEXT = "⌛ These results have expired. Please search again."

DOWNLOAD_START_TEXT = "⬇️ Downloading <b>{name}</b>..."
DOWNLOAD_ERROR_TEXT = "❌ Could not download <b>{name}</b>."
SENDING_ALL_TEXT = "📦 Sending {count} tracks..."
SENT_ALL_TEXT = "✅ Sent {ok} of {total} tracks."
AUDIO_CAPTION = "🎵 <b>{name}</b>\n\n🔍 @{username}"

FAVORITE_ADDED_TEXT = "⭐ Added to favorites"
FAVORITE_EXISTS_TEXT = "Already in favorites"
FAVORITE_ERROR_TEXT = "❌ Could not save to favorites"
FAVORITES_TITLE = "⭐ <b>Favorites</b>"
RECENT_TITLE = "🕘 <b>Recently played</b>"
EMPTY_LIST_TEXT = "Nothing here yet."

ABOUT_TEXT = (
    "ℹ️ <b>About</b>\n\n"
    "Finds tracks on vuxo7.com and sends them to you as audio.\n"
    "Results are kept for an hour; search again if a list has expired."
)
APP_TEXT = "🎧 Browse, search and play tracks in the app."
APP_UNAVAILABLE_TEXT = "The app is not available right now."

LANGUAGES = {"uz": "🇺🇿 O'zbekcha", "ru": "🇷🇺 Русский", "en": "🇬🇧 English"}
LANG_PICK_TEXT = "🌐 Choose your language:"
LANG_SET_TEXT = "✅ Language set: <b>{language}</b>"
LANG_ERROR_TEXT = "❌ Could not save your language"

WEB_APP_ERROR_TEXT = "⚠️ The app sent a track I could not read."


def result_text(entry: SearchEntry, page: Page) -> str:
    """Renders one page of a search entry as a numbered list."""
    if entry.keyword == TOP_KEYWORD:
        header = f"⭐ <b>{TOP_KEYWORD}</b>"
    else:
        header = f"🔍 <b>{escape(entry.keyword)}</b>"
    count_line = (
        f"{len(entry.tracks)} tracks, page {page.number + 1}/{page.total_pages}"
    )
    lines = [header, "━━━━━━━━━━━━━━━━", count_line, "━━━━━━━━━━━━━━━━", ""]
    for i, track in enumerate(page.items, start=page.start + 1):
        lines.append(f"<b>{i}.</b> {escape(track.name)}")
    lines.append("")
    lines.append("<i>Tap a number to download</i>")
    return "\n".join(lines)


def track_list_text(title: str, names: list[str]) -> str:
    if not names:
        return f"{title}\n\n{EMPTY_LIST_TEXT}"
    body = "\n".join(f"<b>{i}.</b> {escape(n)}" for i, n in enumerate(names, start=1))
    return f"{title}\n\n{body}"
