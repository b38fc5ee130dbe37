"""
Telegram handlers: search, top hits, paginated results, downloads, web app
requests and the user's favorites, history and language.

Dependencies (``client``, ``search_store``, ``download_queue``, ``library``,
``config``) are injected by the dispatcher from its workflow data.
"""

import asyncio
import json
import logging
import sqlite3
import tempfile
from contextlib import suppress
from html import escape
from pathlib import Path

import aiohttp
from aiogram import F, Router
from aiogram.enums import ChatAction
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.filters import Command, CommandStart
from aiogram.types import CallbackQuery, FSInputFile, InlineKeyboardMarkup, Message
from pydantic import ValidationError

from vuxo_cli.api.client import VuxoClient
from vuxo_cli.core.download_queue import DownloadQueue
from vuxo_cli.exceptions import InvalidQueryError, LibraryError, VuxoCliError
from vuxo_cli.media.downloader import save_stream
from vuxo_cli.models.config import AppConfig
from vuxo_cli.models.track import Track
from vuxo_cli.storage.library import UserLibrary
from vuxo_cli.storage.search_store import SearchEntry, SearchStore
from vuxo_cli.utils.pagination import paginate
from vuxo_cli.utils.path import track_filename

from . import messages
from .keyboards import (
    NOOP,
    AllCallback,
    FavoriteCallback,
    LangCallback,
    PageCallback,
    PickCallback,
    favorite_kb,
    lang_kb,
    results_kb,
    web_app_kb,
)

router = Router(name="music")
log = logging.getLogger(__name__)

MAX_KEYWORD_LENGTH = 100

SEARCH_ERRORS = (VuxoCliError, aiohttp.ClientError)
DOWNLOAD_ERRORS = (VuxoCliError, aiohttp.ClientError, TelegramAPIError, OSError)
LIBRARY_ERRORS = (LibraryError, sqlite3.Error)


async def edit_or_reply(
    message: Message, text: str, reply_markup: InlineKeyboardMarkup | None = None
) -> None:
    """Edits ``message`` in place, falling back to a new message."""
    try:
        await message.edit_text(text, reply_markup=reply_markup)
    except TelegramBadRequest as e:
        if "not modified" in str(e).lower():
            return
        await message.answer(text, reply_markup=reply_markup)


async def show_results(message: Message, entry: SearchEntry, page_number: int) -> int:
    page = paginate(entry.tracks, page_number)
    await edit_or_reply(
        message, messages.result_text(entry, page), results_kb(entry.id, page)
    )
    return page.number


async def send_track(
    message: Message,
    user_id: int,
    track: Track,
    client: VuxoClient,
    download_queue: DownloadQueue,
    library: UserLibrary,
    reply_markup: InlineKeyboardMarkup | None = None,
) -> bool:
    """
    Downloads ``track`` through the download queue and sends it as audio.
    Failures are reported on the status message; returns whether the track
    was delivered.
    """
    name = escape(track.name)
    status = await message.answer(messages.DOWNLOAD_START_TEXT.format(name=name))

    async def _download_and_send() -> None:
        await message.bot.send_chat_action(message.chat.id, ChatAction.UPLOAD_DOCUMENT)
        stream = await client.open_audio_stream(track.audio_url)
        me = await message.bot.me()
        with tempfile.TemporaryDirectory(prefix="vuxo_") as tmpdir:
            path = Path(tmpdir) / track_filename(track)
            await save_stream(stream, path)
            await message.answer_audio(
                FSInputFile(path),
                title=track.title,
                performer=track.performer,
                caption=messages.AUDIO_CAPTION.format(name=name, username=me.username),
                reply_markup=reply_markup,
            )

    try:
        await download_queue.run(_download_and_send)
    except DOWNLOAD_ERRORS as e:
        log.error(f"[red]Failed to send '{track.name}': {e}[/red]")
        with suppress(TelegramAPIError):
            await status.edit_text(messages.DOWNLOAD_ERROR_TEXT.format(name=name))
        return False

    try:
        await library.add_to_recently_played(user_id, track)
    except LIBRARY_ERRORS as e:
        log.warning(f"Could not record recently played for {user_id}: {e}")
    with suppress(TelegramAPIError):
        await status.delete()
    return True


# Commands


@router.message(CommandStart())
async def cmd_start(message: Message, library: UserLibrary, config: AppConfig):
    user = message.from_user
    if user:
        try:
            await library.create_or_update_user(
                user.id,
                first_name=user.first_name or "",
                last_name=user.last_name or "",
                username=user.username or "",
            )
        except LIBRARY_ERRORS as e:
            log.warning(f"Could not store profile for {user.id}: {e}")

    name = escape((user.first_name or user.username or "") if user else "") or "there"
    markup = (
        web_app_kb(config.web_app_url, user.id)
        if config.web_app_url and user
        else None
    )
    await message.answer(messages.WELCOME_TEXT.format(name=name), reply_markup=markup)


@router.message(Command("help"))
async def cmd_help(message: Message):
    await message.answer(messages.HELP_TEXT)


@router.message(Command("about"))
async def cmd_about(message: Message):
    await message.answer(messages.ABOUT_TEXT)


@router.message(Command("app"))
async def cmd_app(message: Message, config: AppConfig):
    if not config.web_app_url:
        await message.answer(messages.APP_UNAVAILABLE_TEXT)
        return
    await message.answer(
        messages.APP_TEXT,
        reply_markup=web_app_kb(config.web_app_url, message.from_user.id),
    )


@router.message(Command("lang"))
async def cmd_lang(message: Message):
    await message.answer(messages.LANG_PICK_TEXT, reply_markup=lang_kb())


@router.callback_query(LangCallback.filter(F.code.in_(messages.LANGUAGES)))
async def cb_lang(
    callback: CallbackQuery, callback_data: LangCallback, library: UserLibrary
):
    try:
        await library.create_or_update_user(
            callback.from_user.id, language=callback_data.code
        )
    except LIBRARY_ERRORS as e:
        log.error(
            f"[red]Could not store language for {callback.from_user.id}: {e}[/red]"
        )
        await callback.answer(messages.LANG_ERROR_TEXT, show_alert=True)
        return

    language = messages.LANGUAGES[callback_data.code]
    await callback.answer(language)
    await edit_or_reply(
        callback.message, messages.LANG_SET_TEXT.format(language=language)
    )


@router.message(F.web_app_data)
async def web_app_data(
    message: Message,
    client: VuxoClient,
    download_queue: DownloadQueue,
    library: UserLibrary,
):
    """Handles ``{"action": "send_track", "track": {...}}`` sent by the app."""
    try:
        payload = json.loads(message.web_app_data.data)
        if not isinstance(payload, dict) or payload.get("action") != "send_track":
            log.debug(f"Ignoring web app data: {message.web_app_data.data!r}")
            return
        track = Track.model_validate(payload.get("track"))
    except (json.JSONDecodeError, ValidationError) as e:
        log.warning(f"Bad web app data from {message.from_user.id}: {e}")
        await message.answer(messages.WEB_APP_ERROR_TEXT)
        return

    await send_track(
        message, message.from_user.id, track, client, download_queue, library
    )


@router.message(Command("top"))
async def cmd_top(message: Message, client: VuxoClient, search_store: SearchStore):
    status = await message.answer(messages.LOADING_TOP_TEXT)
    try:
        tracks = await client.get_top_hits()
    except SEARCH_ERRORS as e:
        log.error(f"[red]Top hits failed: {e}[/red]")
        await edit_or_reply(status, messages.FAILED_TOP_TEXT)
        return

    search_id = search_store.save(messages.TOP_KEYWORD, tracks)
    await show_results(status, search_store.get(search_id), 0)


@router.message(Command("favorites"))
async def cmd_favorites(message: Message, library: UserLibrary):
    profile = await library.get_user(message.from_user.id)
    names = [t.name for t in profile.favorites] if profile else []
    await message.answer(messages.track_list_text(messages.FAVORITES_TITLE, names))


@router.message(Command("recent"))
async def cmd_recent(message: Message, library: UserLibrary):
    profile = await library.get_user(message.from_user.id)
    names = [t.name for t in profile.recently_played] if profile else []
    await message.answer(messages.track_list_text(messages.RECENT_TITLE, names))


@router.message(F.text)
async def text_search(message: Message, client: VuxoClient, search_store: SearchStore):
    keyword = message.text.strip()
    if not keyword or keyword.startswith("/") or len(keyword) > MAX_KEYWORD_LENGTH:
        await message.answer(messages.INVALID_TEXT)
        return

    log.info(f"Search from {message.from_user.id}: {keyword!r}")
    status = await message.answer(
        messages.SEARCHING_TEXT.format(keyword=escape(keyword))
    )
    try:
        tracks = await client.search_tracks(keyword)
    except InvalidQueryError:
        await edit_or_reply(status, messages.INVALID_TEXT)
        return
    except SEARCH_ERRORS as e:
        log.error(f"[red]Search for {keyword!r} failed: {e}[/red]")
        await edit_or_reply(status, messages.FAILED_SEARCH_TEXT)
        return

    if not tracks:
        await edit_or_reply(status, messages.NOT_FOUND_TEXT)
        return

    search_id = search_store.save(keyword, tracks)
    await show_results(status, search_store.get(search_id), 0)


# Callbacks


@router.callback_query(F.data == NOOP)
async def cb_noop(callback: CallbackQuery):
    await callback.answer()


@router.callback_query(PageCallback.filter())
async def cb_page(
    callback: CallbackQuery, callback_data: PageCallback, search_store: SearchStore
):
    entry = search_store.get(callback_data.search_id)
    if entry is None:
        await callback.answer(messages.EXPIRED_TEXT, show_alert=True)
        return
    number = await show_results(callback.message, entry, callback_data.page)
    await callback.answer(f"📄 {number + 1}")


@router.callback_query(PickCallback.filter())
async def cb_pick(
    callback: CallbackQuery,
    callback_data: PickCallback,
    client: VuxoClient,
    search_store: SearchStore,
    download_queue: DownloadQueue,
    library: UserLibrary,
):
    entry = search_store.get(callback_data.search_id)
    if entry is None:
        await callback.answer(messages.EXPIRED_TEXT, show_alert=True)
        return
    page = paginate(entry.tracks, callback_data.page)
    if page.track_at(callback_data.position) is None:
        await callback.answer("❌")
        return

    index = page.start + callback_data.position - 1
    await callback.answer(f"📥 {callback_data.position}")
    await send_track(
        callback.message,
        callback.from_user.id,
        entry.tracks[index],
        client,
        download_queue,
        library,
        favorite_kb(entry.id, index),
    )


@router.callback_query(AllCallback.filter())
async def cb_all(
    callback: CallbackQuery,
    callback_data: AllCallback,
    client: VuxoClient,
    search_store: SearchStore,
    download_queue: DownloadQueue,
    library: UserLibrary,
):
    entry = search_store.get(callback_data.search_id)
    if entry is None:
        await callback.answer(messages.EXPIRED_TEXT, show_alert=True)
        return
    page = paginate(entry.tracks, callback_data.page)
    total = len(page.items)

    await callback.answer(f"📥 {total}")
    status = await callback.message.answer(
        messages.SENDING_ALL_TEXT.format(count=total)
    )
    results = await asyncio.gather(
        *(
            send_track(
                callback.message,
                callback.from_user.id,
                entry.tracks[index],
                client,
                download_queue,
                library,
                favorite_kb(entry.id, index),
            )
            for index in range(page.start, page.start + total)
        ),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            log.error(f"[red]Page download task failed: {result}[/red]")
    ok = sum(1 for result in results if result is True)
    await edit_or_reply(status, messages.SENT_ALL_TEXT.format(ok=ok, total=total))


@router.callback_query(FavoriteCallback.filter())
async def cb_favorite(
    callback: CallbackQuery,
    callback_data: FavoriteCallback,
    search_store: SearchStore,
    library: UserLibrary,
):
    entry = search_store.get(callback_data.search_id)
    if entry is None or not 0 <= callback_data.index < len(entry.tracks):
        await callback.answer(messages.EXPIRED_TEXT, show_alert=True)
        return
    try:
        added = await library.add_to_favorites(
            callback.from_user.id, entry.tracks[callback_data.index]
        )
    except LIBRARY_ERRORS as e:
        log.error(f"[red]Could not add favorite for {callback.from_user.id}: {e}[/red]")
        await callback.answer(messages.FAVORITE_ERROR_TEXT, show_alert=True)
        return
    await callback.answer(
        messages.FAVORITE_ADDED_TEXT if added else messages.FAVORITE_EXISTS_TEXT
    )
