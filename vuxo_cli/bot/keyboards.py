"""
Inline keyboards and their callback data.
"""

from aiogram.filters.callback_data import CallbackData
from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup, WebAppInfo
from aiogram.utils.keyboard import InlineKeyboardBuilder

from vuxo_cli.utils.pagination import PAGE_SIZE, Page

from . import messages

NOOP = "noop"


class PageCallback(CallbackData, prefix="page"):
    search_id: int
    page: int


class PickCallback(CallbackData, prefix="pick"):
    search_id: int
    page: int
    position: int


class AllCallback(CallbackData, prefix="all"):
    search_id: int
    page: int


class FavoriteCallback(CallbackData, prefix="fav"):
    search_id: int
    index: int


class LangCallback(CallbackData, prefix="lang"):
    code: str


def results_kb(search_id: int, page: Page) -> InlineKeyboardMarkup:
    """
    Two rows of five numbered buttons (dots for empty slots) and a
    ◀ / all / ▶ navigation row.
    """
    builder = InlineKeyboardBuilder()
    for position in range(1, PAGE_SIZE + 1):
        if position <= len(page.items):
            builder.button(
                text=str(position),
                callback_data=PickCallback(
                    search_id=search_id, page=page.number, position=position
                ),
            )
        else:
            builder.button(text="·", callback_data=NOOP)

    prev_data = (
        PageCallback(search_id=search_id, page=page.number - 1)
        if page.has_previous
        else NOOP
    )
    next_data = (
        PageCallback(search_id=search_id, page=page.number + 1)
        if page.has_next
        else NOOP
    )
    builder.button(text="◀", callback_data=prev_data)
    builder.button(
        text=messages.ALL_BUTTON,
        callback_data=AllCallback(search_id=search_id, page=page.number),
    )
    builder.button(text="▶", callback_data=next_data)
    builder.adjust(5, 5, 3)
    return builder.as_markup()


def favorite_kb(search_id: int, index: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text=messages.FAVORITE_BUTTON,
                    callback_data=FavoriteCallback(
                        search_id=search_id, index=index
                    ).pack(),
                )
            ]
        ]
    )


def web_app_kb(web_app_url: str, user_id: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(
        inline_keyboard=[
            [
                InlineKeyboardButton(
                    text=messages.OPEN_APP_BUTTON,
                    web_app=WebAppInfo(url=f"{web_app_url}?user={user_id}"),
                )
            ]
        ]
    )


def lang_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for code, label in messages.LANGUAGES.items():
        builder.button(text=label, callback_data=LangCallback(code=code))
    builder.adjust(3)
    return builder.as_markup()
