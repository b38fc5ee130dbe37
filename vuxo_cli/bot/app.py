"""
Builds and runs the Telegram bot.
"""

import logging

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode

from vuxo_cli.api.client import VuxoClient
from vuxo_cli.core.download_queue import DownloadQueue
from vuxo_cli.exceptions import ConfigurationError
from vuxo_cli.models.config import AppConfig
from vuxo_cli.storage.library import UserLibrary
from vuxo_cli.storage.search_store import SearchStore

from .handlers import router

log = logging.getLogger(__name__)


def make_bot(token: str) -> Bot:
    return Bot(
        token=token,
        default=DefaultBotProperties(parse_mode=ParseMode.HTML),
    )


def make_dispatcher(
    config: AppConfig,
    client: VuxoClient,
    search_store: SearchStore,
    download_queue: DownloadQueue,
    library: UserLibrary,
) -> Dispatcher:
    """Creates the dispatcher; keyword arguments become handler dependencies."""
    dp = Dispatcher(
        config=config,
        client=client,
        search_store=search_store,
        download_queue=download_queue,
        library=library,
    )
    dp.include_router(router)
    return dp


async def run_bot(config: AppConfig) -> None:
    """Runs long polling until the process is interrupted."""
    if not config.bot_token:
        raise ConfigurationError("BOT_TOKEN is required to run the bot.")

    logging.getLogger("aiogram.event").setLevel(logging.WARNING)

    search_store = SearchStore()
    download_queue = DownloadQueue(config.max_parallel_downloads)
    library = UserLibrary(config.database_path)
    bot = make_bot(config.bot_token)

    async with VuxoClient(config) as client:
        dp = make_dispatcher(config, client, search_store, download_queue, library)
        await search_store.start_background_sweep()
        log.info(
            f"🚀 Bot started (max {config.max_parallel_downloads} parallel downloads)"
        )
        try:
            await dp.start_polling(bot, allowed_updates=dp.resolve_used_update_types())
        finally:
            await search_store.stop_background_sweep()
            await bot.session.close()
