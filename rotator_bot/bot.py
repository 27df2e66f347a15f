# rotator_bot/bot.py
import asyncio
from urllib.parse import urlparse

import aiojobs
import orjson
from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.fsm.storage.memory import MemoryStorage
from aiohttp import web

from rotator_bot.data.settings import settings
from rotator_bot.handlers import error, menu, photo_handler, session_handler, utility
from rotator_bot.middlewares import StructLoggingMiddleware
from rotator_bot.services.session_registry import create_session_registry
from rotator_bot.utils import bot_commands, logging, smart_session
from rotator_bot.web_handlers.tg_updates import tg_webhook_handler


def setup_handlers(dp: Dispatcher) -> None:
    dp.include_router(error.router)
    dp.include_router(menu.router)
    dp.include_router(session_handler.router)
    dp.include_router(photo_handler.router)
    dp.include_router(utility.router)


def setup_middlewares(dp: Dispatcher) -> None:
    dp.update.outer_middleware(StructLoggingMiddleware(logger=dp["aiogram_logger"]))


def setup_logging(dp: Dispatcher) -> None:
    dp["aiogram_logger"] = logging.setup_logger().bind(type="aiogram")
    dp["business_logger"] = logging.setup_logger().bind(type="business")


def setup_sessions(dp: Dispatcher) -> None:
    """Builds the AI client and per-chat pipelines; a missing API key stops startup here."""
    logger = dp["aiogram_logger"]
    dp["sessions"] = create_session_registry(settings)
    logger.info(
        "Configured rotation sessions",
        client=settings.ai.client,
        prompt_model=settings.ai.prompt_model,
        image_model=settings.ai.image_model,
        step_delay_seconds=settings.rotation.step_delay_seconds,
        max_attempts=settings.rotation.retry.max_attempts,
    )


def setup_aiogram(dp: Dispatcher) -> None:
    logger = dp["aiogram_logger"]
    logger.debug("Configuring aiogram")
    setup_sessions(dp)
    setup_handlers(dp)
    setup_middlewares(dp)
    logger.info("Configured aiogram")


async def aiogram_on_startup_polling(dispatcher: Dispatcher, bot: Bot) -> None:
    await bot.delete_webhook(drop_pending_updates=True)
    await bot_commands.setup_bot_profile(bot)
    dispatcher["aiogram_logger"].info("Started polling")


async def aiogram_on_startup_webhook(dispatcher: Dispatcher, bot: Bot) -> None:
    webhook_logger = dispatcher["aiogram_logger"].bind(
        webhook_url=str(settings.webhook.address),
    )
    webhook_logger.debug("Configuring webhook")
    webhook_url_for_telegram = f"{str(settings.webhook.address).rstrip('/')}/bot/{settings.bot.id}"
    await bot.set_webhook(
        url=webhook_url_for_telegram,
        allowed_updates=dispatcher.resolve_used_update_types(),
        secret_token=settings.webhook.secret_token.get_secret_value(),
    )
    await bot_commands.setup_bot_profile(bot)
    webhook_logger.info("Configured webhook")


async def aiogram_on_shutdown(dispatcher: Dispatcher) -> None:
    dispatcher["aiogram_logger"].debug("Stopping bot")
    dispatcher["sessions"].reset_all()
    await dispatcher.storage.close()
    dispatcher["aiogram_logger"].info("Stopped bot")


async def setup_aiohttp_app(bot: Bot, dp: Dispatcher) -> web.Application:
    scheduler = aiojobs.Scheduler()
    app = web.Application()

    webhook_path = urlparse(str(settings.webhook.address)).path
    app.router.add_post(f"{webhook_path.rstrip('/')}/bot/{{bot_id}}", tg_webhook_handler)

    app["bot"] = bot
    app["dp"] = dp
    app["scheduler"] = scheduler
    app["settings"] = settings
    app.on_startup.append(aiohttp_on_startup)
    app.on_shutdown.append(aiohttp_on_shutdown)
    return app


async def aiohttp_on_startup(app: web.Application) -> None:
    dp: Dispatcher = app["dp"]
    workflow_data = {"app": app, "dispatcher": dp, "bot": app["bot"]}
    await dp.emit_startup(**workflow_data)


async def aiohttp_on_shutdown(app: web.Application) -> None:
    dp: Dispatcher = app["dp"]
    scheduler: aiojobs.Scheduler = app["scheduler"]
    await scheduler.close()
    workflow_data = {"app": app, "dispatcher": dp, "bot": app.get("bot")}
    await dp.emit_shutdown(**workflow_data)


def main() -> None:
    aiogram_session_logger = logging.setup_logger().bind(type="aiogram_session")
    session = smart_session.SmartAiogramAiohttpSession(
        json_loads=orjson.loads,
        logger=aiogram_session_logger,
    )
    bot = Bot(
        token=settings.bot.token.get_secret_value(),
        session=session,
        default=DefaultBotProperties(parse_mode="HTML"),
    )
    storage = MemoryStorage()
    dp = Dispatcher(storage=storage)
    setup_logging(dp)
    dp["aiogram_session_logger"] = aiogram_session_logger
    setup_aiogram(dp)
    dp.shutdown.register(aiogram_on_shutdown)

    if settings.webhook is None:
        dp.startup.register(aiogram_on_startup_polling)
        asyncio.run(dp.start_polling(bot, handle_signals=True))
        return

    dp.startup.register(aiogram_on_startup_webhook)
    web.run_app(
        setup_aiohttp_app(bot, dp),
        handle_signals=True,
        host=settings.webhook.listening_host,
        port=settings.webhook.listening_port,
    )


if __name__ == "__main__":
    main()
