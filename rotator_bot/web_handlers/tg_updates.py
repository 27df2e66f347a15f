# rotator_bot/web_handlers/tg_updates.py
import secrets
from typing import TYPE_CHECKING, Any

import orjson
import structlog
from aiogram import Bot, Dispatcher, types
from aiohttp import web

if TYPE_CHECKING:
    import aiojobs

    from rotator_bot.data.settings import Settings

SECRET_HEADER = "X-Telegram-Bot-Api-Secret-Token"

logger = structlog.get_logger(__name__)


def _is_authorized(req: web.Request, config: "Settings") -> bool:
    """The path must carry our bot id and the header our webhook secret."""
    if config.webhook is None:
        return False
    expected = config.webhook.secret_token.get_secret_value()
    if not secrets.compare_digest(req.headers.get(SECRET_HEADER, ""), expected):
        return False
    return req.match_info.get("bot_id") == str(config.bot.id)


async def feed_update(bot: Bot, dp: Dispatcher, payload: dict[str, Any], workflow_data: dict[str, Any]) -> None:
    update = types.Update.model_validate(payload, context={"bot": bot})
    await dp.feed_webhook_update(bot, update, **workflow_data)


async def tg_webhook_handler(req: web.Request) -> web.Response:
    """
    Accepts a Telegram update and schedules it on the aiojobs scheduler so
    the webhook answers immediately. Long rotation runs never block it.
    """
    config: Settings = req.app["settings"]
    if not _is_authorized(req, config):
        raise web.HTTPNotFound

    scheduler: aiojobs.Scheduler = req.app["scheduler"]
    if scheduler.closed:
        raise web.HTTPServiceUnavailable(reason="Closed queue")
    if scheduler.pending_count > config.bot.max_updates_in_queue:
        logger.warning("Webhook queue is full", pending=scheduler.pending_count)
        raise web.HTTPTooManyRequests

    dp: Dispatcher = req.app["dp"]
    payload = await req.json(loads=orjson.loads)
    workflow_data = {"app": req.app, "scheduler": scheduler}
    await scheduler.spawn(feed_update(req.app["bot"], dp, payload, workflow_data))
    return web.Response()
