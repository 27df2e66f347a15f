# rotator_bot/middlewares/structlog_middleware.py
import time
from collections.abc import Awaitable, Callable
from typing import Any

import structlog
from aiogram import BaseMiddleware
from aiogram.types import TelegramObject, Update


def _describe_update(update: Update) -> dict[str, Any]:
    """Picks the few fields worth logging; message bodies and files are left out."""
    info: dict[str, Any] = {"update_id": update.update_id, "update_type": update.event_type}
    if update.message:
        msg = update.message
        info.update(
            chat_id=msg.chat.id,
            user_id=msg.from_user.id if msg.from_user else None,
            has_photo=bool(msg.photo),
            has_document=bool(msg.document),
            text=msg.text if msg.text and msg.text.startswith("/") else None,
        )
    elif update.callback_query:
        cb = update.callback_query
        info.update(
            chat_id=cb.message.chat.id if cb.message else None,
            user_id=cb.from_user.id,
            callback_data=cb.data,
        )
    return info


class StructLoggingMiddleware(BaseMiddleware):
    """Logs every incoming update and how long its handlers took."""

    def __init__(self, logger: structlog.typing.FilteringBoundLogger) -> None:
        self.logger = logger
        super().__init__()

    async def __call__(
        self,
        handler: Callable[[TelegramObject, dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: dict[str, Any],
    ) -> Any:
        if not isinstance(event, Update):
            return await handler(event, data)

        log = self.logger.bind(**_describe_update(event))
        st = time.monotonic()
        log.debug("Received update")
        try:
            result = await handler(event, data)
        except Exception:
            log.exception("Update handling failed", time_spent_ms=(time.monotonic() - st) * 1000)
            raise
        log.info("Handled update", time_spent_ms=(time.monotonic() - st) * 1000)
        return result
