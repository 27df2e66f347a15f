# rotator_bot/handlers/error.py
from contextlib import suppress

import structlog
from aiogram import Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.types import ErrorEvent, Update

from rotator_bot.utils.smart_session import is_benign_bad_request

logger = structlog.get_logger(__name__)

router = Router(name="error-handler")

ERROR_MESSAGE = (
    "😔 Oops! Something went wrong on our end.\n\n"
    "Please try again in a few moments or send /start."
)


def _chat_message(update: Update):
    if update.callback_query:
        return update.callback_query.message
    return update.message


@router.errors()
async def global_error_handler(event: ErrorEvent) -> bool:
    """
    Last stop for exceptions raised inside handlers. Rotation runs never get
    here; their failures end in the run state.
    """
    exception = event.exception
    update = event.update

    if update.callback_query:
        with suppress(TelegramBadRequest):
            await update.callback_query.answer()

    if isinstance(exception, TelegramBadRequest) and is_benign_bad_request(exception):
        logger.warning("Ignored non-critical Telegram error", error=str(exception), update_id=update.update_id)
        return True

    logger.error(
        "An unhandled exception occurred",
        exc_info=exception,
        update_id=update.update_id,
        update_type=update.event_type,
    )

    message = _chat_message(update)
    if message:
        with suppress(TelegramBadRequest):
            await message.answer(ERROR_MESSAGE)
    return True
