# rotator_bot/utils/smart_session.py
import asyncio
import time
from typing import Any

import structlog.typing
from aiogram import Bot
from aiogram.client.session.aiohttp import AiohttpSession
from aiogram.exceptions import (
    RestartingTelegram,
    TelegramBadRequest,
    TelegramRetryAfter,
    TelegramServerError,
)
from aiogram.methods.base import TelegramMethod, TelegramType

# Races between the status message and user actions produce these; they are expected.
BENIGN_BAD_REQUESTS = ("message to delete not found", "message is not modified")


def is_benign_bad_request(exc: TelegramBadRequest) -> bool:
    text = str(exc).lower()
    return any(marker in text for marker in BENIGN_BAD_REQUESTS)


class SmartAiogramAiohttpSession(AiohttpSession):
    """
    Bot API session that logs each call with its duration and waits out
    flood control and Telegram outages instead of failing the handler.
    Photo and ZIP uploads are logged by method name only.
    """

    MAX_BACKOFF_SECONDS: int = 64

    def __init__(self, logger: structlog.typing.FilteringBoundLogger, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self._logger = logger

    def _backoff(self, attempt: int) -> int:
        return min(2**attempt, self.MAX_BACKOFF_SECONDS)

    async def make_request(
        self,
        bot: Bot,
        method: TelegramMethod[TelegramType],
        timeout: int | None = None,
    ) -> TelegramType:
        log = self._logger.bind(bot=bot.id, method=method.__api_method__)
        attempt = 0
        while True:
            attempt += 1
            started = time.monotonic()
            try:
                result = await super().make_request(bot, method, timeout)
            except TelegramRetryAfter as e:
                log.warning("Flood control, waiting", retry_after=e.retry_after, attempt=attempt)
                await asyncio.sleep(e.retry_after)
                continue
            except (RestartingTelegram, TelegramServerError) as e:
                delay = self._backoff(attempt)
                log.warning("Telegram unavailable, retrying", error=str(e), attempt=attempt, delay=delay)
                await asyncio.sleep(delay)
                continue
            except TelegramBadRequest as e:
                elapsed_ms = (time.monotonic() - started) * 1000
                if is_benign_bad_request(e):
                    log.warning("API warning (non-critical)", error=str(e), time_spent_ms=elapsed_ms)
                else:
                    log.error("API error: TelegramBadRequest", error=str(e), time_spent_ms=elapsed_ms)
                raise
            except Exception as e:
                log.exception("API error", error=str(e), time_spent_ms=(time.monotonic() - started) * 1000)
                raise

            log.debug("API response", attempt=attempt, time_spent_ms=(time.monotonic() - started) * 1000)
            return result
