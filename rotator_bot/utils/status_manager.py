# rotator_bot/utils/status_manager.py
import asyncio
import time
from contextlib import suppress

from aiogram import Bot
from aiogram.exceptions import TelegramBadRequest


class StatusMessageManager:
    """
    Owns the one progress message of a run.

    A text stays on screen for at least `min_duration` seconds before it is
    replaced or removed. Repeating the current text is a no-op, and nothing
    is sent once the message is gone.
    """

    def __init__(
        self,
        bot: Bot,
        chat_id: int,
        message_id: int,
        min_duration: float = 0.8,
        initial_text: str = "",
    ) -> None:
        self.bot = bot
        self.chat_id = chat_id
        self.message_id = message_id
        self.min_duration = min_duration
        self.text = initial_text
        self.deleted = False
        self._shown_at = time.monotonic()

    def _remaining(self) -> float:
        return max(0.0, self.min_duration - (time.monotonic() - self._shown_at))

    async def _hold(self) -> None:
        remaining = self._remaining()
        if remaining:
            await asyncio.sleep(remaining)

    async def update(self, text: str) -> None:
        if self.deleted or text == self.text:
            return
        await self._hold()
        # Status texts are plain; the bot's default parse mode is HTML.
        with suppress(TelegramBadRequest):
            await self.bot.edit_message_text(
                text=text,
                chat_id=self.chat_id,
                message_id=self.message_id,
                parse_mode=None,
            )
        self.text = text
        self._shown_at = time.monotonic()

    async def delete(self) -> None:
        if self.deleted:
            return
        await self._hold()
        self.deleted = True
        with suppress(TelegramBadRequest):
            await self.bot.delete_message(chat_id=self.chat_id, message_id=self.message_id)
