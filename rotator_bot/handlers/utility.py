# rotator_bot/handlers/utility.py
from aiogram import F, Router
from aiogram.filters import Command, StateFilter
from aiogram.types import Message

from rotator_bot.data import texts
from rotator_bot.data.settings import settings
from rotator_bot.states.user import Rotation

router = Router(name="utility-handlers")


@router.message(Command("help"))
async def help_cmd(msg: Message) -> None:
    locale = msg.from_user.language_code if msg.from_user else None
    await msg.answer(
        texts.get_texts(locale).help.format(email=settings.bot.support_email),
        parse_mode=None,
    )


@router.message(StateFilter(Rotation.processing), F.text)
async def handle_text_while_processing(msg: Message) -> None:
    await msg.answer("⏳ Still working on your image. Send /cancel to stop.")


@router.message(F.text | F.sticker | F.video | F.animation)
async def handle_unexpected_input(msg: Message) -> None:
    """Anything that isn't an image gets a nudge towards uploading one."""
    await msg.answer("Please send me a photo or an image file to rotate. Use /help for details.")
