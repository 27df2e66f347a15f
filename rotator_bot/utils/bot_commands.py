# rotator_bot/utils/bot_commands.py
from aiogram import Bot
from aiogram.types import BotCommand, BotCommandScopeDefault

from rotator_bot.data import texts
from rotator_bot.data.texts import LocaleTexts


def build_commands(locale_texts: LocaleTexts) -> list[BotCommand]:
    return [BotCommand(command=cmd.command, description=cmd.description) for cmd in locale_texts.commands]


async def setup_bot_profile(bot: Bot) -> None:
    """
    Publishes the command menu, description and short description for every
    locale the bot ships texts for.
    """
    for lang_code, locale_texts in texts.ALL_TEXTS.items():
        await bot.set_my_commands(
            build_commands(locale_texts),
            scope=BotCommandScopeDefault(),
            language_code=lang_code,
        )
        info = locale_texts.bot_info
        await bot.set_my_description(description=info.description, language_code=lang_code)
        await bot.set_my_short_description(short_description=info.short_description, language_code=lang_code)
