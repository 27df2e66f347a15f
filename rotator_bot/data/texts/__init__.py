# rotator_bot/data/texts/__init__.py
from .dto import BotCommandInfo, BotInfo, LocaleTexts
from .en import texts as en_texts

DEFAULT_LOCALE = "en"

ALL_TEXTS: dict[str, LocaleTexts] = {
    DEFAULT_LOCALE: en_texts,
}


def get_texts(language_code: str | None) -> LocaleTexts:
    """
    Picks texts by a Telegram language code ("en", "en-US"), falling back to
    the default locale.
    """
    lang = (language_code or DEFAULT_LOCALE).split("-")[0].lower()
    return ALL_TEXTS.get(lang, ALL_TEXTS[DEFAULT_LOCALE])


__all__ = ["ALL_TEXTS", "DEFAULT_LOCALE", "BotCommandInfo", "BotInfo", "LocaleTexts", "get_texts"]
