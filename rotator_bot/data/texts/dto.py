# rotator_bot/data/texts/dto.py
from pydantic import BaseModel, ConfigDict


class BotCommandInfo(BaseModel):
    command: str
    description: str


class BotInfo(BaseModel):
    """Texts shown on the bot's profile page."""
    description: str
    short_description: str


class LocaleTexts(BaseModel):
    """
    Everything user-facing that varies by locale. `help` may contain an
    `{email}` placeholder for the support address.
    """
    model_config = ConfigDict(frozen=True)

    commands: list[BotCommandInfo]
    bot_info: BotInfo
    welcome: str
    help: str
