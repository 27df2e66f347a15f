# rotator_bot/keyboards/inline/session_actions.py
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from .callbacks import SessionActionCallback, ShowPromptCallback

ACTION_DOWNLOAD = "download"
ACTION_RESET = "reset"


def session_actions_kb(is_finished: bool) -> InlineKeyboardMarkup:
    """
    Keyboard sent when a run ends. Download is only offered for a finished
    run with all three views.
    """
    buttons = []
    if is_finished:
        buttons.append([
            InlineKeyboardButton(
                text="⬇️ Download ZIP",
                callback_data=SessionActionCallback(action=ACTION_DOWNLOAD).pack(),
            )
        ])
    buttons.append([
        InlineKeyboardButton(
            text="🔄 Reset",
            callback_data=SessionActionCallback(action=ACTION_RESET).pack(),
        )
    ])
    return InlineKeyboardMarkup(inline_keyboard=buttons)


def show_prompt_kb(index: int) -> InlineKeyboardMarkup:
    return InlineKeyboardMarkup(inline_keyboard=[[
        InlineKeyboardButton(
            text="ℹ️ Show prompt",
            callback_data=ShowPromptCallback(index=index).pack(),
        )
    ]])
