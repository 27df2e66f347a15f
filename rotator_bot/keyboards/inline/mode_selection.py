# rotator_bot/keyboards/inline/mode_selection.py
from aiogram.types import InlineKeyboardMarkup, InlineKeyboardButton

from rotator_bot.data.constants import RotationMode
from .callbacks import RotationModeCallback


def rotation_mode_kb(current: RotationMode) -> InlineKeyboardMarkup:
    """
    Creates the "Rotate only object" toggle shown before an upload.
    The active mode is marked with a check.
    """
    def label(mode: RotationMode, text: str) -> str:
        return f"✅ {text}" if mode == current else text

    buttons = [
        [
            InlineKeyboardButton(
                text=label(RotationMode.SCENE, "🎥 Move the camera"),
                callback_data=RotationModeCallback(mode=RotationMode.SCENE.value).pack(),
            )
        ],
        [
            InlineKeyboardButton(
                text=label(RotationMode.OBJECT, "📦 Rotate only object"),
                callback_data=RotationModeCallback(mode=RotationMode.OBJECT.value).pack(),
            )
        ],
    ]
    return InlineKeyboardMarkup(inline_keyboard=buttons)
