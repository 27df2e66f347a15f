# rotator_bot/keyboards/inline/callbacks.py
from aiogram.filters.callback_data import CallbackData


class RotationModeCallback(CallbackData, prefix="rot_mode"):
    """Callback for switching between scene and object-only rotation."""
    mode: str


class ShowPromptCallback(CallbackData, prefix="show_prompt"):
    """Callback to show the angle prompt a generated view was rendered from."""
    index: int


class SessionActionCallback(CallbackData, prefix="session_action"):
    """Callback for actions on a finished or failed run (download, reset)."""
    action: str
