# rotator_bot/keyboards/inline/__init__.py
from .callbacks import RotationModeCallback, SessionActionCallback, ShowPromptCallback
from .mode_selection import rotation_mode_kb
from .session_actions import session_actions_kb, show_prompt_kb

__all__ = [
    "RotationModeCallback",
    "SessionActionCallback",
    "ShowPromptCallback",
    "rotation_mode_kb",
    "session_actions_kb",
    "show_prompt_kb",
]
