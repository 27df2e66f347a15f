# rotator_bot/states/user.py
from aiogram.fsm.state import State, StatesGroup


class Rotation(StatesGroup):
    """
    Telegram-side view of a run. The run itself is tracked by the chat's
    RotationPipeline; these states only gate which input is accepted.
    """
    waiting_for_image = State()
    processing = State()
    waiting_for_next_action = State()
