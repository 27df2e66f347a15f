# rotator_bot/handlers/menu.py
from contextlib import suppress

from aiogram import Bot, Router
from aiogram.exceptions import TelegramBadRequest
from aiogram.filters import Command, StateFilter
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message

from rotator_bot.data import texts
from rotator_bot.data.constants import RotationMode
from rotator_bot.keyboards.inline import RotationModeCallback, rotation_mode_kb
from rotator_bot.services.session_registry import SessionRegistry
from rotator_bot.states.user import Rotation

router = Router(name="menu-handlers")


async def _cleanup_session_menu(bot: Bot, chat_id: int, state: FSMContext) -> None:
    """
    Removes the closing "what next" message of the previous run.
    Generated photos stay in the chat.
    """
    user_data = await state.get_data()
    next_step_message_id = user_data.get("next_step_message_id")
    if next_step_message_id:
        with suppress(TelegramBadRequest):
            await bot.delete_message(chat_id=chat_id, message_id=next_step_message_id)


async def send_welcome_message(
    msg: Message,
    bot: Bot,
    state: FSMContext,
    sessions: SessionRegistry,
    is_restart: bool = False,
) -> None:
    """Resets the chat's run and asks for an image with the mode toggle attached."""
    await _cleanup_session_menu(bot, msg.chat.id, state)
    sessions.reset(msg.chat.id)

    await state.clear()
    await state.set_state(Rotation.waiting_for_image)
    await state.update_data(object_only=False)

    if is_restart:
        text = "Alright, let's start fresh! Send me a new image to rotate."
    else:
        locale = msg.from_user.language_code if msg.from_user else None
        text = texts.get_texts(locale).welcome

    await msg.answer(text, reply_markup=rotation_mode_kb(RotationMode.SCENE))


@router.message(Command("start", "menu"), StateFilter("*"))
async def start_flow(msg: Message, bot: Bot, state: FSMContext, sessions: SessionRegistry) -> None:
    await send_welcome_message(msg, bot, state, sessions)


@router.message(Command("cancel"), StateFilter("*"))
async def cancel_flow(msg: Message, bot: Bot, state: FSMContext, sessions: SessionRegistry) -> None:
    """Handles /cancel: stops an in-flight run and starts over."""
    await send_welcome_message(msg, bot, state, sessions, is_restart=True)


@router.callback_query(RotationModeCallback.filter(), StateFilter("*"))
async def toggle_rotation_mode(
    cb: CallbackQuery,
    callback_data: RotationModeCallback,
    state: FSMContext,
) -> None:
    """Stores the chosen mode; it applies to the next uploaded image."""
    mode = RotationMode(callback_data.mode)
    await state.update_data(object_only=mode == RotationMode.OBJECT)
    await cb.answer(
        "Only the object will rotate." if mode == RotationMode.OBJECT else "The camera will move around the scene."
    )
    if cb.message:
        with suppress(TelegramBadRequest):
            await cb.message.edit_reply_markup(reply_markup=rotation_mode_kb(mode))
