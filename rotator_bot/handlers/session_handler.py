# rotator_bot/handlers/session_handler.py
from contextlib import suppress

import structlog
from aiogram import Router
from aiogram.exceptions import TelegramAPIError, TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import BufferedInputFile, CallbackQuery

from rotator_bot.data.constants import ARCHIVE_FILE_NAME, RotationMode
from rotator_bot.keyboards.inline import (
    SessionActionCallback,
    ShowPromptCallback,
    rotation_mode_kb,
)
from rotator_bot.keyboards.inline.session_actions import ACTION_DOWNLOAD, ACTION_RESET
from rotator_bot.services.archive import build_archive
from rotator_bot.services.errors import ArchiveError
from rotator_bot.services.session_registry import SessionRegistry
from rotator_bot.states.user import Rotation

router = Router(name="session-handler")

TELEGRAM_TEXT_LIMIT = 4096


def split_text(text: str, limit: int = TELEGRAM_TEXT_LIMIT) -> list[str]:
    """Splits long text into message-sized chunks, preferring line breaks."""
    parts: list[str] = []
    while len(text) > limit:
        cut = text.rfind("\n", 0, limit)
        if cut <= 0:
            cut = limit
        parts.append(text[:cut])
        text = text[cut:].lstrip("\n")
    if text:
        parts.append(text)
    return parts


@router.callback_query(SessionActionCallback.filter())
async def process_session_action(
    cb: CallbackQuery,
    callback_data: SessionActionCallback,
    state: FSMContext,
    sessions: SessionRegistry,
    business_logger: structlog.typing.FilteringBoundLogger,
) -> None:
    if not cb.message:
        await cb.answer()
        return
    chat_id = cb.message.chat.id
    log = business_logger.bind(chat_id=chat_id, action=callback_data.action)

    if callback_data.action == ACTION_DOWNLOAD:
        pipeline = sessions.peek(chat_id)
        if pipeline is None or not pipeline.state.is_finished:
            await cb.answer("There is nothing to download yet.", show_alert=True)
            return
        await cb.answer("Preparing your ZIP...")
        try:
            archive = build_archive(pipeline.state)
            await cb.message.answer_document(
                BufferedInputFile(archive, filename=ARCHIVE_FILE_NAME),
                caption="📦 The original and the three rotated views.",
            )
        except ArchiveError as e:
            log.warning("Archive export failed", error=str(e))
            await cb.message.answer(f"❌ {e.user_message}", parse_mode=None)
            return
        except TelegramAPIError as e:
            log.error("Failed to send archive", error=str(e))
            await cb.message.answer(f"❌ {ArchiveError().user_message}", parse_mode=None)
            return
        log.info("Sent archive", size=len(archive))

    elif callback_data.action == ACTION_RESET:
        await cb.answer()
        sessions.reset(chat_id)
        with suppress(TelegramBadRequest):
            await cb.message.edit_reply_markup(reply_markup=None)
        await state.clear()
        await state.set_state(Rotation.waiting_for_image)
        await state.update_data(object_only=False)
        await cb.message.answer(
            "Ready for a new image! Choose a mode and upload it.",
            reply_markup=rotation_mode_kb(RotationMode.SCENE),
        )
        log.info("Session reset by user")

    else:
        await cb.answer()


@router.callback_query(ShowPromptCallback.filter())
async def show_prompt(
    cb: CallbackQuery,
    callback_data: ShowPromptCallback,
    sessions: SessionRegistry,
) -> None:
    """Shows the angle instruction a generated view was rendered from."""
    pipeline = sessions.peek(cb.message.chat.id) if cb.message else None
    generated = pipeline.state.generated_images if pipeline else []
    if not 0 <= callback_data.index < len(generated):
        await cb.answer("This view belongs to an earlier run.", show_alert=True)
        return

    await cb.answer()
    header = f"📝 Prompt for view {callback_data.index + 1}:\n\n"
    for part in split_text(header + generated[callback_data.index].prompt):
        await cb.message.answer(part, parse_mode=None)
