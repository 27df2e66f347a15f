# rotator_bot/handlers/photo_handler.py
import asyncio

import structlog
from aiogram import Bot, F, Router
from aiogram.fsm.context import FSMContext
from aiogram.types import Message

from rotator_bot.data.settings import settings
from rotator_bot.services.rotation_pipeline import STATUS_READING
from rotator_bot.services.rotation_worker import run_rotation_worker
from rotator_bot.services.session_registry import SessionRegistry
from rotator_bot.states.user import Rotation

router = Router(name="photo-handler")

BUSY_MESSAGE = "⏳ I'm still working on your previous image. Please wait for it to finish or send /cancel."

# Keeps references to running workers so they are not garbage collected.
_worker_tasks: set[asyncio.Task] = set()


def _extract_upload(msg: Message) -> tuple[str, str | None] | None:
    """Returns (file_id, declared MIME type) for a photo or an image document."""
    if msg.photo:
        # Telegram re-encodes photos as JPEG; the last size is the largest.
        return msg.photo[-1].file_id, "image/jpeg"
    if msg.document and (msg.document.mime_type or "").startswith("image/"):
        return msg.document.file_id, msg.document.mime_type
    return None


@router.message(F.document & ~F.document.mime_type.startswith("image/"))
async def reject_non_image_document(msg: Message) -> None:
    await msg.answer("That file doesn't look like an image. Please send a photo or an image file.")


@router.message(F.photo | F.document)
async def handle_image_upload(
    msg: Message,
    state: FSMContext,
    bot: Bot,
    sessions: SessionRegistry,
    business_logger: structlog.typing.FilteringBoundLogger,
) -> None:
    upload = _extract_upload(msg)
    if upload is None:
        return
    file_id, declared_mime = upload

    pipeline = sessions.get(msg.chat.id)
    if pipeline.is_busy:
        await msg.answer(BUSY_MESSAGE)
        return

    # Claimed before any await so a second upload in the same chat sees it.
    await pipeline.begin_upload()

    try:
        user_data = await state.get_data()
        object_only = bool(user_data.get("object_only", False))
        await state.set_state(Rotation.processing)
        status_msg = await msg.answer(STATUS_READING)
    except Exception:
        pipeline.reset()
        raise

    business_logger.info(
        "Accepted image upload",
        chat_id=msg.chat.id,
        declared_mime=declared_mime,
        object_only=object_only,
    )

    task = asyncio.create_task(
        run_rotation_worker(
            bot=bot,
            chat_id=msg.chat.id,
            status_message_id=status_msg.message_id,
            pipeline=pipeline,
            file_id=file_id,
            declared_mime=declared_mime,
            object_only=object_only,
            state=state,
            business_logger=business_logger,
            status_min_duration=settings.rotation.status_min_duration,
        )
    )
    _worker_tasks.add(task)
    task.add_done_callback(_worker_tasks.discard)
