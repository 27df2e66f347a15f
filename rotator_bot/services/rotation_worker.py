# rotator_bot/services/rotation_worker.py
import asyncio

import structlog
from aiogram import Bot
from aiogram.fsm.context import FSMContext
from aiogram.types import BufferedInputFile

from rotator_bot.data.constants import VIEW_COUNT, RunStage
from rotator_bot.dto.rotation import GeneratedImage, WorkflowState
from rotator_bot.keyboards.inline import session_actions_kb, show_prompt_kb
from rotator_bot.services.errors import InputImageError
from rotator_bot.services.photo_processing import download_source_image
from rotator_bot.services.rotation_pipeline import STATUS_READING, RotationPipeline
from rotator_bot.states.user import Rotation
from rotator_bot.utils.status_manager import StatusMessageManager


class TelegramProgressReporter:
    """
    Observes pipeline snapshots and mirrors them into the chat: one edited
    status message, one photo per finished view, and a closing message with
    the session actions.
    """

    def __init__(
        self,
        bot: Bot,
        chat_id: int,
        status: StatusMessageManager,
        log: structlog.typing.FilteringBoundLogger,
    ) -> None:
        self.bot = bot
        self.chat_id = chat_id
        self.status = status
        self.log = log
        self.sent_views = 0
        self.closing_message_id: int | None = None

    async def __call__(self, snapshot: WorkflowState) -> None:
        if snapshot.stage in (RunStage.READING, RunStage.ANALYZING, RunStage.RENDERING):
            await self.status.update(snapshot.status_message)

        while self.sent_views < len(snapshot.generated_images):
            await self._send_view(snapshot.generated_images[self.sent_views], self.sent_views)
            self.sent_views += 1

        if snapshot.stage == RunStage.COMPLETE:
            await self.status.update(snapshot.status_message)
            await self._send_closing(
                "✨ Your rotated views are ready!\n\n"
                "Download all four images as a ZIP, or reset to start over.",
                is_finished=snapshot.is_finished,
            )
        elif snapshot.stage == RunStage.FAILED:
            await self.status.delete()
            await self._send_closing(
                f"❌ {snapshot.error_message}\n\nUse Reset or send another image to try again.",
                is_finished=False,
            )

    async def _send_view(self, generated: GeneratedImage, index: int) -> None:
        image = generated.image
        photo = BufferedInputFile(image.raw_bytes, f"generated_{index + 1}.{image.extension}")
        await self.bot.send_photo(
            chat_id=self.chat_id,
            photo=photo,
            caption=f"View {index + 1} of {VIEW_COUNT}",
            reply_markup=show_prompt_kb(index),
        )
        self.log.info("Sent generated view", view=index + 1)

    async def _send_closing(self, text: str, is_finished: bool) -> None:
        msg = await self.bot.send_message(
            self.chat_id,
            text,
            reply_markup=session_actions_kb(is_finished),
            parse_mode=None,
        )
        self.closing_message_id = msg.message_id


async def _drive_pipeline(
    bot: Bot,
    pipeline: RotationPipeline,
    generation: int,
    file_id: str,
    declared_mime: str | None,
    object_only: bool,
    log: structlog.typing.FilteringBoundLogger,
) -> None:
    try:
        image = await download_source_image(bot, file_id, declared_mime)
    except InputImageError as e:
        if pipeline.generation == generation:
            await pipeline.fail_input(e)
        return

    if pipeline.generation != generation:
        log.info("Run was reset while the upload was being read.")
        return

    task = pipeline.start(image, object_only)
    await asyncio.wait({task})
    if task.cancelled():
        log.info("Rotation run was reset before it finished.")
        return

    final_state = task.result()
    log.info(
        "Rotation worker finished",
        stage=final_state.stage.value,
        generated=len(final_state.generated_images),
        error_kind=final_state.error_kind.value if final_state.error_kind else None,
    )


async def run_rotation_worker(
    bot: Bot,
    chat_id: int,
    status_message_id: int,
    pipeline: RotationPipeline,
    file_id: str,
    declared_mime: str | None,
    object_only: bool,
    state: FSMContext,
    business_logger: structlog.typing.FilteringBoundLogger,
    status_min_duration: float = 0.8,
) -> None:
    """
    Reads the upload and drives the chat's pipeline to a terminal stage.
    Expects `pipeline.begin_upload()` to have been awaited by the caller.
    """
    log = business_logger.bind(chat_id=chat_id, object_only=object_only)
    generation = pipeline.generation
    status = StatusMessageManager(
        bot, chat_id, status_message_id, min_duration=status_min_duration, initial_text=STATUS_READING
    )
    reporter = TelegramProgressReporter(bot, chat_id, status, log)
    pipeline.on_change = reporter

    try:
        await _drive_pipeline(bot, pipeline, generation, file_id, declared_mime, object_only, log)
    except Exception:
        log.exception("An unhandled error occurred in the rotation worker.")
        if pipeline.generation == generation:
            pipeline.reset()
        await status.delete()
        await bot.send_message(chat_id, "😔 An unexpected error occurred on our end. Please try again with /start.")
        await state.set_state(Rotation.waiting_for_image)
        return
    finally:
        if pipeline.on_change is reporter:
            pipeline.on_change = None

    if pipeline.generation != generation:
        # Reset mid-run leaves a stale progress message behind.
        await status.delete()
    elif pipeline.state.stage in (RunStage.COMPLETE, RunStage.FAILED):
        await state.update_data(next_step_message_id=reporter.closing_message_id)
        await state.set_state(Rotation.waiting_for_next_action)
