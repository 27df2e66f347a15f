# rotator_bot/services/rotation_pipeline.py
import asyncio
from collections.abc import Awaitable, Callable
from typing import Protocol

import structlog

from rotator_bot.data.constants import VIEW_COUNT, RunStage
from rotator_bot.dto.rotation import EncodedImage, GeneratedImage, SourceImage, WorkflowState
from rotator_bot.services.errors import MalformedResponseError, classify_error
from rotator_bot.utils.throttle import FixedDelayThrottle, RetryPolicy, Throttle

STATUS_READING = "Reading image..."
STATUS_ANALYZING = "1/4: Analyzing camera angle..."
STATUS_RENDERING = "{stage}/4: Generating rotated view {current} of {total}..."
STATUS_COMPLETE = "Processing complete!"
STATUS_FAILED = "Failed"

ANGLES_NOT_DETERMINED = "Could not determine rotation angles. Please try another image."

StateObserver = Callable[[WorkflowState], Awaitable[None]]


class AngleGenerator(Protocol):
    async def derive_angle_prompts(self, image: SourceImage, object_only: bool) -> list[str]: ...

    async def render_image(self, image: SourceImage, prompt: str) -> EncodedImage: ...


def _has_valid_prompts(prompts: list[str] | None) -> bool:
    if not prompts or len(prompts) != VIEW_COUNT:
        return False
    return all(isinstance(p, str) and p.strip() for p in prompts)


class RotationPipeline:
    """
    Drives one chat's rotation runs: Idle -> Analyzing -> Rendering(0..2) ->
    Complete, or Failed from any stage.

    Every transition is pushed to the observer as a snapshot of the state.
    Failures never escape `run`; they end up in `state.error_message`.
    """

    def __init__(
        self,
        service: AngleGenerator,
        *,
        throttle: Throttle | None = None,
        retry_policy: RetryPolicy | None = None,
        on_change: StateObserver | None = None,
        log: structlog.typing.FilteringBoundLogger | None = None,
    ) -> None:
        self.service = service
        self.throttle = throttle or FixedDelayThrottle(1.0)
        self.retry_policy = retry_policy or RetryPolicy()
        self.on_change = on_change
        self.log = log or structlog.get_logger(__name__)
        self.state = WorkflowState()
        self._task: asyncio.Task | None = None
        # Bumped on every upload and reset so stale workers can tell they were superseded.
        self.generation = 0

    @property
    def is_busy(self) -> bool:
        task_running = self._task is not None and not self._task.done()
        return task_running or self.state.is_loading

    async def _notify(self) -> None:
        if not self.on_change:
            return
        try:
            await self.on_change(self.state.snapshot())
        except Exception:
            self.log.exception("State observer failed", stage=self.state.stage.value)

    async def _transition(self, stage: RunStage, status: str, rendering_index: int | None = None) -> None:
        self.state.stage = stage
        self.state.status_message = status
        self.state.rendering_index = rendering_index
        await self._notify()

    async def begin_upload(self) -> None:
        """Marks the start of a run while the uploaded file is still being read."""
        self.generation += 1
        self.state.reset()
        self.state.is_loading = True
        await self._transition(RunStage.READING, STATUS_READING)

    async def fail_input(self, exc: BaseException) -> WorkflowState:
        """Ends the run before any service call because the upload was unreadable."""
        await self._fail(exc)
        return self.state

    async def _fail(self, exc: BaseException) -> None:
        kind, message = classify_error(exc)
        self.log.error(
            "Rotation run failed",
            error_kind=kind.value,
            error=str(exc),
            generated=len(self.state.generated_images),
        )
        self.state.error_kind = kind
        self.state.error_message = message
        self.state.is_loading = False
        await self._transition(RunStage.FAILED, STATUS_FAILED)

    async def run(self, image: SourceImage, object_only: bool = False) -> WorkflowState:
        state = self.state
        state.reset()
        state.original_image = image
        state.is_loading = True
        log = self.log.bind(object_only=object_only, mime_type=image.mime_type)

        try:
            await self._transition(RunStage.ANALYZING, STATUS_ANALYZING)
            prompts = await self.service.derive_angle_prompts(image, object_only)
            if not _has_valid_prompts(prompts):
                log.warning("Unusable angle prompts", count=len(prompts or []))
                raise MalformedResponseError(ANGLES_NOT_DETERMINED)

            for i, prompt in enumerate(prompts):
                await self._transition(
                    RunStage.RENDERING,
                    STATUS_RENDERING.format(stage=i + 2, current=i + 1, total=VIEW_COUNT),
                    rendering_index=i,
                )
                rendered = await self.retry_policy.call(self.service.render_image, image, prompt)
                state.append_generated(GeneratedImage(image=rendered, prompt=prompt))
                log.info("Rendered view", view=i + 1, mime_type=rendered.mime_type)
                await self._notify()

                if i < VIEW_COUNT - 1:
                    await self.throttle.pause()
        except asyncio.CancelledError:
            log.info("Rotation run cancelled")
            raise
        except Exception as e:
            await self._fail(e)
            return state

        state.is_loading = False
        await self._transition(RunStage.COMPLETE, STATUS_COMPLETE)
        log.info("Rotation run complete")
        return state

    def start(self, image: SourceImage, object_only: bool = False) -> asyncio.Task:
        """Runs `run` as a task owned by the pipeline so `reset` can cancel it."""
        if self._task is not None and not self._task.done():
            raise RuntimeError("A rotation run is already in progress.")
        self._task = asyncio.create_task(self.run(image, object_only))
        return self._task

    def reset(self) -> None:
        """Cancels any in-flight run, detaches its observer and restores the empty state."""
        self.generation += 1
        task, self._task = self._task, None
        if task is not None and not task.done():
            task.cancel()
            self.log.info("Cancelled in-flight rotation run")
        self.on_change = None
        self.state.reset()
