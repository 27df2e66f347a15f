# rotator_bot/services/session_registry.py
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

import structlog

from rotator_bot.services.angle_service import AngleService
from rotator_bot.services.clients import get_ai_client
from rotator_bot.services.rotation_pipeline import RotationPipeline
from rotator_bot.utils.throttle import FixedDelayThrottle, RetryPolicy

if TYPE_CHECKING:
    from rotator_bot.data.settings import Settings

logger = structlog.get_logger(__name__)

PipelineFactory = Callable[[int], RotationPipeline]


class SessionRegistry:
    """In-memory map of chat id -> RotationPipeline. Nothing is persisted."""

    def __init__(self, factory: PipelineFactory) -> None:
        self._factory = factory
        self._sessions: dict[int, RotationPipeline] = {}

    def get(self, chat_id: int) -> RotationPipeline:
        pipeline = self._sessions.get(chat_id)
        if pipeline is None:
            pipeline = self._factory(chat_id)
            self._sessions[chat_id] = pipeline
            logger.debug("Created rotation session", chat_id=chat_id)
        return pipeline

    def peek(self, chat_id: int) -> RotationPipeline | None:
        return self._sessions.get(chat_id)

    def reset(self, chat_id: int) -> None:
        pipeline = self._sessions.get(chat_id)
        if pipeline is not None:
            pipeline.reset()

    def reset_all(self) -> None:
        for pipeline in self._sessions.values():
            pipeline.reset()
        self._sessions.clear()

    def __len__(self) -> int:
        return len(self._sessions)


def create_session_registry(config: "Settings", client: Any | None = None) -> SessionRegistry:
    """Wires the configured AI client, adapter and policies into per-chat pipelines."""
    client = client or get_ai_client(config=config)
    service = AngleService(
        client,
        prompt_model=config.ai.prompt_model,
        image_model=config.ai.image_model,
    )
    retry_policy = RetryPolicy.from_config(config.rotation.retry)

    def factory(chat_id: int) -> RotationPipeline:
        return RotationPipeline(
            service,
            throttle=FixedDelayThrottle(config.rotation.step_delay_seconds),
            retry_policy=retry_policy,
            log=structlog.get_logger("rotator_bot.pipeline").bind(chat_id=chat_id),
        )

    return SessionRegistry(factory)
