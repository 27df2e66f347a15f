# rotator_bot/utils/throttle.py
import asyncio
from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, Any, Protocol, TypeVar

import structlog
from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception,
    stop_after_attempt,
    wait_fixed,
)

from rotator_bot.services.errors import MissingImageError, RotationError, is_quota_error

if TYPE_CHECKING:
    from rotator_bot.data.settings import RetryConfig

T = TypeVar("T")

logger = structlog.get_logger(__name__)


class Throttle(Protocol):
    async def pause(self) -> None: ...


class FixedDelayThrottle:
    """Sleeps for a fixed interval between two consecutive service calls."""

    def __init__(
        self,
        seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        self.seconds = seconds
        self._sleep = sleep

    async def pause(self) -> None:
        if self.seconds > 0:
            await self._sleep(self.seconds)


class RetryPolicy:
    """
    How often a failed render call is attempted again. Quota errors and
    malformed responses are never retried; a missing image part is retried
    only when explicitly enabled.
    """

    def __init__(
        self,
        max_attempts: int = 1,
        backoff_seconds: float = 2.0,
        retry_missing_image: bool = False,
    ) -> None:
        self.max_attempts = max(1, max_attempts)
        self.backoff_seconds = backoff_seconds
        self.retry_missing_image = retry_missing_image

    @classmethod
    def from_config(cls, config: "RetryConfig") -> "RetryPolicy":
        return cls(
            max_attempts=config.max_attempts,
            backoff_seconds=config.backoff_seconds,
            retry_missing_image=config.retry_missing_image,
        )

    def should_retry(self, exc: BaseException) -> bool:
        if not isinstance(exc, Exception) or is_quota_error(exc):
            return False
        if isinstance(exc, MissingImageError):
            return self.retry_missing_image
        return not isinstance(exc, RotationError)

    @staticmethod
    def _log_retry(retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "Retrying service call",
            attempt=retry_state.attempt_number,
            error=str(exc),
        )

    async def call(self, func: Callable[..., Awaitable[T]], *args: Any, **kwargs: Any) -> T:
        if self.max_attempts == 1:
            return await func(*args, **kwargs)

        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_attempts),
            wait=wait_fixed(self.backoff_seconds),
            retry=retry_if_exception(self.should_retry),
            before_sleep=self._log_retry,
            reraise=True,
        )
        async for attempt in retrying:
            with attempt:
                result = await func(*args, **kwargs)
        return result
