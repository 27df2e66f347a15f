# rotator_bot/services/errors.py
from google.genai import errors as genai_errors

from rotator_bot.data.constants import ErrorKind

QUOTA_MESSAGE = (
    "Quota exhausted. The free tier for the image model has been used up. "
    "Please check your Google AI Studio plan or wait a few hours before trying again."
)
UNKNOWN_MESSAGE = "An unknown error occurred during processing."

_QUOTA_MARKERS = ("RESOURCE_EXHAUSTED", "429")


class RotationError(Exception):
    """Base class for failures the user should read about."""
    kind: ErrorKind = ErrorKind.UNCLASSIFIED

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.user_message = message


class InputImageError(RotationError):
    kind = ErrorKind.INPUT

    def __init__(self, message: str = "Failed to read the image file.") -> None:
        super().__init__(message)


class MalformedResponseError(RotationError):
    kind = ErrorKind.MALFORMED_RESPONSE


class MissingImageError(MalformedResponseError):
    def __init__(
        self,
        message: str = "The AI did not return an image. It might not be able to process this request.",
    ) -> None:
        super().__init__(message)


class QuotaExceededError(RotationError):
    kind = ErrorKind.QUOTA

    def __init__(self, message: str = QUOTA_MESSAGE) -> None:
        super().__init__(message)


class ArchiveError(RotationError):
    kind = ErrorKind.ARCHIVE

    def __init__(self, message: str = "Failed to create ZIP file.") -> None:
        super().__init__(message)


def is_quota_error(exc: BaseException) -> bool:
    """True when the service signalled resource exhaustion or a rate limit."""
    if isinstance(exc, QuotaExceededError):
        return True
    if isinstance(exc, genai_errors.APIError):
        if exc.code == 429 or (exc.status or "").upper() == "RESOURCE_EXHAUSTED":
            return True
    text = str(exc)
    return any(marker in text for marker in _QUOTA_MARKERS)


def classify_error(exc: BaseException) -> tuple[ErrorKind, str]:
    """Maps any exception raised during a run to (kind, user-facing message)."""
    if isinstance(exc, RotationError):
        return exc.kind, exc.user_message
    if is_quota_error(exc):
        return ErrorKind.QUOTA, QUOTA_MESSAGE
    return ErrorKind.UNCLASSIFIED, str(exc) or UNKNOWN_MESSAGE
