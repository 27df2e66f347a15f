import pytest
from google.genai import errors as genai_errors

from rotator_bot.data.constants import ErrorKind
from rotator_bot.services.errors import (
    QUOTA_MESSAGE,
    UNKNOWN_MESSAGE,
    ArchiveError,
    InputImageError,
    MalformedResponseError,
    MissingImageError,
    QuotaExceededError,
    classify_error,
    is_quota_error,
)


def api_error(code: int, status: str, message: str = "error"):
    return genai_errors.ClientError(code, {"error": {"code": code, "message": message, "status": status}})


def test_rate_limit_status_code_is_a_quota_error():
    assert is_quota_error(api_error(429, "RESOURCE_EXHAUSTED", "Quota exceeded"))


def test_other_client_errors_are_not_quota_errors():
    assert not is_quota_error(api_error(400, "INVALID_ARGUMENT", "Bad image"))


@pytest.mark.parametrize(
    "text",
    ["RESOURCE_EXHAUSTED: try later", "HTTP 429 Too Many Requests"],
)
def test_quota_markers_in_error_text(text):
    assert is_quota_error(RuntimeError(text))


def test_quota_errors_get_the_fixed_message():
    assert classify_error(api_error(429, "RESOURCE_EXHAUSTED")) == (ErrorKind.QUOTA, QUOTA_MESSAGE)
    assert classify_error(QuotaExceededError()) == (ErrorKind.QUOTA, QUOTA_MESSAGE)


@pytest.mark.parametrize(
    ("exc", "kind", "message"),
    [
        (InputImageError(), ErrorKind.INPUT, "Failed to read the image file."),
        (MalformedResponseError("bad"), ErrorKind.MALFORMED_RESPONSE, "bad"),
        (
            MissingImageError(),
            ErrorKind.MALFORMED_RESPONSE,
            "The AI did not return an image. It might not be able to process this request.",
        ),
        (ArchiveError(), ErrorKind.ARCHIVE, "Failed to create ZIP file."),
    ],
)
def test_domain_errors_keep_their_message(exc, kind, message):
    assert classify_error(exc) == (kind, message)


def test_domain_message_mentioning_429_is_not_treated_as_quota():
    kind, message = classify_error(MalformedResponseError("prompt 429 was invalid"))
    assert kind == ErrorKind.MALFORMED_RESPONSE
    assert message == "prompt 429 was invalid"


def test_unclassified_errors_use_their_text_or_a_fallback():
    assert classify_error(ValueError("boom")) == (ErrorKind.UNCLASSIFIED, "boom")
    assert classify_error(ValueError()) == (ErrorKind.UNCLASSIFIED, UNKNOWN_MESSAGE)
