import asyncio

import pytest

from rotator_bot.services.errors import (
    MalformedResponseError,
    MissingImageError,
    QuotaExceededError,
)
from rotator_bot.utils.throttle import FixedDelayThrottle, RetryPolicy


class Flaky:
    def __init__(self, *errors):
        self.errors = list(errors)
        self.calls = 0

    async def __call__(self, value):
        self.calls += 1
        if self.errors:
            raise self.errors.pop(0)
        return value


def test_fixed_delay_throttle_sleeps_for_configured_seconds():
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    asyncio.run(FixedDelayThrottle(1.5, sleep=fake_sleep).pause())
    assert slept == [1.5]


def test_zero_delay_throttle_does_not_sleep():
    slept = []

    async def fake_sleep(seconds):
        slept.append(seconds)

    asyncio.run(FixedDelayThrottle(0, sleep=fake_sleep).pause())
    assert slept == []


def test_default_policy_makes_a_single_attempt():
    func = Flaky(RuntimeError("boom"))
    with pytest.raises(RuntimeError):
        asyncio.run(RetryPolicy().call(func, "ok"))
    assert func.calls == 1


def test_transient_errors_are_retried_up_to_max_attempts():
    func = Flaky(RuntimeError("1"), RuntimeError("2"))
    result = asyncio.run(RetryPolicy(max_attempts=3, backoff_seconds=0).call(func, "ok"))
    assert result == "ok"
    assert func.calls == 3


def test_last_error_is_reraised_when_attempts_run_out():
    func = Flaky(RuntimeError("1"), RuntimeError("2"), RuntimeError("3"))
    with pytest.raises(RuntimeError, match="2"):
        asyncio.run(RetryPolicy(max_attempts=2, backoff_seconds=0).call(func, "ok"))
    assert func.calls == 2


@pytest.mark.parametrize(
    "error",
    [
        QuotaExceededError(),
        RuntimeError("429 Too Many Requests"),
        MalformedResponseError("nope"),
    ],
)
def test_quota_and_malformed_errors_are_never_retried(error):
    func = Flaky(error)
    with pytest.raises(type(error)):
        asyncio.run(RetryPolicy(max_attempts=3, backoff_seconds=0).call(func, "ok"))
    assert func.calls == 1


def test_missing_image_is_fatal_by_default():
    policy = RetryPolicy(max_attempts=3, backoff_seconds=0)
    assert not policy.should_retry(MissingImageError())


def test_missing_image_is_retried_when_enabled():
    func = Flaky(MissingImageError())
    policy = RetryPolicy(max_attempts=2, backoff_seconds=0, retry_missing_image=True)
    assert asyncio.run(policy.call(func, "ok")) == "ok"
    assert func.calls == 2


def test_policy_is_built_from_settings():
    from rotator_bot.data.settings import RetryConfig

    policy = RetryPolicy.from_config(RetryConfig(max_attempts=4, backoff_seconds=0.5, retry_missing_image=True))
    assert policy.max_attempts == 4
    assert policy.backoff_seconds == 0.5
    assert policy.retry_missing_image
