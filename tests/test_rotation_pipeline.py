import asyncio

import pytest
from google.genai import errors as genai_errors

from rotator_bot.data.constants import ErrorKind, RunStage
from rotator_bot.services.errors import (
    QUOTA_MESSAGE,
    UNKNOWN_MESSAGE,
    InputImageError,
    MalformedResponseError,
)
from rotator_bot.services.rotation_pipeline import (
    ANGLES_NOT_DETERMINED,
    STATUS_ANALYZING,
    STATUS_COMPLETE,
    STATUS_READING,
    RotationPipeline,
)
from rotator_bot.utils.throttle import FixedDelayThrottle, RetryPolicy


class CountingThrottle:
    def __init__(self):
        self.pauses = 0

    async def pause(self):
        self.pauses += 1


def make_pipeline(service, recorder=None, **kwargs):
    kwargs.setdefault("throttle", FixedDelayThrottle(0))
    return RotationPipeline(service, on_change=recorder, **kwargs)


def test_successful_run_produces_three_views_in_order(make_service, recorder, source_image):
    service = make_service()
    pipeline = make_pipeline(service, recorder)

    state = asyncio.run(pipeline.run(source_image))

    assert state.is_finished
    assert state.stage == RunStage.COMPLETE
    assert state.status_message == STATUS_COMPLETE
    assert state.error_message is None
    assert state.original_image == source_image
    assert [g.prompt for g in state.generated_images] == service.prompts
    assert service.render_calls == service.prompts
    assert service.derive_calls == [False]


def test_status_messages_follow_the_stages(make_service, recorder, source_image):
    pipeline = make_pipeline(make_service(), recorder)
    asyncio.run(pipeline.run(source_image))

    statuses = []
    for snap in recorder.snapshots:
        if not statuses or statuses[-1] != snap.status_message:
            statuses.append(snap.status_message)
    assert statuses == [
        STATUS_ANALYZING,
        "2/4: Generating rotated view 1 of 3...",
        "3/4: Generating rotated view 2 of 3...",
        "4/4: Generating rotated view 3 of 3...",
        STATUS_COMPLETE,
    ]
    assert recorder.stages[0] == RunStage.ANALYZING
    assert recorder.stages[-1] == RunStage.COMPLETE
    assert all(s.is_loading for s in recorder.snapshots[:-1])


def test_generated_images_only_grow_during_a_run(make_service, recorder, source_image):
    pipeline = make_pipeline(make_service(), recorder)
    asyncio.run(pipeline.run(source_image))

    counts = [len(s.generated_images) for s in recorder.snapshots]
    assert counts == sorted(counts)
    assert max(counts) == 3


def test_object_only_flag_reaches_the_service(make_service, source_image):
    service = make_service()
    asyncio.run(make_pipeline(service).run(source_image, object_only=True))
    assert service.derive_calls == [True]


@pytest.mark.parametrize("prompts", [[], ["one", "two"], ["a", "b", "c", "d"], ["a", "  ", "c"]])
def test_unusable_prompts_fail_without_rendering(make_service, source_image, prompts):
    service = make_service(prompts=prompts)
    state = asyncio.run(make_pipeline(service).run(source_image))

    assert state.stage == RunStage.FAILED
    assert state.error_message == ANGLES_NOT_DETERMINED
    assert state.error_kind == ErrorKind.MALFORMED_RESPONSE
    assert state.generated_images == []
    assert service.render_calls == []
    assert not state.is_loading


def test_analysis_error_message_is_surfaced(make_service, source_image):
    service = make_service(prompts_error=MalformedResponseError("bad json"))
    state = asyncio.run(make_pipeline(service).run(source_image))

    assert state.error_message == "bad json"
    assert state.generated_images == []
    assert not state.is_finished


def test_render_failure_keeps_earlier_views(make_service, source_image):
    service = make_service(render_outcomes=[None, RuntimeError("model exploded")])
    state = asyncio.run(make_pipeline(service).run(source_image))

    assert state.stage == RunStage.FAILED
    assert state.error_message == "model exploded"
    assert state.error_kind == ErrorKind.UNCLASSIFIED
    assert len(state.generated_images) == 1
    assert len(service.render_calls) == 2
    assert not state.is_finished


def test_quota_error_on_second_render_keeps_first_view(make_service, source_image):
    quota = genai_errors.APIError(
        429, {"error": {"code": 429, "message": "Quota exceeded", "status": "RESOURCE_EXHAUSTED"}}
    )
    service = make_service(render_outcomes=[None, quota])
    state = asyncio.run(make_pipeline(service).run(source_image))

    assert state.stage == RunStage.FAILED
    assert state.error_kind == ErrorKind.QUOTA
    assert state.error_message == QUOTA_MESSAGE
    assert len(state.generated_images) == 1
    assert len(service.render_calls) == 2
    assert not state.is_finished


def test_empty_error_text_falls_back_to_unknown(make_service, source_image):
    service = make_service(render_outcomes=[RuntimeError()])
    state = asyncio.run(make_pipeline(service).run(source_image))
    assert state.error_message == UNKNOWN_MESSAGE


def test_throttle_pauses_between_renders_only(make_service, source_image):
    throttle = CountingThrottle()
    asyncio.run(make_pipeline(make_service(), throttle=throttle).run(source_image))
    assert throttle.pauses == 2


def test_render_calls_are_spaced_by_the_step_delay(make_service, source_image):
    service = make_service()
    asyncio.run(make_pipeline(service, throttle=FixedDelayThrottle(0.05)).run(source_image))

    gaps = [b - a for a, b in zip(service.render_times, service.render_times[1:])]
    assert len(gaps) == 2
    assert all(gap >= 0.045 for gap in gaps)


def test_failed_render_is_retried_when_configured(make_service, source_image):
    service = make_service(render_outcomes=[RuntimeError("flaky")])
    policy = RetryPolicy(max_attempts=2, backoff_seconds=0)
    state = asyncio.run(make_pipeline(service, retry_policy=policy).run(source_image))

    assert state.is_finished
    assert len(service.render_calls) == 4


def test_new_run_clears_previous_failure(make_service, source_image):
    service = make_service(render_outcomes=[RuntimeError("first run fails")])
    pipeline = make_pipeline(service)

    async def scenario():
        first = await pipeline.run(source_image)
        assert first.error_message == "first run fails"
        return await pipeline.run(source_image)

    state = asyncio.run(scenario())
    assert state.is_finished
    assert state.error_message is None
    assert state.error_kind is None


def test_input_failure_ends_run_before_any_service_call(make_service, recorder):
    service = make_service()
    pipeline = make_pipeline(service, recorder)

    async def scenario():
        await pipeline.begin_upload()
        assert pipeline.is_busy
        return await pipeline.fail_input(InputImageError())

    state = asyncio.run(scenario())
    assert recorder.snapshots[0].status_message == STATUS_READING
    assert state.stage == RunStage.FAILED
    assert state.error_kind == ErrorKind.INPUT
    assert state.error_message == "Failed to read the image file."
    assert not pipeline.is_busy
    assert service.derive_calls == []
    assert service.render_calls == []


def test_observer_errors_do_not_break_the_run(make_service, source_image):
    async def broken_observer(snapshot):
        raise ValueError("presentation failed")

    pipeline = RotationPipeline(make_service(), throttle=FixedDelayThrottle(0), on_change=broken_observer)
    state = asyncio.run(pipeline.run(source_image))
    assert state.is_finished


def test_snapshots_are_detached_from_the_live_state(make_service, recorder, source_image):
    pipeline = make_pipeline(make_service(), recorder)
    asyncio.run(pipeline.run(source_image))

    recorder.snapshots[-1].generated_images.clear()
    assert len(pipeline.state.generated_images) == 3


def test_reset_cancels_an_in_flight_run(make_service, source_image):
    gate = asyncio.Event()

    async def scenario():
        service = make_service(render_gate=gate)
        pipeline = make_pipeline(service)
        task = pipeline.start(source_image)
        while not service.render_calls:
            await asyncio.sleep(0)
        assert pipeline.is_busy
        pipeline.reset()
        await asyncio.wait({task})
        return pipeline, task, service

    pipeline, task, service = asyncio.run(scenario())
    assert task.cancelled()
    assert pipeline.state.stage == RunStage.IDLE
    assert pipeline.state.generated_images == []
    assert pipeline.state.original_image is None
    assert not pipeline.is_busy
    assert len(service.render_calls) == 1


def test_second_start_is_refused_while_running(make_service, source_image):
    gate = asyncio.Event()

    async def scenario():
        pipeline = make_pipeline(make_service(render_gate=gate))
        task = pipeline.start(source_image)
        with pytest.raises(RuntimeError):
            pipeline.start(source_image)
        gate.set()
        return await task

    state = asyncio.run(scenario())
    assert state.is_finished
