import io
import os
import time

# Settings are read at import time.
os.environ.setdefault("BOT__TOKEN", "123456:TEST")
os.environ.setdefault("GOOGLE__API_KEY", "test-key")
os.environ.setdefault("AI__CLIENT", "mock")

import pytest
from PIL import Image

from rotator_bot.dto.rotation import EncodedImage, SourceImage

DEFAULT_PROMPTS = [
    "Low-angle hero shot from the left.",
    "High-angle view from behind.",
    "Rear three-quarter at eye level.",
]


def make_png(color: str = "red", size: tuple[int, int] = (8, 8)) -> bytes:
    buffer = io.BytesIO()
    Image.new("RGB", size, color).save(buffer, format="PNG")
    return buffer.getvalue()


class FakeAngleService:
    """
    Stands in for AngleService. `render_outcomes` is consumed one item per
    render call: an exception is raised, anything else means success.
    """

    def __init__(self, prompts=None, prompts_error=None, render_outcomes=None, render_gate=None):
        self.prompts = DEFAULT_PROMPTS if prompts is None else prompts
        self.prompts_error = prompts_error
        self.render_outcomes = list(render_outcomes or [])
        self.render_gate = render_gate
        self.derive_calls: list[bool] = []
        self.render_calls: list[str] = []
        self.render_times: list[float] = []

    async def derive_angle_prompts(self, image, object_only):
        self.derive_calls.append(object_only)
        if self.prompts_error is not None:
            raise self.prompts_error
        return list(self.prompts)

    async def render_image(self, image, prompt):
        self.render_calls.append(prompt)
        self.render_times.append(time.monotonic())
        if self.render_gate is not None:
            await self.render_gate.wait()
        outcome = self.render_outcomes.pop(0) if self.render_outcomes else None
        if isinstance(outcome, BaseException):
            raise outcome
        return EncodedImage.from_bytes(f"view-{len(self.render_calls)}".encode(), "image/png")


class SnapshotRecorder:
    def __init__(self):
        self.snapshots = []

    async def __call__(self, snapshot):
        self.snapshots.append(snapshot)

    @property
    def stages(self):
        return [s.stage for s in self.snapshots]


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def source_image(png_bytes) -> SourceImage:
    return SourceImage.from_bytes(png_bytes, "image/png")


@pytest.fixture
def make_service():
    return FakeAngleService


@pytest.fixture
def recorder() -> SnapshotRecorder:
    return SnapshotRecorder()
