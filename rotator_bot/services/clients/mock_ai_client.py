# rotator_bot/services/clients/mock_ai_client.py
from __future__ import annotations
import asyncio
import io
import json
from typing import Any

import structlog
from PIL import Image, ImageDraw
from pydantic import BaseModel

from rotator_bot.dto.rotation import EncodedImage
from .google_ai_client import GoogleGeminiClientResponse

logger = structlog.get_logger(__name__)

_MOCK_ANGLES = (
    ("low-angle hero", "darkblue"),
    ("high-angle bird's-eye", "darkgreen"),
    ("rear three-quarter", "purple"),
)

_MOCK_PROMPT_TEMPLATE = (
    "Render the subject from a {angle} camera position, 50mm equivalent, medium distance.\n\n"
    "Key light at 10 o'clock, 35 degrees elevation, soft fill, gentle rim light.\n\n"
    "Keep materials, textures and colors identical to the original image."
)


class _MockPromptsNamespace:
    @staticmethod
    async def generate_json(*, model: str, image: EncodedImage, instruction: str, schema: type[BaseModel]) -> str:
        logger.info("MOCK Prompts: Simulating angle analysis...", model=model)
        await asyncio.sleep(0.5)
        prompts = [_MOCK_PROMPT_TEMPLATE.format(angle=angle) for angle, _ in _MOCK_ANGLES]
        return json.dumps({"prompts": prompts})


class _MockImagesNamespace:
    @staticmethod
    async def generate(*, model: str, image: EncodedImage, prompt: str, temperature: float = 0.0) -> GoogleGeminiClientResponse:
        logger.info("MOCK Images: Simulating rotated view generation...", model=model)
        await asyncio.sleep(1)

        fallback_color = "gray"
        label = "mock view"
        for angle, color in _MOCK_ANGLES:
            if angle in prompt:
                fallback_color, label = color, angle
                break

        img = Image.new("RGB", (1024, 1024), fallback_color)
        ImageDraw.Draw(img).text((32, 32), label, fill="white")
        buffer = io.BytesIO()
        img.save(buffer, format="PNG")

        return GoogleGeminiClientResponse(
            image_bytes=buffer.getvalue(),
            content_type="image/png",
            response_payload={"mock_data": True, "angle": label},
        )


class MockAIClient:
    def __init__(self, **_kwargs: Any) -> None:
        self.prompts = _MockPromptsNamespace()
        self.images = _MockImagesNamespace()
