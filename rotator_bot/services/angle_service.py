# rotator_bot/services/angle_service.py
import json
from typing import Any

import structlog
from pydantic import ValidationError

from rotator_bot.data.constants import VIEW_COUNT, RotationMode
from rotator_bot.dto.rotation import AnglePromptsOutput, EncodedImage, SourceImage
from rotator_bot.services.errors import MalformedResponseError, MissingImageError
from rotator_bot.services.prompting.angle_prompts import get_angle_instruction

logger = structlog.get_logger(__name__)

INVALID_JSON_MESSAGE = (
    "The AI failed to return valid rotation instructions. Please try a different image."
)
MALFORMED_PROMPTS_MESSAGE = (
    "Could not get valid rotation prompts from the AI. The response was malformed."
)


class AngleService:
    """
    Translates the two rotation operations into calls against the generative
    client and validates what comes back. Holds no state between calls and
    never retries.
    """

    def __init__(self, client: Any, *, prompt_model: str, image_model: str) -> None:
        self.client = client
        self.prompt_model = prompt_model
        self.image_model = image_model

    async def derive_angle_prompts(self, image: SourceImage, object_only: bool) -> list[str]:
        """Asks the prompt model for exactly three new-angle prompts."""
        mode = RotationMode.OBJECT if object_only else RotationMode.SCENE
        log = logger.bind(model=self.prompt_model, mode=mode.value)

        raw_text = await self.client.prompts.generate_json(
            model=self.prompt_model,
            image=image,
            instruction=get_angle_instruction(mode),
            schema=AnglePromptsOutput,
        )

        try:
            payload = json.loads(raw_text)
        except (json.JSONDecodeError, TypeError) as e:
            log.error("Failed to parse JSON from the prompt model.", error=str(e))
            raise MalformedResponseError(INVALID_JSON_MESSAGE) from e

        try:
            result = AnglePromptsOutput.model_validate(payload)
        except ValidationError as e:
            log.error("Prompt model response does not match the schema.", error=str(e))
            raise MalformedResponseError(MALFORMED_PROMPTS_MESSAGE) from e

        if len(result.prompts) != VIEW_COUNT:
            log.error("Prompt model returned the wrong number of prompts.", count=len(result.prompts))
            raise MalformedResponseError(MALFORMED_PROMPTS_MESSAGE)

        log.info("Derived angle prompts.", count=len(result.prompts))
        return result.prompts

    async def render_image(self, image: SourceImage, prompt: str) -> EncodedImage:
        """Renders one new view; deterministic generation (temperature 0)."""
        response = await self.client.images.generate(
            model=self.image_model,
            image=image,
            prompt=prompt,
            temperature=0.0,
        )
        if response is None or not response.image_bytes:
            raise MissingImageError()
        return EncodedImage.from_bytes(response.image_bytes, response.content_type or "image/png")
