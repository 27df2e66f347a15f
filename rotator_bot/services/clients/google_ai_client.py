# rotator_bot/services/clients/google_ai_client.py
from __future__ import annotations
import time
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict

from google import genai
from google.genai import types
from google.genai.types import Modality

from rotator_bot.dto.rotation import EncodedImage

logger = structlog.get_logger(__name__)


class GoogleGeminiClientResponse(BaseModel):
    """Standardized image response from the Gemini client."""
    model_config = ConfigDict(arbitrary_types_allowed=True)

    image_bytes: bytes
    content_type: str = "image/png"
    response_payload: dict


def _serialize_response(resp: Any) -> dict:
    """Safe, small logging payload; redacts inline image bytes."""
    if not resp:
        return {}
    out: dict[str, Any] = {"candidates": []}
    try:
        for c in getattr(resp, "candidates", None) or []:
            content = getattr(c, "content", None)
            parts_out = []
            for p in getattr(content, "parts", None) or []:
                inline = getattr(p, "inline_data", None)
                if inline is not None:
                    data = getattr(inline, "data", None) or b""
                    parts_out.append({
                        "inline_data": {
                            "mime_type": getattr(inline, "mime_type", None) or "image/png",
                            "data": f"<redacted {len(data)} bytes>",
                        }
                    })
                elif getattr(p, "text", None):
                    parts_out.append({"text": p.text[:500]})
            out["candidates"].append({
                "finish_reason": str(getattr(c, "finish_reason", None)),
                "parts": parts_out,
            })
        return out
    except Exception as e:
        logger.warning("serialize_response_fallback", error=str(e))
        return {"content": str(resp)[:500]}


def _pick_first_inline_image(parts: list[Any]) -> tuple[bytes, str] | None:
    """Return (bytes, mime) of the first part that carries inline image data."""
    for p in parts or []:
        inline = getattr(p, "inline_data", None)
        if inline and getattr(inline, "data", None):
            return inline.data, getattr(inline, "mime_type", None) or "image/png"
    return None


def _image_part(image: EncodedImage) -> types.Part:
    return types.Part.from_bytes(data=image.raw_bytes, mime_type=image.mime_type)


class _PromptsNamespace:
    """Structured JSON generation (image + instruction in, JSON text out)."""

    def __init__(self, client: genai.Client) -> None:
        self._client = client

    async def generate_json(
        self,
        *,
        model: str,
        image: EncodedImage,
        instruction: str,
        schema: type[BaseModel],
    ) -> str:
        log = logger.bind(model=model)
        config = types.GenerateContentConfig(
            response_mime_type="application/json",
            response_schema=schema,
        )
        started = time.monotonic()
        log.info("Calling Gemini for structured output.")
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=[_image_part(image), instruction],
                config=config,
            )
        except Exception as e:
            log.error("Gemini API error during structured generation", error=str(e))
            raise

        duration_ms = int((time.monotonic() - started) * 1000)
        text = response.text or ""
        log.info("Received structured response", duration_ms=duration_ms, chars=len(text))
        return text


class _ImagesNamespace:
    """Image generation from an image plus a text prompt."""

    def __init__(self, client: genai.Client) -> None:
        self._client = client

    async def generate(
        self,
        *,
        model: str,
        image: EncodedImage,
        prompt: str,
        temperature: float = 0.0,
    ) -> GoogleGeminiClientResponse | None:
        """
        Returns the first inline image of the first candidate, or None when
        the model answered without one.
        """
        log = logger.bind(model=model)
        gen_config = types.GenerateContentConfig(
            temperature=temperature,
            response_modalities=[Modality.IMAGE, Modality.TEXT],
        )

        started = time.monotonic()
        log.info("Calling Gemini for image generation.")
        try:
            response = await self._client.aio.models.generate_content(
                model=model,
                contents=[_image_part(image), prompt],
                config=gen_config,
            )
        except Exception as e:
            log.error("Gemini API error during image generation", error=str(e))
            raise

        duration_ms = int((time.monotonic() - started) * 1000)
        candidates = getattr(response, "candidates", None) or []
        parts: list[Any] = []
        finish_reason = "UNKNOWN"
        if candidates:
            content = getattr(candidates[0], "content", None)
            parts = getattr(content, "parts", None) or []
            finish_reason = getattr(candidates[0], "finish_reason", finish_reason)

        picked = _pick_first_inline_image(parts)
        if not picked:
            part_kinds = [
                "inline_data" if getattr(p, "inline_data", None)
                else "text" if getattr(p, "text", None)
                else "other"
                for p in parts
            ]
            log.error(
                "No inline image in response.",
                reason=str(finish_reason),
                part_kinds=part_kinds,
                payload=_serialize_response(response),
            )
            return None

        image_bytes, content_type = picked
        log.info("Image generation successful", duration_ms=duration_ms, content_type=content_type)
        return GoogleGeminiClientResponse(
            image_bytes=image_bytes,
            content_type=content_type,
            response_payload=_serialize_response(response),
        )


class GoogleGeminiClient:
    """Gemini Developer API client (API-key authentication)."""

    def __init__(self, api_key: str, *, sdk_client: genai.Client | None = None, **_kwargs: Any) -> None:
        if sdk_client is None:
            if not api_key:
                raise RuntimeError("Missing Google API key. Set GOOGLE__API_KEY.")
            try:
                sdk_client = genai.Client(api_key=api_key)
                logger.info("GenAI client initialized (Gemini Developer API).")
            except Exception:
                logger.exception("Failed to initialize Google Gen AI client.")
                raise
        self.prompts = _PromptsNamespace(sdk_client)
        self.images = _ImagesNamespace(sdk_client)
