# rotator_bot/dto/rotation.py
import base64

from pydantic import BaseModel, ConfigDict, Field

from rotator_bot.data.constants import VIEW_COUNT, ErrorKind, RunStage

_EXTENSIONS = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/jpg": "jpg",
    "image/webp": "webp",
    "image/gif": "gif",
    "image/heic": "heic",
}


class EncodedImage(BaseModel):
    """Image bytes kept as a base64 string together with their MIME type."""
    model_config = ConfigDict(frozen=True)

    data: str
    mime_type: str = "image/png"

    @classmethod
    def from_bytes(cls, raw: bytes, mime_type: str) -> "EncodedImage":
        return cls(data=base64.b64encode(raw).decode("ascii"), mime_type=mime_type)

    @property
    def raw_bytes(self) -> bytes:
        return base64.b64decode(self.data)

    @property
    def extension(self) -> str:
        ct = self.mime_type.lower().split(";")[0].strip()
        return _EXTENSIONS.get(ct, "png")


class SourceImage(EncodedImage):
    """The user's upload. Created once per run."""


class GeneratedImage(BaseModel):
    """A rendered view and the angle prompt it was rendered from."""
    model_config = ConfigDict(frozen=True)

    image: EncodedImage
    prompt: str


class AnglePromptsOutput(BaseModel):
    """Defines the JSON object the prompt model must return."""

    prompts: list[str] = Field(
        description="Exactly three three-paragraph prompts, one per new cinematic angle."
    )


class WorkflowState(BaseModel):
    """
    The single mutable record describing a run.

    Presentation code receives copies of it after every transition and never
    mutates it directly.
    """
    original_image: SourceImage | None = None
    generated_images: list[GeneratedImage] = Field(default_factory=list)
    is_loading: bool = False
    status_message: str = ""
    error_message: str | None = None
    error_kind: ErrorKind | None = None
    stage: RunStage = RunStage.IDLE
    rendering_index: int | None = None

    @property
    def is_finished(self) -> bool:
        return (
            not self.is_loading
            and self.error_message is None
            and len(self.generated_images) == VIEW_COUNT
        )

    def append_generated(self, generated: GeneratedImage) -> None:
        if len(self.generated_images) >= VIEW_COUNT:
            raise ValueError(f"A run produces at most {VIEW_COUNT} images.")
        self.generated_images.append(generated)

    def reset(self) -> None:
        """Restores every field to its initial value."""
        for name, field in type(self).model_fields.items():
            setattr(self, name, field.get_default(call_default_factory=True))

    def snapshot(self) -> "WorkflowState":
        return self.model_copy(deep=True)
