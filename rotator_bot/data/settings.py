# rotator_bot/data/settings.py
from pydantic import BaseModel, Field, SecretStr, AnyHttpUrl, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BotConfig(BaseModel):
    token: SecretStr
    max_updates_in_queue: int = 100
    support_email: str = "support@example.com"

    @computed_field
    @property
    def id(self) -> int:
        return int(self.token.get_secret_value().split(":")[0])


class WebhookConfig(BaseModel):
    address: AnyHttpUrl
    secret_token: SecretStr
    listening_host: str = "0.0.0.0"
    listening_port: int = 8080


class GoogleConfig(BaseModel):
    api_key: SecretStr | None = None


class AiConfig(BaseModel):
    """Which client talks to the generative service and with which models."""
    client: str = "google"
    prompt_model: str = "gemini-2.5-flash"
    image_model: str = "gemini-2.5-flash-image-preview"


class RetryConfig(BaseModel):
    """
    Retry policy for render calls. The default of a single attempt means
    every failure is fatal to the run.
    """
    max_attempts: int = Field(default=1, ge=1)
    backoff_seconds: float = Field(default=2.0, ge=0)
    retry_missing_image: bool = False


class RotationConfig(BaseModel):
    step_delay_seconds: float = Field(default=1.0, ge=0)
    status_min_duration: float = Field(default=0.8, ge=0)
    retry: RetryConfig = Field(default_factory=RetryConfig)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    bot: BotConfig
    webhook: WebhookConfig | None = None
    google: GoogleConfig = Field(default_factory=GoogleConfig)
    ai: AiConfig = Field(default_factory=AiConfig)
    rotation: RotationConfig = Field(default_factory=RotationConfig)

    logging_level: int = 20


settings = Settings()
