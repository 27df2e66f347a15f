# rotator_bot/services/clients/factory.py
from __future__ import annotations
from typing import Any

from rotator_bot.data.settings import Settings, settings as default_settings

from .google_ai_client import GoogleGeminiClient
from .mock_ai_client import MockAIClient

_CLIENT_CLASSES: dict[str, type[Any]] = {
    "mock": MockAIClient,
    "google": GoogleGeminiClient,
}


def _create_client_instance(client_name: str, config: Settings) -> Any:
    client_class = _CLIENT_CLASSES.get(client_name)
    if not client_class:
        raise ValueError(f"Unknown client type specified in config: '{client_name}'")

    if client_name == "google":
        if not config.google.api_key or not config.google.api_key.get_secret_value():
            raise RuntimeError("Missing API key for Google Gemini. Set env var GOOGLE__API_KEY.")
        return client_class(api_key=config.google.api_key.get_secret_value())

    return client_class()


def get_ai_client(client_name: str | None = None, config: Settings | None = None) -> Any:
    """
    Creates an AI client instance for a given client name, defaulting to the
    one configured in AI__CLIENT.
    """
    config = config or default_settings
    name = (client_name or config.ai.client).lower()
    return _create_client_instance(name, config)
