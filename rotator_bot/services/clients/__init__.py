# rotator_bot/services/clients/__init__.py
from .factory import get_ai_client
from .google_ai_client import GoogleGeminiClient, GoogleGeminiClientResponse
from .mock_ai_client import MockAIClient

__all__ = [
    "GoogleGeminiClient",
    "GoogleGeminiClientResponse",
    "MockAIClient",
    "get_ai_client",
]
