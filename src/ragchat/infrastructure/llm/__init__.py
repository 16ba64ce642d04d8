"""Chat backend implementations."""
from .custom_client import CustomChatClient
from .gemini_client import GeminiChatClient

__all__ = ["CustomChatClient", "GeminiChatClient"]
