"""Embedding provider implementations."""
from .factory import EMBEDDING_PROVIDERS, create_embedder
from .gemini import GeminiEmbedder
from .hashing import hashed_embedding
from .huggingface import HuggingFaceEmbedder
from .openai_embedder import OpenAIEmbedder

__all__ = [
    "EMBEDDING_PROVIDERS",
    "create_embedder",
    "GeminiEmbedder",
    "HuggingFaceEmbedder",
    "OpenAIEmbedder",
    "hashed_embedding",
]
