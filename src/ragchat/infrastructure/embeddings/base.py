import logging
from typing import Any

from ragchat.core.exceptions import EmbeddingError

logger = logging.getLogger(__name__)


def validate_vector(value: Any, provider: str) -> list[float]:
    """Check a provider vector is a non-empty list of numbers."""
    if not isinstance(value, list) or not value:
        raise EmbeddingError(f"Invalid embedding response from {provider}")
    if not all(isinstance(v, (int, float)) and not isinstance(v, bool) for v in value):
        raise EmbeddingError(f"Non-numeric embedding values from {provider}")
    return [float(v) for v in value]


def check_batch(vectors: list[list[float]], texts: list[str], provider: str) -> None:
    if len(vectors) != len(texts):
        raise EmbeddingError(
            f"{provider} returned {len(vectors)} embeddings for {len(texts)} texts"
        )
