"""Embedder protocol for dependency injection."""
from typing import Protocol, runtime_checkable


@runtime_checkable
class EmbedderProtocol(Protocol):
    """Protocol for embedding providers."""

    @property
    def name(self) -> str:
        """Provider name used in logs."""
        ...

    async def embed(self, text: str) -> list[float]:
        """Embed a single text.

        Args:
            text: Text to embed.

        Returns:
            Embedding vector.
        """
        ...

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        """Embed several texts.

        Args:
            texts: Texts to embed.

        Returns:
            One vector per input text, in input order.
        """
        ...
