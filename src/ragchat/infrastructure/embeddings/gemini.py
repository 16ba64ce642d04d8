import logging
from typing import Optional

import httpx

from ragchat.core.exceptions import ConfigurationError, EmbeddingError

from .base import validate_vector
from .hashing import hashed_embedding

logger = logging.getLogger(__name__)

# Output width of embedding-001 / text-embedding-004.
GEMINI_EMBEDDING_DIMENSION = 768


class GeminiEmbedder:
    """Embeddings via the Gemini ``embedContent`` REST endpoint.

    Network failures degrade to the deterministic hashed embedding so
    ingest keeps going while Gemini is unreachable. The fallback vector
    takes the width of the last real Gemini vector, or
    ``fallback_dimension`` before any call has succeeded.
    """

    name = "gemini"

    def __init__(
        self,
        api_key: str | None,
        model: str = "embedding-001",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        fallback_dimension: int = GEMINI_EMBEDDING_DIMENSION,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Gemini embedder.

        Args:
            api_key: Gemini API key; checked on first use.
            model: Embedding model name.
            base_url: API base URL.
            fallback_dimension: Width of the offline fallback vector until
                a real vector has been seen.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests).
        """
        if not api_key:
            logger.warning("GEMINI_API_KEY not set, embedding calls will fail")
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._fallback_dimension = fallback_dimension
        self._dimension: Optional[int] = None
        self._timeout = timeout
        self._transport = transport

    @property
    def _url(self) -> str:
        return f"{self._base_url}/models/{self._model}:embedContent"

    @property
    def dimension(self) -> int:
        return self._dimension or self._fallback_dimension

    def _fallback(self, text: str) -> list[float]:
        return hashed_embedding(text, self.dimension)

    async def embed(self, text: str) -> list[float]:
        if not self._api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")

        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            vector = await self._embed_one(client, text)
        return vector if vector is not None else self._fallback(text)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not self._api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")

        # No native batching here: one request at a time.
        vectors: list[Optional[list[float]]] = []
        async with httpx.AsyncClient(
            timeout=self._timeout, transport=self._transport
        ) as client:
            for text in texts:
                vectors.append(await self._embed_one(client, text))

        # Fallbacks are filled last so they match the width seen in this batch.
        return [
            v if v is not None else self._fallback(text)
            for text, v in zip(texts, vectors)
        ]

    async def _embed_one(
        self, client: httpx.AsyncClient, text: str
    ) -> Optional[list[float]]:
        """Real Gemini vector, or None when the call failed on the network."""
        try:
            resp = await client.post(
                self._url,
                params={"key": self._api_key},
                json={
                    "model": f"models/{self._model}",
                    "content": {"parts": [{"text": text}]},
                },
            )
            resp.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Gemini embedding error, using fallback embedding: {e}")
            return None

        try:
            values = (resp.json().get("embedding") or {}).get("values")
        except (ValueError, AttributeError) as e:
            raise EmbeddingError(f"Malformed Gemini embedding response: {e}") from e
        vector = validate_vector(values, self.name)
        self._dimension = len(vector)
        return vector
