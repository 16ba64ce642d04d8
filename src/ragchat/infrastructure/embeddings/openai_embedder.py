import logging

from openai import AsyncOpenAI, OpenAIError

from ragchat.core.exceptions import ConfigurationError, EmbeddingError

from .base import check_batch, validate_vector

logger = logging.getLogger(__name__)


class OpenAIEmbedder:
    """Embeddings via the OpenAI embeddings API (native batching)."""

    name = "openai"

    def __init__(
        self,
        api_key: str | None,
        model: str = "text-embedding-3-small",
        base_url: str | None = None,
        batch_size: int = 100,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize OpenAI embedder.

        Args:
            api_key: OpenAI API key; checked on first use.
            model: Embedding model name.
            base_url: Optional API base URL.
            batch_size: Max texts per request.
            client: Preconfigured client (tests).
        """
        if not api_key and client is None:
            logger.warning("OPENAI_API_KEY not set, embedding calls will fail")
        self._api_key = api_key
        self._model = model
        self._base_url = base_url
        self._batch_size = batch_size
        self._client = client

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._api_key:
                raise ConfigurationError("OPENAI_API_KEY is not configured")
            self._client = AsyncOpenAI(api_key=self._api_key, base_url=self._base_url)
        return self._client

    async def embed(self, text: str) -> list[float]:
        vectors = await self._create([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        embeddings: list[list[float]] = []
        for i in range(0, len(texts), self._batch_size):
            batch = texts[i : i + self._batch_size]
            embeddings.extend(await self._create(batch))
        return embeddings

    async def _create(self, texts: list[str]) -> list[list[float]]:
        client = self.client
        try:
            response = await client.embeddings.create(model=self._model, input=texts)
        except OpenAIError as e:
            logger.error(f"OpenAI embedding error: {e}")
            raise EmbeddingError(f"OpenAI embedding request failed: {e}") from e

        data = sorted(response.data, key=lambda item: item.index)
        vectors = [validate_vector(item.embedding, self.name) for item in data]
        check_batch(vectors, texts, self.name)
        return vectors
