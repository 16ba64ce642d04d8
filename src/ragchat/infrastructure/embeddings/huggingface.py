import asyncio
import logging
from typing import Any

import httpx
import numpy as np

from ragchat.core.exceptions import ConfigurationError, EmbeddingError

from .base import check_batch, validate_vector

logger = logging.getLogger(__name__)


class HuggingFaceEmbedder:
    """Embeddings via the HuggingFace Inference API feature-extraction task.

    A "model is loading" reply (HTTP 503) is retried once after
    ``loading_retry_delay`` seconds.
    """

    name = "huggingface"

    def __init__(
        self,
        api_key: str | None,
        model: str = "sentence-transformers/all-MiniLM-L6-v2",
        base_url: str = "https://api-inference.huggingface.co",
        loading_retry_delay: float = 10.0,
        batch_size: int = 100,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        if not api_key:
            logger.warning("HUGGINGFACE_API_KEY not set, embedding calls will fail")
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._loading_retry_delay = loading_retry_delay
        self._batch_size = batch_size
        self._timeout = timeout
        self._transport = transport

    @property
    def _url(self) -> str:
        return f"{self._base_url}/pipeline/feature-extraction/{self._model}"

    async def embed(self, text: str) -> list[float]:
        vectors = await self.embed_batch([text])
        return vectors[0]

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        if not self._api_key:
            raise ConfigurationError("HUGGINGFACE_API_KEY is not configured")

        embeddings: list[list[float]] = []
        async with httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            headers={"Authorization": f"Bearer {self._api_key}"},
        ) as client:
            for i in range(0, len(texts), self._batch_size):
                batch = texts[i : i + self._batch_size]
                data = await self._request(client, batch)
                vectors = self._parse(data)
                check_batch(vectors, batch, self.name)
                embeddings.extend(vectors)
        return embeddings

    async def _request(self, client: httpx.AsyncClient, texts: list[str]) -> Any:
        payload = {"inputs": texts, "options": {"wait_for_model": False}}
        try:
            resp = await client.post(self._url, json=payload)
            if self._is_loading(resp):
                logger.warning(
                    f"HuggingFace model {self._model} is loading, "
                    f"retrying in {self._loading_retry_delay}s"
                )
                await asyncio.sleep(self._loading_retry_delay)
                resp = await client.post(self._url, json=payload)
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPError as e:
            logger.error(f"HuggingFace embedding error: {e}")
            raise EmbeddingError(f"HuggingFace embedding request failed: {e}") from e
        except ValueError as e:
            raise EmbeddingError(f"Malformed HuggingFace response: {e}") from e

    @staticmethod
    def _is_loading(resp: httpx.Response) -> bool:
        if resp.status_code != 503:
            return False
        try:
            body = resp.json()
        except ValueError:
            return "loading" in resp.text.lower()
        if not isinstance(body, dict):
            return False
        return "estimated_time" in body or "loading" in str(body.get("error", "")).lower()

    def _parse(self, data: Any) -> list[list[float]]:
        if not isinstance(data, list) or not data:
            raise EmbeddingError("Invalid embedding response from huggingface")

        vectors = []
        for item in data:
            # Token-level output: mean-pool over tokens.
            if isinstance(item, list) and item and isinstance(item[0], list):
                try:
                    item = np.asarray(item, dtype=np.float64).mean(axis=0).tolist()
                except ValueError as e:
                    raise EmbeddingError(f"Ragged token embeddings: {e}") from e
            vectors.append(validate_vector(item, self.name))
        return vectors
