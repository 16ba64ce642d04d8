import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Generic, Optional, TypeVar

from ragchat.core.exceptions import VectorStoreError, VectorStoreUnavailableError
from ragchat.core.models.document import VectorMatch

logger = logging.getLogger(__name__)

H = TypeVar("H")


class LazyCollectionStore(ABC, Generic[H]):
    """Vector store whose collection is opened on first use.

    Opening is single-flight: concurrent first calls share one attempt.
    A failed attempt marks the store unavailable until the next call
    tries again; ``query`` and ``count`` then answer with no data.
    """

    def __init__(self, collection_name: str):
        self._collection_name = collection_name
        self._handle: Optional[H] = None
        self._init_lock = asyncio.Lock()
        self._dimension: Optional[int] = None
        self.available = False

    @abstractmethod
    async def _open_collection(self) -> H:
        """Get or create the backing collection."""

    async def _ensure_collection(self) -> Optional[H]:
        if self._handle is not None:
            return self._handle

        async with self._init_lock:
            if self._handle is not None:
                return self._handle
            try:
                self._handle = await self._open_collection()
                self.available = True
            except Exception as e:
                self.available = False
                logger.error(
                    f"Vector store init failed for '{self._collection_name}', "
                    f"RAG storage unavailable: {e}"
                )
        return self._handle

    async def _require_collection(self) -> H:
        handle = await self._ensure_collection()
        if handle is None:
            raise VectorStoreUnavailableError(
                f"Collection '{self._collection_name}' is not initialized"
            )
        return handle

    def _check_dimensions(self, embeddings: list[list[float]]) -> Optional[int]:
        """Validate a batch against the collection width; returns the batch width.

        The width is only remembered once a write succeeds (``_accept_dimension``).
        """
        dims = {len(e) for e in embeddings}
        if 0 in dims:
            raise VectorStoreError("Empty embedding vector")
        if len(dims) > 1:
            raise VectorStoreError(f"Mixed embedding dimensions: {sorted(dims)}")
        dim = dims.pop() if dims else None
        if dim is None:
            return None
        if self._dimension is not None and dim != self._dimension:
            raise VectorStoreError(
                f"Embedding dimension {dim} does not match collection "
                f"dimension {self._dimension}"
            )
        return dim

    def _accept_dimension(self, dim: Optional[int]) -> None:
        if self._dimension is None and dim is not None:
            self._dimension = dim

    @staticmethod
    def _check_lengths(
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[dict[str, Any]],
    ) -> None:
        sizes = {len(ids), len(embeddings), len(documents), len(metadatas)}
        if len(sizes) > 1:
            raise VectorStoreError(
                f"Length mismatch: ids={len(ids)} embeddings={len(embeddings)} "
                f"documents={len(documents)} metadatas={len(metadatas)}"
            )

    @staticmethod
    def _to_matches(
        documents: list[Any], metadatas: list[Any], distances: list[Any]
    ) -> list[VectorMatch]:
        matches = []
        for i, document in enumerate(documents):
            metadata = metadatas[i] if i < len(metadatas) and metadatas[i] else {}
            distance = distances[i] if i < len(distances) and distances[i] is not None else 0.0
            matches.append(
                VectorMatch(text=document or "", metadata=dict(metadata), distance=float(distance))
            )
        return matches
