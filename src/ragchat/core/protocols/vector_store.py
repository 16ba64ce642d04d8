"""Vector store protocol for dependency injection."""
from typing import Any, Protocol, runtime_checkable

from ..models.document import VectorMatch


@runtime_checkable
class VectorStoreProtocol(Protocol):
    """Protocol for vector storage."""

    async def upsert(
        self,
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[dict[str, Any]],
    ) -> None:
        """Insert or overwrite records by id.

        Args:
            ids: Record IDs.
            embeddings: Record embeddings.
            documents: Chunk texts.
            metadatas: Chunk metadata.
        """
        ...

    async def query(
        self,
        query_embedding: list[float],
        n_results: int = 5,
        where: dict[str, Any] | None = None,
    ) -> list[VectorMatch]:
        """Search by embedding, best match first.

        Never raises on backend unavailability; returns an empty list.

        Args:
            query_embedding: Query vector.
            n_results: Number of results to return.
            where: Exact-match metadata filter.

        Returns:
            List of matches.
        """
        ...

    async def get(self, where: dict[str, Any]) -> list[VectorMatch]:
        """Fetch all records matching a metadata filter."""
        ...

    async def delete(self, where: dict[str, Any]) -> int:
        """Delete records matching a metadata filter, return how many."""
        ...

    async def count(self) -> int:
        """Get record count (0 when unavailable)."""
        ...
