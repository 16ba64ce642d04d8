import asyncio
import logging
from pathlib import Path
from typing import Any

from ragchat.core.exceptions import VectorStoreError
from ragchat.core.models.document import VectorMatch

from .base import LazyCollectionStore

logger = logging.getLogger(__name__)


class PersistentChromaVectorStore(LazyCollectionStore[Any]):
    """Vector store backed by an on-disk ChromaDB (``PersistentClient``).

    chromadb is synchronous, so every call runs in a worker thread.
    """

    def __init__(self, persist_dir: str = "./vector_db", collection_name: str = "documents"):
        super().__init__(collection_name)
        self._persist_dir = Path(persist_dir)

    async def _open_collection(self) -> Any:
        return await asyncio.to_thread(self._open_sync)

    def _open_sync(self) -> Any:
        import chromadb

        self._persist_dir.mkdir(parents=True, exist_ok=True)
        client = chromadb.PersistentClient(path=str(self._persist_dir))
        collection = client.get_or_create_collection(
            name=self._collection_name,
            metadata={"hnsw:space": "cosine", "description": "Document embeddings for RAG"},
        )
        logger.info(
            f"Opened collection '{self._collection_name}' at {self._persist_dir} "
            f"({collection.count()} records)"
        )
        return collection

    async def upsert(
        self,
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[dict[str, Any]],
    ) -> None:
        self._check_lengths(ids, embeddings, documents, metadatas)
        if not ids:
            return
        dim = self._check_dimensions(embeddings)
        collection = await self._require_collection()
        try:
            await asyncio.to_thread(
                collection.upsert,
                ids=ids,
                embeddings=embeddings,
                documents=documents,
                metadatas=metadatas,
            )
        except Exception as e:
            raise VectorStoreError(f"Chroma upsert failed: {e}") from e
        self._accept_dimension(dim)
        logger.info(f"Upserted {len(ids)} records into {self._collection_name}")

    async def query(
        self,
        query_embedding: list[float],
        n_results: int = 5,
        where: dict[str, Any] | None = None,
    ) -> list[VectorMatch]:
        collection = await self._ensure_collection()
        if collection is None:
            logger.warning("Chroma collection unavailable, returning empty results")
            return []

        try:
            total = await asyncio.to_thread(collection.count)
            if total == 0:
                return []
            result = await asyncio.to_thread(
                collection.query,
                query_embeddings=[query_embedding],
                n_results=min(n_results, total),
                where=where or None,
                include=["documents", "metadatas", "distances"],
            )
        except Exception as e:
            logger.error(f"Error searching similar documents: {e}")
            return []

        if not result.get("ids") or not result["ids"][0]:
            return []
        return self._to_matches(
            (result.get("documents") or [[]])[0],
            (result.get("metadatas") or [[]])[0],
            (result.get("distances") or [[]])[0],
        )

    async def get(self, where: dict[str, Any]) -> list[VectorMatch]:
        collection = await self._require_collection()
        try:
            result = await asyncio.to_thread(
                collection.get, where=where, include=["documents", "metadatas"]
            )
        except Exception as e:
            raise VectorStoreError(f"Chroma get failed: {e}") from e
        return self._to_matches(result.get("documents") or [], result.get("metadatas") or [], [])

    async def delete(self, where: dict[str, Any]) -> int:
        collection = await self._require_collection()
        try:
            result = await asyncio.to_thread(collection.get, where=where, include=[])
            ids = result.get("ids") or []
            if ids:
                await asyncio.to_thread(collection.delete, ids=ids)
        except Exception as e:
            raise VectorStoreError(f"Chroma delete failed: {e}") from e
        if ids:
            logger.info(f"Deleted {len(ids)} records matching {where}")
        return len(ids)

    async def count(self) -> int:
        collection = await self._ensure_collection()
        if collection is None:
            return 0
        try:
            return await asyncio.to_thread(collection.count)
        except Exception as e:
            logger.error(f"Error getting document count: {e}")
            return 0
