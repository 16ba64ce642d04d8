import logging
from typing import Any, Optional

import httpx

from ragchat.core.exceptions import VectorStoreError
from ragchat.core.models.document import VectorMatch

from .base import LazyCollectionStore

logger = logging.getLogger(__name__)


class ChromaVectorStore(LazyCollectionStore[str]):
    """Vector store using the ChromaDB HTTP API."""

    def __init__(
        self,
        host: str = "localhost",
        port: int = 8000,
        collection_name: str = "documents",
        tenant: str = "default_tenant",
        database: str = "default_database",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """Initialize ChromaDB client.

        Args:
            host: ChromaDB host.
            port: ChromaDB port.
            collection_name: Collection name.
            tenant: Tenant name.
            database: Database name.
            timeout: Request timeout in seconds.
            transport: Optional httpx transport (tests).
        """
        super().__init__(collection_name)
        self._base_url = f"http://{host}:{port}/api/v2"
        self._tenant = tenant
        self._database = database
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)

    @property
    def _collections_url(self) -> str:
        return f"{self._base_url}/tenants/{self._tenant}/databases/{self._database}/collections"

    async def _open_collection(self) -> str:
        resp = await self._client.get(self._collections_url)
        if resp.status_code == 200:
            for col in resp.json():
                if col["name"] == self._collection_name:
                    logger.info(f"Loaded existing collection: {self._collection_name}")
                    return col["id"]

        resp = await self._client.post(
            self._collections_url,
            json={
                "name": self._collection_name,
                "metadata": {"hnsw:space": "cosine", "description": "Document embeddings for RAG"},
                "get_or_create": True,
            },
        )
        resp.raise_for_status()
        logger.info(f"Created collection: {self._collection_name}")
        return resp.json()["id"]

    async def _post(self, col_id: str, action: str, payload: dict[str, Any]) -> Any:
        try:
            resp = await self._client.post(
                f"{self._collections_url}/{col_id}/{action}", json=payload
            )
            resp.raise_for_status()
            return resp.json() if resp.content else None
        except (httpx.HTTPError, ValueError) as e:
            raise VectorStoreError(f"Chroma {action} failed: {e}") from e

    async def upsert(
        self,
        ids: list[str],
        embeddings: list[list[float]],
        documents: list[str],
        metadatas: list[dict[str, Any]],
    ) -> None:
        """Insert or overwrite records in one request."""
        self._check_lengths(ids, embeddings, documents, metadatas)
        if not ids:
            return
        dim = self._check_dimensions(embeddings)
        col_id = await self._require_collection()
        await self._post(
            col_id,
            "upsert",
            {
                "ids": ids,
                "embeddings": embeddings,
                "documents": documents,
                "metadatas": metadatas,
            },
        )
        self._accept_dimension(dim)
        logger.info(f"Upserted {len(ids)} records into {self._collection_name}")

    async def query(
        self,
        query_embedding: list[float],
        n_results: int = 5,
        where: dict[str, Any] | None = None,
    ) -> list[VectorMatch]:
        """Search by embedding."""
        col_id = await self._ensure_collection()
        if col_id is None:
            logger.warning("Chroma collection unavailable, returning empty results")
            return []

        payload: dict[str, Any] = {
            "query_embeddings": [query_embedding],
            "n_results": n_results,
            "include": ["documents", "metadatas", "distances"],
        }
        if where:
            payload["where"] = where

        try:
            data = await self._post(col_id, "query", payload)
        except VectorStoreError as e:
            logger.error(f"Error searching similar documents: {e}")
            return []

        if not data or not data.get("ids") or not data["ids"][0]:
            return []

        return self._to_matches(
            (data.get("documents") or [[]])[0],
            (data.get("metadatas") or [[]])[0],
            (data.get("distances") or [[]])[0],
        )

    async def get(self, where: dict[str, Any]) -> list[VectorMatch]:
        col_id = await self._require_collection()
        data = await self._post(
            col_id, "get", {"where": where, "include": ["documents", "metadatas"]}
        ) or {}
        documents = data.get("documents") or []
        return self._to_matches(documents, data.get("metadatas") or [], [])

    async def delete(self, where: dict[str, Any]) -> int:
        col_id = await self._require_collection()
        data = await self._post(col_id, "get", {"where": where, "include": []}) or {}
        ids = data.get("ids") or []
        if ids:
            await self._post(col_id, "delete", {"ids": ids})
            logger.info(f"Deleted {len(ids)} records matching {where}")
        return len(ids)

    async def count(self) -> int:
        """Get record count."""
        col_id = await self._ensure_collection()
        if col_id is None:
            return 0
        try:
            resp = await self._client.get(f"{self._collections_url}/{col_id}/count")
            return int(resp.json()) if resp.status_code == 200 else 0
        except (httpx.HTTPError, ValueError, TypeError) as e:
            logger.error(f"Error getting document count: {e}")
            return 0

    async def aclose(self) -> None:
        await self._client.aclose()
