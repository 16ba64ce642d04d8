"""RAG service - indexing and retrieval orchestration."""

import logging
from pathlib import Path
from typing import Optional

from ..exceptions import IndexingError
from ..models.document import IndexedRecord, SearchResult
from ..protocols.embedder import EmbedderProtocol
from ..protocols.vector_store import VectorStoreProtocol
from .document_processor import DocumentProcessor

logger = logging.getLogger(__name__)

PROMPT_HEADER = "\n\n=== Relevant documents ===\n"
PROMPT_FOOTER = "\n=== End of relevant documents ===\n\n"
PROMPT_INSTRUCTION = (
    "Use the information from the documents above to answer the user's question. "
    "If the documents do not contain enough information, answer from your general knowledge. "
    "Cite the source documents when possible.\n\n"
)


class RagService:
    """Chunk -> embed -> store on ingest; embed -> search -> format on query."""

    def __init__(
        self,
        processor: DocumentProcessor,
        embedder: EmbedderProtocol,
        vector_store: VectorStoreProtocol,
        enabled: bool = False,
        top_k: int = 5,
    ):
        """Initialize RAG service.

        Args:
            processor: Text extraction and chunking.
            embedder: Embedding provider.
            vector_store: Vector store.
            enabled: Deployment-wide RAG switch.
            top_k: Number of results per search.
        """
        self._processor = processor
        self._embedder = embedder
        self._vector_store = vector_store
        self._enabled = enabled
        self._top_k = top_k

        logger.info(f"RAG service initialized: enabled={enabled}, top_k={top_k}")
        if not enabled:
            logger.warning("RAG is disabled. Set RAG_ENABLED=true to enable it.")

    def is_enabled(self) -> bool:
        return self._enabled

    async def index_file(
        self,
        file_id: str,
        file_path: str | Path,
        mimetype: str,
        original_name: str,
    ) -> int:
        """Extract, chunk, embed and store one uploaded file.

        Args:
            file_id: Caller-assigned document id.
            file_path: Path of the stored upload.
            mimetype: MIME type reported by the upload.
            original_name: Original filename, kept for citations.

        Returns:
            Number of chunks indexed.

        Raises:
            IndexingError: Embedding count does not match chunk count.
        """
        if not self._enabled:
            logger.info("RAG is disabled, skipping indexing")
            return 0

        try:
            logger.info(f"[RAG] Indexing file {file_id}: {original_name}")

            chunks = await self._processor.process_file(file_path, mimetype)
            if not chunks:
                logger.warning(f"[RAG] No chunks extracted from file {file_id}")
                return 0
            logger.info(f"[RAG] Extracted {len(chunks)} chunks from file {file_id}")

            texts = [c.content for c in chunks]
            embeddings = await self._embedder.embed_batch(texts)
            if len(embeddings) != len(chunks):
                raise IndexingError(
                    f"Mismatch between chunks ({len(chunks)}) "
                    f"and embeddings ({len(embeddings)})"
                )

            records = [
                IndexedRecord.from_chunk(file_id, original_name, chunk, embedding)
                for chunk, embedding in zip(chunks, embeddings)
            ]
            await self._vector_store.upsert(
                ids=[r.id for r in records],
                embeddings=[r.embedding for r in records],
                documents=[r.text for r in records],
                metadatas=[r.metadata for r in records],
            )

            logger.info(f"[RAG] Indexed file {file_id} with {len(records)} chunks")
            return len(records)
        except Exception as e:
            logger.error(f"[RAG] Error indexing file {file_id}: {e}")
            raise

    async def delete_file_index(self, file_id: str) -> None:
        """Remove every record of a document. Best effort, never raises."""
        if not self._enabled:
            return

        try:
            deleted = await self._vector_store.delete({"fileId": str(file_id)})
            logger.info(f"Deleted index for file {file_id} ({deleted} chunks)")
        except Exception as e:
            logger.error(f"Error deleting index for file {file_id}: {e}")

    async def search_documents(
        self, query: str, file_id: Optional[str] = None
    ) -> list[SearchResult]:
        """Find the chunks most similar to ``query``.

        Args:
            query: User query.
            file_id: Restrict the search to one document.

        Returns:
            Results by descending similarity; empty when disabled or on error.
        """
        if not self._enabled:
            logger.info("RAG is disabled, returning empty results")
            return []

        try:
            query_embedding = await self._embedder.embed(query)
            logger.debug(f"RAG: query embedding dimension {len(query_embedding)}")

            where = {"fileId": str(file_id)} if file_id else None
            matches = await self._vector_store.query(
                query_embedding=query_embedding, n_results=self._top_k, where=where
            )

            results = [SearchResult.from_match(m) for m in matches]
            results.sort(key=lambda r: r.similarity, reverse=True)

            logger.info(f"RAG: found {len(results)} documents for '{query[:50]}...'")
            if results:
                logger.debug(f"RAG: top result similarity {results[0].similarity:.3f}")
            return results
        except Exception as e:
            logger.error(f"Error searching documents: {e}")
            return []

    def format_documents_for_prompt(self, results: list[SearchResult]) -> str:
        """Wrap search results in a prompt block; empty input gives ''."""
        if not results:
            return ""

        parts = [PROMPT_HEADER]
        for i, r in enumerate(results, 1):
            parts.append(f'\n[Document {i} from "{r.source}"]\n')
            parts.append(f"{r.content}\n")
            parts.append("---\n")
        parts.append(PROMPT_FOOTER)
        parts.append(PROMPT_INSTRUCTION)
        return "".join(parts)

    async def get_stats(self) -> dict[str, int]:
        if not self._enabled:
            return {"totalDocuments": 0}

        try:
            return {"totalDocuments": await self._vector_store.count()}
        except Exception as e:
            logger.error(f"Error getting RAG stats: {e}")
            return {"totalDocuments": 0}
