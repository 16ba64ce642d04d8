"""Document domain models."""
from dataclasses import dataclass, field
from typing import Any, Optional


@dataclass(frozen=True)
class DocumentChunk:
    """Contiguous slice of a document's extracted text.

    ``start_char``/``end_char`` are half-open offsets into the text the
    chunk was cut from, so ``text[start_char:end_char] == content``.
    """
    content: str
    chunk_index: int
    start_char: int
    end_char: int
    metadata: Optional[dict[str, Any]] = None


@dataclass
class IndexedRecord:
    """One vector-store row: embedding, chunk text and chunk metadata."""
    id: str
    embedding: list[float]
    text: str
    metadata: dict[str, Any]

    @staticmethod
    def make_id(file_id: str, chunk_index: int) -> str:
        return f"{file_id}_chunk_{chunk_index}"

    @classmethod
    def from_chunk(
        cls,
        file_id: str,
        original_name: str,
        chunk: DocumentChunk,
        embedding: list[float],
    ) -> "IndexedRecord":
        metadata: dict[str, Any] = {
            "fileId": str(file_id),
            "chunkIndex": int(chunk.chunk_index),
            "originalName": original_name,
            "startChar": chunk.start_char,
            "endChar": chunk.end_char,
        }
        if chunk.metadata:
            metadata.update(chunk.metadata)
        return cls(
            id=cls.make_id(file_id, chunk.chunk_index),
            embedding=embedding,
            text=chunk.content,
            metadata=metadata,
        )


@dataclass
class VectorMatch:
    """Raw nearest-neighbour hit from the vector store."""
    text: str
    metadata: dict[str, Any]
    distance: float


@dataclass
class SearchResult:
    """Search result with distance mapped to a [0, 1] similarity."""
    content: str
    metadata: dict[str, Any] = field(default_factory=dict)
    similarity: float = 0.0

    @property
    def source(self) -> str:
        return self.metadata.get("originalName", "Unknown")

    @classmethod
    def from_match(cls, match: VectorMatch) -> "SearchResult":
        return cls(
            content=match.text,
            metadata=match.metadata or {},
            similarity=distance_to_similarity(match.distance),
        )


def distance_to_similarity(distance: float) -> float:
    """Map a raw store distance to similarity; higher is more relevant."""
    if distance is None or distance < 0:
        return 0.0
    return 1.0 - min(distance, 1.0)
