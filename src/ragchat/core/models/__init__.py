"""Domain models."""
from .document import (
    DocumentChunk,
    IndexedRecord,
    SearchResult,
    VectorMatch,
    distance_to_similarity,
)
from .chat import (
    ChatMessage,
    ChatRequest,
    ChatResponse,
    Source,
    UsageStats,
    trim_history,
)

__all__ = [
    "DocumentChunk",
    "IndexedRecord",
    "SearchResult",
    "VectorMatch",
    "distance_to_similarity",
    "ChatMessage",
    "ChatRequest",
    "ChatResponse",
    "Source",
    "UsageStats",
    "trim_history",
]
