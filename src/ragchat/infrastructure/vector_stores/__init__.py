"""Vector store implementations."""
from .chroma_store import ChromaVectorStore
from .persistent_chroma import PersistentChromaVectorStore

__all__ = ["ChromaVectorStore", "PersistentChromaVectorStore"]
