"""Core business services."""
from .background_indexer import BackgroundIndexer
from .chat_service import ChatService
from .document_processor import DocumentProcessor, split_sentences
from .rag_service import RagService
from .router_service import CHAT_PROVIDERS, ProviderRouter

__all__ = [
    "BackgroundIndexer",
    "ChatService",
    "DocumentProcessor",
    "split_sentences",
    "RagService",
    "CHAT_PROVIDERS",
    "ProviderRouter",
]
