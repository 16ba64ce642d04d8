import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from .config.settings import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class Container:
    _factories: dict[type, Callable[[], Any]] = field(default_factory=dict)
    _singletons: dict[type, Any] = field(default_factory=dict)
    _singleton_flags: set[type] = field(default_factory=set)

    def register(
        self, interface: type[T], factory: Callable[[], T], singleton: bool = False
    ) -> None:
        """Register factory for interface.

        Args:
            interface: Interface type.
            factory: Factory function.
            singleton: Whether to cache instance.
        """
        self._factories[interface] = factory
        if singleton:
            self._singleton_flags.add(interface)

    def resolve(self, interface: type[T]) -> T:
        if interface in self._singletons:
            return self._singletons[interface]

        if interface not in self._factories:
            raise KeyError(f"No factory registered for {interface}")

        instance = self._factories[interface]()

        if interface in self._singleton_flags:
            self._singletons[interface] = instance

        return instance

    def reset(self) -> None:
        """Reset singletons (for testing)."""
        self._singletons.clear()

    async def aclose(self) -> None:
        """Close every created singleton that holds a connection."""
        for instance in list(self._singletons.values()):
            close = getattr(instance, "aclose", None)
            if close is not None:
                await close()


container = Container()


def configure_container(settings: Settings, target: Container | None = None) -> Container:
    """Configure container with all dependencies.

    Args:
        settings: Application settings.
        target: Container to fill; defaults to the module-level one.

    Returns:
        Configured container.
    """
    from .core.protocols.embedder import EmbedderProtocol
    from .core.protocols.vector_store import VectorStoreProtocol
    from .core.services.background_indexer import BackgroundIndexer
    from .core.services.chat_service import ChatService
    from .core.services.document_processor import DocumentProcessor
    from .core.services.rag_service import RagService
    from .core.services.router_service import ProviderRouter
    from .infrastructure.embeddings.factory import create_embedder
    from .infrastructure.llm.custom_client import CustomChatClient
    from .infrastructure.llm.gemini_client import GeminiChatClient
    from .infrastructure.vector_stores.chroma_store import ChromaVectorStore
    from .infrastructure.vector_stores.persistent_chroma import (
        PersistentChromaVectorStore,
    )

    c = target if target is not None else container

    c.register(EmbedderProtocol, lambda: create_embedder(settings), singleton=True)

    def make_vector_store() -> VectorStoreProtocol:
        if settings.chroma_host and settings.chroma_host.strip():
            return ChromaVectorStore(
                host=settings.chroma_host,
                port=settings.chroma_port,
                collection_name=settings.chroma_collection,
            )
        return PersistentChromaVectorStore(
            persist_dir=settings.vector_db_path,
            collection_name=settings.chroma_collection,
        )

    c.register(VectorStoreProtocol, make_vector_store, singleton=True)

    c.register(
        DocumentProcessor,
        lambda: DocumentProcessor(
            chunk_size=settings.chunk_size,
            chunk_overlap=settings.chunk_overlap,
        ),
        singleton=True,
    )

    c.register(
        RagService,
        lambda: RagService(
            processor=c.resolve(DocumentProcessor),
            embedder=c.resolve(EmbedderProtocol),
            vector_store=c.resolve(VectorStoreProtocol),
            enabled=settings.rag_enabled,
            top_k=settings.rag_top_k,
        ),
        singleton=True,
    )

    c.register(
        BackgroundIndexer,
        lambda: BackgroundIndexer(c.resolve(RagService)),
        singleton=True,
    )

    c.register(
        GeminiChatClient,
        lambda: GeminiChatClient(
            api_key=settings.gemini_api_key,
            base_url=settings.gemini_base_url,
            history_limit=settings.llm_history_limit,
            timeout=settings.llm_timeout,
        ),
        singleton=True,
    )

    c.register(
        CustomChatClient,
        lambda: CustomChatClient(
            server_url=settings.custom_server_url,
            default_model=settings.custom_model,
            history_limit=settings.llm_history_limit,
            timeout=settings.llm_timeout,
        ),
        singleton=True,
    )

    c.register(
        ProviderRouter,
        lambda: ProviderRouter(
            {
                "gemini": c.resolve(GeminiChatClient),
                "custom": c.resolve(CustomChatClient),
            }
        ),
        singleton=True,
    )

    c.register(
        ChatService,
        lambda: ChatService(
            router=c.resolve(ProviderRouter),
            rag_service=c.resolve(RagService),
            list_models=c.resolve(GeminiChatClient).list_models,
        ),
        singleton=True,
    )

    logger.info("Container configured")
    return c
