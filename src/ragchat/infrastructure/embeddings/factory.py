import logging

from ragchat.config.settings import Settings
from ragchat.core.exceptions import UnsupportedProviderError
from ragchat.core.protocols.embedder import EmbedderProtocol

logger = logging.getLogger(__name__)

EMBEDDING_PROVIDERS = ["gemini", "openai", "huggingface"]


def create_embedder(settings: Settings) -> EmbedderProtocol:
    """Build the one embedder selected by ``settings.embedding_provider``."""
    provider = settings.embedding_provider.strip().lower()
    logger.info(f"Embedding provider: {provider}")

    if provider == "gemini":
        from .gemini import GeminiEmbedder

        return GeminiEmbedder(
            api_key=settings.gemini_api_key,
            model=settings.gemini_embedding_model,
            base_url=settings.gemini_base_url,
            fallback_dimension=settings.fallback_embedding_dimension,
        )

    if provider == "openai":
        from .openai_embedder import OpenAIEmbedder

        return OpenAIEmbedder(
            api_key=settings.openai_api_key,
            model=settings.openai_embedding_model,
            base_url=settings.openai_base_url,
            batch_size=settings.embedding_batch_size,
        )

    if provider == "huggingface":
        from .huggingface import HuggingFaceEmbedder

        return HuggingFaceEmbedder(
            api_key=settings.huggingface_api_key,
            model=settings.huggingface_embedding_model,
            base_url=settings.huggingface_base_url,
            loading_retry_delay=settings.huggingface_loading_retry_delay,
            batch_size=settings.embedding_batch_size,
        )

    raise UnsupportedProviderError("embedding", provider, EMBEDDING_PROVIDERS)
