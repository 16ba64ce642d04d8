"""Router service - picks the chat backend for a request."""

import logging

from ..exceptions import UnsupportedProviderError
from ..protocols.llm import LLMProtocol

logger = logging.getLogger(__name__)

CHAT_PROVIDERS = ["gemini", "custom"]


class ProviderRouter:
    """Closed set of chat backends keyed by provider name."""

    def __init__(self, providers: dict[str, LLMProtocol]):
        """Initialize router.

        Args:
            providers: Backend per provider name; names outside the
                supported set are rejected.
        """
        unknown = set(providers) - set(CHAT_PROVIDERS)
        if unknown:
            raise UnsupportedProviderError("chat", sorted(unknown)[0], CHAT_PROVIDERS)
        self._providers = dict(providers)

    @property
    def providers(self) -> list[str]:
        return list(self._providers)

    def route(self, provider: str) -> LLMProtocol:
        """Return the backend for ``provider``."""
        backend = self._providers.get(provider)
        if backend is None:
            raise UnsupportedProviderError("chat", provider, list(self._providers))
        logger.debug(f"Routing chat request to {provider}")
        return backend
