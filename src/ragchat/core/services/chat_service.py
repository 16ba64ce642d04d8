"""Chat service - coordinates retrieval and the chosen LLM backend."""

import logging
from typing import Awaitable, Callable, Optional

from ..exceptions import ProviderError
from ..models.chat import ChatRequest, ChatResponse, Source
from .rag_service import RagService
from .router_service import ProviderRouter

logger = logging.getLogger(__name__)

DEFAULT_MODELS = ["gemini-2.5-flash", "gemini-2.0-flash"]


class ChatService:
    """Answers a chat turn, grounding it in documents when asked to."""

    def __init__(
        self,
        router: ProviderRouter,
        rag_service: RagService,
        list_models: Optional[Callable[[], Awaitable[list[str]]]] = None,
    ):
        """Initialize chat service.

        Args:
            router: Chat backend router.
            rag_service: Retrieval orchestrator.
            list_models: Lists the models offered to clients.
        """
        self._router = router
        self._rag = rag_service
        self._list_models = list_models

    async def _retrieve_context(
        self, request: ChatRequest
    ) -> tuple[str, list[Source]]:
        """Search documents for the last user message.

        Retrieval problems never fail the chat turn.
        """
        if not request.use_rag:
            return "", []
        if not self._rag.is_enabled():
            logger.warning("RAG requested but is disabled. Set RAG_ENABLED=true.")
            return "", []

        last_user = request.last_user_message()
        if last_user is None:
            return "", []

        try:
            results = await self._rag.search_documents(last_user.content)
        except Exception as e:
            logger.error(f"Error during RAG search: {e}")
            return "", []

        if not results:
            logger.warning("RAG: no relevant documents found for query")
            return "", []

        sources = [Source(document=r.source, similarity=r.similarity) for r in results]
        logger.info(f"RAG: added {len(results)} documents to the prompt")
        return self._rag.format_documents_for_prompt(results), sources

    async def send_message(self, request: ChatRequest) -> ChatResponse:
        """Process one chat turn.

        Raises:
            UnsupportedProviderError: Unknown provider name.
            ProviderError: The backend failed to generate an answer.
        """
        backend = self._router.route(request.provider)

        context, sources = await self._retrieve_context(request)
        system_prompt = request.system_prompt or ""
        if context:
            system_prompt = (system_prompt + "\n\n" if system_prompt else "") + context

        try:
            response = await backend.generate(
                request.model, request.messages, system_prompt or None
            )
        except ProviderError:
            raise
        except Exception as e:
            logger.error(f"{request.provider} generation failed: {e}")
            raise ProviderError(request.provider, str(e)) from e

        if sources:
            response.sources = sources
        return response

    async def available_models(self) -> list[str]:
        if self._list_models is None:
            return list(DEFAULT_MODELS)
        try:
            return await self._list_models()
        except Exception as e:
            logger.error(f"Error getting available models: {e}")
            return list(DEFAULT_MODELS)
