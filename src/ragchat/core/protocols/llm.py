"""LLM protocol for dependency injection."""
from typing import Protocol, runtime_checkable

from ..models.chat import ChatMessage, ChatResponse


@runtime_checkable
class LLMProtocol(Protocol):
    """Protocol for chat backends."""

    async def generate(
        self,
        model: str,
        messages: list[ChatMessage],
        system_prompt: str | None = None,
    ) -> ChatResponse:
        """Generate an answer for a conversation.

        Args:
            model: Requested model name.
            messages: Full message history.
            system_prompt: System prompt, possibly with RAG context.

        Returns:
            Normalized response with usage stats.
        """
        ...
