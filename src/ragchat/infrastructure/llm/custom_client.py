import logging

from openai import APIStatusError, AsyncOpenAI, OpenAIError

from ragchat.core.exceptions import ConfigurationError, ProviderError
from ragchat.core.models.chat import ChatMessage, ChatResponse, UsageStats, trim_history

logger = logging.getLogger(__name__)


class CustomChatClient:
    """LLM client for a self-hosted OpenAI-compatible server (e.g. Ollama)."""

    provider = "custom"

    def __init__(
        self,
        server_url: str | None,
        default_model: str = "qwen2:0.5b",
        history_limit: int = 10,
        timeout: float = 30.0,
        client: AsyncOpenAI | None = None,
    ):
        """Initialize custom server client.

        Args:
            server_url: Server root URL; ``/v1`` is appended.
            default_model: Model used when the request names none.
            history_limit: Number of recent messages sent to the model.
            timeout: Request timeout in seconds.
            client: Preconfigured client (tests).
        """
        self._server_url = (server_url or "").strip()
        self._default_model = default_model
        self._history_limit = history_limit
        self._timeout = timeout
        self._client = client

    def is_configured(self) -> bool:
        return bool(self._server_url) or self._client is not None

    @property
    def client(self) -> AsyncOpenAI:
        if self._client is None:
            if not self._server_url:
                raise ConfigurationError("Custom server URL is not configured on server")
            self._client = AsyncOpenAI(
                base_url=f"{self._server_url.rstrip('/')}/v1",
                api_key="ollama",
                timeout=self._timeout,
            )
        return self._client

    async def generate(
        self,
        model: str,
        messages: list[ChatMessage],
        system_prompt: str | None = None,
    ) -> ChatResponse:
        chat_messages = []
        if system_prompt and system_prompt.strip():
            chat_messages.append({"role": "system", "content": system_prompt})
        chat_messages.extend(
            {"role": m.role, "content": m.content}
            for m in trim_history(messages, self._history_limit)
        )

        model = model or self._default_model
        client = self.client
        try:
            response = await client.chat.completions.create(
                model=model,
                messages=chat_messages,
                stream=False,
            )
        except APIStatusError as e:
            logger.error(f"Custom server error: {e}")
            raise ProviderError(self.provider, f"HTTP {e.status_code}: {e.message}") from e
        except OpenAIError as e:
            logger.error(f"Custom server error: {e}")
            raise ProviderError(self.provider, str(e)) from e

        content = response.choices[0].message.content if response.choices else ""
        if not content:
            raise ProviderError(self.provider, "Empty response from custom server")

        usage = response.usage
        return ChatResponse(
            content=content,
            stats=UsageStats(
                model=model,
                prompt_tokens=usage.prompt_tokens if usage else 0,
                response_tokens=usage.completion_tokens if usage else 0,
                total_tokens=usage.total_tokens if usage else 0,
            ),
        )
