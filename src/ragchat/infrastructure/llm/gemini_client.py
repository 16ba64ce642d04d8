import logging
from typing import Any, Optional

import httpx

from ragchat.core.exceptions import ConfigurationError, ProviderError
from ragchat.core.models.chat import ChatMessage, ChatResponse, UsageStats, trim_history
from ragchat.core.strategies.fallback import ModelFallbackStrategy

logger = logging.getLogger(__name__)

DEFAULT_LISTED_MODELS = ["gemini-2.5-flash", "gemini-2.0-flash"]


class GeminiRequestError(Exception):
    """Single failed ``generateContent`` call."""


class GeminiChatClient:
    """Chat backend for the Gemini REST API with model fallback."""

    provider = "gemini"

    def __init__(
        self,
        api_key: str | None,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        history_limit: int = 10,
        timeout: float = 30.0,
        strategy: Optional[ModelFallbackStrategy] = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """Initialize Gemini client.

        Args:
            api_key: Gemini API key; checked on first use.
            base_url: API base URL.
            history_limit: Number of recent messages sent to the model.
            timeout: Request timeout in seconds.
            strategy: Model fallback strategy.
            transport: Optional httpx transport (tests).
        """
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._history_limit = history_limit
        self._timeout = timeout
        self._strategy = strategy or ModelFallbackStrategy()
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self._api_key:
            raise ConfigurationError("GEMINI_API_KEY is not configured")
        return httpx.AsyncClient(
            timeout=self._timeout,
            transport=self._transport,
            params={"key": self._api_key},
        )

    async def list_models(self) -> list[str]:
        """Models supporting ``generateContent``; defaults on failure."""
        try:
            async with self._client() as client:
                resp = await client.get(f"{self._base_url}/models")
                resp.raise_for_status()
                models = resp.json().get("models", [])
        except (httpx.HTTPError, ValueError, ConfigurationError) as e:
            logger.error(f"Error fetching Gemini models: {e}")
            return list(DEFAULT_LISTED_MODELS)

        return [
            m["name"]
            for m in models
            if "generateContent" in (m.get("supportedGenerationMethods") or [])
        ]

    @staticmethod
    def _build_payload(
        messages: list[ChatMessage], system_prompt: str | None
    ) -> dict[str, Any]:
        contents = []
        for m in messages:
            role = "model" if m.role == "assistant" else "user"
            contents.append({"role": role, "parts": [{"text": m.content}]})

        payload: dict[str, Any] = {"contents": contents}
        if system_prompt and system_prompt.strip():
            payload["systemInstruction"] = {"parts": [{"text": system_prompt}]}
        return payload

    async def generate(
        self,
        model: str,
        messages: list[ChatMessage],
        system_prompt: str | None = None,
    ) -> ChatResponse:
        recent = trim_history(messages, self._history_limit)
        payload = self._build_payload(recent, system_prompt)

        try:
            available = await self.list_models()
            candidates = self._strategy.candidates(model, available)

            async with self._client() as client:

                async def attempt(candidate: str) -> ChatResponse:
                    return await self._generate_once(client, candidate, payload)

                return await self._strategy.run(candidates, attempt)
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Gemini API error: {e}")
            raise ProviderError(self.provider, str(e)) from e

    async def _generate_once(
        self, client: httpx.AsyncClient, model: str, payload: dict[str, Any]
    ) -> ChatResponse:
        try:
            resp = await client.post(
                f"{self._base_url}/models/{model}:generateContent", json=payload
            )
        except httpx.TimeoutException as e:
            raise GeminiRequestError(f"{model}: request timed out ({e})") from e
        except httpx.HTTPError as e:
            raise GeminiRequestError(f"{model}: service unavailable ({e})") from e

        if resp.status_code != 200:
            raise GeminiRequestError(f"{model}: HTTP {resp.status_code}: {resp.text[:300]}")

        data = resp.json()
        try:
            parts = data["candidates"][0]["content"]["parts"]
        except (KeyError, IndexError, TypeError) as e:
            raise GeminiRequestError(f"{model}: malformed response") from e
        text = "".join(p.get("text", "") for p in parts)

        usage = data.get("usageMetadata") or {}
        return ChatResponse(
            content=text,
            stats=UsageStats(
                model=model,
                prompt_tokens=usage.get("promptTokenCount", 0),
                response_tokens=usage.get("candidatesTokenCount", 0),
                total_tokens=usage.get("totalTokenCount", 0),
            ),
        )
