"""Tests for the Gemini and custom chat backends."""

import json
from types import SimpleNamespace

import httpx
import pytest

from ragchat.core.exceptions import ConfigurationError, ProviderError
from ragchat.core.models.chat import ChatMessage, trim_history
from ragchat.infrastructure.llm import CustomChatClient, GeminiChatClient


def conversation(n: int) -> list[ChatMessage]:
    roles = ["user", "assistant"]
    return [ChatMessage(role=roles[i % 2], content=f"m{i}") for i in range(n)]


class GeminiServer:
    """Fake Gemini REST API; ``failures`` maps model -> (status, body)."""

    def __init__(self, failures=None, models=None):
        self.failures = failures or {}
        self.models = models
        self.generate_calls: list[tuple[str, dict]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path
        if path.endswith("/models") and request.method == "GET":
            if self.models is None:
                return httpx.Response(500, json={"error": "down"})
            return httpx.Response(200, json={"models": self.models})

        model = path.rsplit("/", 1)[-1].split(":")[0]
        body = json.loads(request.content)
        self.generate_calls.append((model, body))
        if model in self.failures:
            status, text = self.failures[model]
            return httpx.Response(status, text=text)
        return httpx.Response(
            200,
            json={
                "candidates": [{"content": {"parts": [{"text": f"hi from {model}"}]}}],
                "usageMetadata": {
                    "promptTokenCount": 5,
                    "candidatesTokenCount": 3,
                    "totalTokenCount": 8,
                },
            },
        )


def gemini(server: GeminiServer) -> GeminiChatClient:
    return GeminiChatClient(api_key="key", transport=httpx.MockTransport(server))


class TestTrimHistory:
    def test_keeps_last_turns_without_errors(self):
        messages = conversation(12)
        messages[-1] = ChatMessage(role="error", content="failed")

        trimmed = trim_history(messages, 10)

        assert [m.content for m in trimmed] == [f"m{i}" for i in range(2, 11)]


class TestGeminiChatClient:
    """Tests for GeminiChatClient."""

    @pytest.mark.asyncio
    async def test_generate(self):
        server = GeminiServer(models=[])
        response = await gemini(server).generate(
            "gemini-2.5-flash", conversation(3), system_prompt="Be brief."
        )

        assert response.content == "hi from gemini-2.5-flash"
        assert response.stats.model == "gemini-2.5-flash"
        assert response.stats.total_tokens == 8

        _, body = server.generate_calls[0]
        assert body["systemInstruction"] == {"parts": [{"text": "Be brief."}]}
        assert [c["role"] for c in body["contents"]] == ["user", "model", "user"]

    @pytest.mark.asyncio
    async def test_history_trimmed(self):
        server = GeminiServer(models=[])
        await gemini(server).generate("gemini-2.5-flash", conversation(15))

        _, body = server.generate_calls[0]
        assert len(body["contents"]) == 10
        assert "systemInstruction" not in body

    @pytest.mark.asyncio
    async def test_falls_back_on_rate_limit(self):
        server = GeminiServer(
            failures={"gemini-2.0-flash": (429, "Too Many Requests")},
            models=[],
        )
        response = await gemini(server).generate("gemini-2.0-flash", conversation(1))

        assert [m for m, _ in server.generate_calls] == ["gemini-2.0-flash", "gemini-2.5-flash"]
        assert response.stats.model == "gemini-2.5-flash"

    @pytest.mark.asyncio
    async def test_unknown_model_moves_on(self):
        server = GeminiServer(failures={"my-model": (404, "model not found")}, models=[])
        response = await gemini(server).generate("my-model", conversation(1))
        assert response.stats.model == "gemini-2.5-flash"

    @pytest.mark.asyncio
    async def test_non_retriable_aborts(self):
        server = GeminiServer(failures={"gemini-2.5-flash": (400, "invalid argument")}, models=[])

        with pytest.raises(ProviderError) as excinfo:
            await gemini(server).generate("gemini-2.5-flash", conversation(1))

        assert excinfo.value.provider == "gemini"
        assert "400" in str(excinfo.value)
        assert len(server.generate_calls) == 1

    @pytest.mark.asyncio
    async def test_exhausted_candidates(self):
        failures = {
            name: (503, "overloaded")
            for name in ["gemini-2.5-flash", "gemini-2.0-flash", "gemini-2.0-flash-lite", "gemini-1.5-pro"]
        }
        server = GeminiServer(
            failures=failures,
            models=[{"name": "models/gemini-1.5-pro", "supportedGenerationMethods": ["generateContent"]}],
        )

        with pytest.raises(ProviderError, match="gemini-1.5-pro"):
            await gemini(server).generate("gemini-2.5-flash", conversation(1))
        assert len(server.generate_calls) == 4

    @pytest.mark.asyncio
    async def test_list_models(self):
        server = GeminiServer(
            models=[
                {"name": "models/gemini-2.5-flash", "supportedGenerationMethods": ["generateContent"]},
                {"name": "models/embedding-001", "supportedGenerationMethods": ["embedContent"]},
            ]
        )
        assert await gemini(server).list_models() == ["models/gemini-2.5-flash"]

    @pytest.mark.asyncio
    async def test_list_models_defaults_on_failure(self):
        assert await gemini(GeminiServer(models=None)).list_models() == [
            "gemini-2.5-flash",
            "gemini-2.0-flash",
        ]

    @pytest.mark.asyncio
    async def test_missing_key(self):
        with pytest.raises(ConfigurationError):
            await GeminiChatClient(api_key=None).generate("gemini-2.5-flash", conversation(1))


class FakeCompletions:
    def __init__(self, content="pong"):
        self.content = content
        self.kwargs = None

    async def create(self, **kwargs):
        self.kwargs = kwargs
        return SimpleNamespace(
            choices=[SimpleNamespace(message=SimpleNamespace(content=self.content))],
            usage=SimpleNamespace(prompt_tokens=4, completion_tokens=1, total_tokens=5),
        )


def custom_client(completions: FakeCompletions) -> CustomChatClient:
    fake = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return CustomChatClient(server_url=None, client=fake)


class TestCustomChatClient:
    """Tests for CustomChatClient."""

    @pytest.mark.asyncio
    async def test_generate(self):
        completions = FakeCompletions()
        messages = conversation(12) + [ChatMessage(role="error", content="oops")]

        response = await custom_client(completions).generate("llama3", messages, "System.")

        sent = completions.kwargs["messages"]
        assert sent[0] == {"role": "system", "content": "System."}
        assert len(sent) == 1 + 9
        assert all(m["role"] != "error" for m in sent)
        assert completions.kwargs["model"] == "llama3"
        assert response.content == "pong"
        assert response.stats.total_tokens == 5

    @pytest.mark.asyncio
    async def test_default_model(self):
        completions = FakeCompletions()
        await custom_client(completions).generate("", conversation(1))
        assert completions.kwargs["model"] == "qwen2:0.5b"

    @pytest.mark.asyncio
    async def test_empty_content(self):
        with pytest.raises(ProviderError, match="Empty response"):
            await custom_client(FakeCompletions(content="")).generate("m", conversation(1))

    @pytest.mark.asyncio
    async def test_not_configured(self):
        client = CustomChatClient(server_url="  ")
        assert client.is_configured() is False
        with pytest.raises(ConfigurationError):
            await client.generate("m", conversation(1))
