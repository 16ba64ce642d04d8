"""Chat domain models."""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class ChatMessage:
    """Chat message."""
    role: str  # "user" | "human" | "assistant" | "system" | "error"
    content: str


@dataclass
class UsageStats:
    """Token usage reported by a provider."""
    model: str
    prompt_tokens: int = 0
    response_tokens: int = 0
    total_tokens: int = 0


@dataclass
class Source:
    """Document that grounded an answer."""
    document: str
    similarity: float


@dataclass
class ChatRequest:
    """One chat turn as supplied by the chat handler."""
    provider: str
    model: str
    messages: list[ChatMessage]
    system_prompt: Optional[str] = None
    use_rag: bool = False

    def last_user_message(self) -> Optional[ChatMessage]:
        for message in reversed(self.messages):
            if message.role in ("user", "human"):
                return message
        return None


@dataclass
class ChatResponse:
    """Normalized provider answer."""
    content: str
    stats: Optional[UsageStats] = None
    sources: list[Source] = field(default_factory=list)


def trim_history(messages: list[ChatMessage], limit: int = 10) -> list[ChatMessage]:
    """Keep the last ``limit`` turns, dropping error entries."""
    recent = messages[-limit:] if limit > 0 else []
    return [m for m in recent if m.role != "error"]
