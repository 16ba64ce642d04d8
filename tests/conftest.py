"""
Test configuration and fixtures.
"""

from typing import Any

import numpy as np
import pytest

from ragchat.core.models.chat import ChatMessage, ChatResponse, UsageStats
from ragchat.core.models.document import VectorMatch
from ragchat.core.services.document_processor import DocumentProcessor
from ragchat.core.services.rag_service import RagService
from ragchat.infrastructure.embeddings.hashing import hashed_embedding


class FakeEmbedder:
    """Offline embedder built on the hashed fallback vector."""

    name = "fake"

    def __init__(self, dimension: int = 64):
        self.dimension = dimension
        self.calls: list[list[str]] = []

    async def embed(self, text: str) -> list[float]:
        self.calls.append([text])
        return hashed_embedding(text, self.dimension)

    async def embed_batch(self, texts: list[str]) -> list[list[float]]:
        self.calls.append(list(texts))
        return [hashed_embedding(t, self.dimension) for t in texts]


class InMemoryVectorStore:
    """Brute-force cosine-distance store following the vector store protocol."""

    def __init__(self):
        self.records: dict[str, tuple[list[float], str, dict[str, Any]]] = {}

    async def upsert(self, ids, embeddings, documents, metadatas) -> None:
        for id_, emb, doc, meta in zip(ids, embeddings, documents, metadatas):
            self.records[id_] = (emb, doc, dict(meta))

    @staticmethod
    def _matches(meta: dict[str, Any], where: dict[str, Any] | None) -> bool:
        return not where or all(meta.get(k) == v for k, v in where.items())

    async def query(self, query_embedding, n_results=5, where=None) -> list[VectorMatch]:
        q = np.asarray(query_embedding, dtype=float)
        scored = []
        for emb, doc, meta in self.records.values():
            if not self._matches(meta, where):
                continue
            v = np.asarray(emb, dtype=float)
            denom = np.linalg.norm(q) * np.linalg.norm(v)
            cosine = float(np.dot(q, v) / denom) if denom else 0.0
            scored.append(VectorMatch(text=doc, metadata=meta, distance=1.0 - cosine))
        scored.sort(key=lambda m: m.distance)
        return scored[:n_results]

    async def get(self, where) -> list[VectorMatch]:
        return [
            VectorMatch(text=doc, metadata=meta, distance=0.0)
            for _, doc, meta in self.records.values()
            if self._matches(meta, where)
        ]

    async def delete(self, where) -> int:
        ids = [i for i, (_, _, meta) in self.records.items() if self._matches(meta, where)]
        for i in ids:
            del self.records[i]
        return len(ids)

    async def count(self) -> int:
        return len(self.records)


class FakeLLM:
    """Chat backend that records its inputs."""

    def __init__(self, content: str = "answer", error: Exception | None = None):
        self.content = content
        self.error = error
        self.calls: list[tuple[str, list[ChatMessage], str | None]] = []

    async def generate(self, model, messages, system_prompt=None) -> ChatResponse:
        self.calls.append((model, messages, system_prompt))
        if self.error:
            raise self.error
        return ChatResponse(content=self.content, stats=UsageStats(model=model, total_tokens=3))


@pytest.fixture
def embedder():
    return FakeEmbedder()


@pytest.fixture
def vector_store():
    return InMemoryVectorStore()


@pytest.fixture
def processor():
    return DocumentProcessor(chunk_size=200, chunk_overlap=50)


@pytest.fixture
def rag_service(processor, embedder, vector_store):
    return RagService(
        processor=processor,
        embedder=embedder,
        vector_store=vector_store,
        enabled=True,
        top_k=5,
    )


@pytest.fixture
def write_text(tmp_path):
    def _write(name: str, content: str):
        path = tmp_path / name
        path.write_text(content, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def make_llm():
    return FakeLLM
