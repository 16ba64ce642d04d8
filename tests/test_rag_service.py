"""Tests for the RAG orchestrator."""

import json

import httpx
import pytest

from ragchat.core.exceptions import IndexingError, VectorStoreUnavailableError
from ragchat.core.models.document import SearchResult
from ragchat.core.services.document_processor import DocumentProcessor
from ragchat.core.services.rag_service import RagService
from ragchat.infrastructure.embeddings import GeminiEmbedder, hashed_embedding
from ragchat.infrastructure.vector_stores import PersistentChromaVectorStore

VACATION = (
    "Employees receive twenty vacation days per year. "
    "Vacation requests must be approved by a manager two weeks in advance. "
    "Unused vacation days expire at the end of March."
)
PRINTER = (
    "The office printer is on the third floor. "
    "Toner cartridges are stored in the supply cabinet. "
    "Report paper jams to the help desk."
)


class ShortEmbedder:
    """Returns one vector fewer than requested."""

    name = "short"

    async def embed(self, text):
        return [1.0]

    async def embed_batch(self, texts):
        return [[1.0]] * (len(texts) - 1)


class BrokenStore:
    async def upsert(self, *args, **kwargs):
        raise VectorStoreUnavailableError("down")

    async def query(self, *args, **kwargs):
        raise RuntimeError("down")

    async def delete(self, where):
        raise VectorStoreUnavailableError("down")

    async def count(self):
        raise RuntimeError("down")

    async def get(self, where):
        raise VectorStoreUnavailableError("down")


class TestIndexing:
    """Tests for RagService.index_file."""

    @pytest.mark.asyncio
    async def test_index_file(self, rag_service, vector_store, write_text):
        path = write_text("vacation.txt", VACATION)

        count = await rag_service.index_file("f1", path, "text/plain", "vacation.txt")

        assert count == len(vector_store.records) > 0
        record = vector_store.records["f1_chunk_0"]
        assert record[2] == {
            "fileId": "f1",
            "chunkIndex": 0,
            "originalName": "vacation.txt",
            "startChar": 0,
            "endChar": len(record[1]),
        }

    @pytest.mark.asyncio
    async def test_chunk_order_preserved(self, embedder, vector_store, write_text):
        rag = RagService(
            processor=DocumentProcessor(chunk_size=60, chunk_overlap=10),
            embedder=embedder,
            vector_store=vector_store,
            enabled=True,
        )
        path = write_text("vacation.txt", VACATION)

        count = await rag.index_file("f1", path, "text/plain", "vacation.txt")

        assert count > 1
        assert embedder.calls[-1] == [
            vector_store.records[f"f1_chunk_{i}"][1] for i in range(count)
        ]

    @pytest.mark.asyncio
    async def test_empty_document(self, rag_service, vector_store, write_text):
        path = write_text("empty.txt", "   ")
        assert await rag_service.index_file("f1", path, "text/plain", "empty.txt") == 0
        assert vector_store.records == {}

    @pytest.mark.asyncio
    async def test_embedding_count_mismatch_aborts(self, processor, vector_store, write_text):
        rag = RagService(
            processor=DocumentProcessor(chunk_size=60, chunk_overlap=10),
            embedder=ShortEmbedder(),
            vector_store=vector_store,
            enabled=True,
        )
        path = write_text("vacation.txt", VACATION)

        with pytest.raises(IndexingError):
            await rag.index_file("f1", path, "text/plain", "vacation.txt")
        assert vector_store.records == {}

    @pytest.mark.asyncio
    async def test_reindex_overwrites(self, rag_service, vector_store, write_text):
        path = write_text("vacation.txt", VACATION)
        first = await rag_service.index_file("f1", path, "text/plain", "vacation.txt")
        second = await rag_service.index_file("f1", path, "text/plain", "vacation.txt")

        assert first == second == len(vector_store.records)


class TestSearch:
    """Tests for RagService.search_documents."""

    @pytest.mark.asyncio
    async def test_round_trip(self, rag_service, write_text):
        await rag_service.index_file(
            "vac", write_text("vacation.txt", VACATION), "text/plain", "vacation.txt"
        )
        await rag_service.index_file(
            "prn", write_text("printer.txt", PRINTER), "text/plain", "printer.txt"
        )

        results = await rag_service.search_documents(VACATION)

        assert results[0].content == VACATION
        assert results[0].similarity == pytest.approx(1.0)
        assert results[0].source == "vacation.txt"
        assert all(results[0].similarity >= r.similarity for r in results)

    @pytest.mark.asyncio
    async def test_top_k_bounded_by_index_size(self, rag_service, write_text):
        await rag_service.index_file(
            "vac", write_text("vacation.txt", VACATION), "text/plain", "vacation.txt"
        )
        await rag_service.index_file(
            "prn", write_text("printer.txt", PRINTER), "text/plain", "printer.txt"
        )

        results = await rag_service.search_documents("printer toner")

        assert len(results) == 2
        assert results[0].similarity >= results[1].similarity
        assert results[0].source == "printer.txt"

    @pytest.mark.asyncio
    async def test_filter_by_file(self, rag_service, write_text):
        await rag_service.index_file(
            "vac", write_text("vacation.txt", VACATION), "text/plain", "vacation.txt"
        )
        await rag_service.index_file(
            "prn", write_text("printer.txt", PRINTER), "text/plain", "printer.txt"
        )

        results = await rag_service.search_documents("printer toner", file_id="vac")
        assert [r.metadata["fileId"] for r in results] == ["vac"]

    @pytest.mark.asyncio
    async def test_store_failure_returns_empty(self, processor, embedder):
        rag = RagService(processor, embedder, BrokenStore(), enabled=True)
        assert await rag.search_documents("anything") == []
        assert await rag.get_stats() == {"totalDocuments": 0}


class TestDeletion:
    """Tests for RagService.delete_file_index."""

    @pytest.mark.asyncio
    async def test_delete_removes_only_that_document(self, rag_service, write_text):
        vac = await rag_service.index_file(
            "vac", write_text("vacation.txt", VACATION), "text/plain", "vacation.txt"
        )
        await rag_service.index_file(
            "prn", write_text("printer.txt", PRINTER), "text/plain", "printer.txt"
        )
        before = (await rag_service.get_stats())["totalDocuments"]

        await rag_service.delete_file_index("vac")

        assert await rag_service.search_documents(VACATION, file_id="vac") == []
        assert (await rag_service.get_stats())["totalDocuments"] == before - vac

    @pytest.mark.asyncio
    async def test_delete_failure_is_swallowed(self, processor, embedder):
        rag = RagService(processor, embedder, BrokenStore(), enabled=True)
        await rag.delete_file_index("vac")


class TestDisabled:
    """RAG switched off."""

    @pytest.mark.asyncio
    async def test_everything_is_a_no_op(self, processor, embedder, vector_store, write_text):
        await vector_store.upsert(
            ["x_chunk_0"], [[1.0] * embedder.dimension], ["stored"], [{"fileId": "x"}]
        )
        rag = RagService(processor, embedder, vector_store, enabled=False)
        path = write_text("vacation.txt", VACATION)

        assert rag.is_enabled() is False
        assert await rag.index_file("f1", path, "text/plain", "vacation.txt") == 0
        await rag.delete_file_index("x")
        assert await rag.search_documents("stored") == []
        assert await rag.get_stats() == {"totalDocuments": 0}
        assert list(vector_store.records) == ["x_chunk_0"]
        assert embedder.calls == []


class TestPromptFormatting:
    """Tests for RagService.format_documents_for_prompt."""

    def test_empty(self, rag_service):
        assert rag_service.format_documents_for_prompt([]) == ""

    def test_template(self, rag_service):
        results = [
            SearchResult(content="Chunk A", metadata={"originalName": "a.txt"}, similarity=0.9),
            SearchResult(content="Chunk B", metadata={"originalName": "b.pdf"}, similarity=0.5),
        ]

        text = rag_service.format_documents_for_prompt(results)

        assert text == (
            "\n\n=== Relevant documents ===\n"
            '\n[Document 1 from "a.txt"]\nChunk A\n---\n'
            '\n[Document 2 from "b.pdf"]\nChunk B\n---\n'
            "\n=== End of relevant documents ===\n\n"
            "Use the information from the documents above to answer the user's question. "
            "If the documents do not contain enough information, answer from your general knowledge. "
            "Cite the source documents when possible.\n\n"
        )
        assert text == rag_service.format_documents_for_prompt(results)


class TestGeminiOutageDuringIngest:
    """A Gemini failure for one chunk must not fail the whole document."""

    @pytest.mark.asyncio
    async def test_every_chunk_stored(self, tmp_path, write_text):
        calls = []

        def handler(request: httpx.Request) -> httpx.Response:
            calls.append(request)
            if len(calls) == 2:
                return httpx.Response(503, json={"error": "unavailable"})
            text = json.loads(request.content)["content"]["parts"][0]["text"]
            return httpx.Response(200, json={"embedding": {"values": hashed_embedding(text, 768)}})

        store = PersistentChromaVectorStore(persist_dir=str(tmp_path / "db"))
        rag = RagService(
            processor=DocumentProcessor(chunk_size=15, chunk_overlap=5),
            embedder=GeminiEmbedder(api_key="key", transport=httpx.MockTransport(handler)),
            vector_store=store,
            enabled=True,
        )
        path = write_text("s.txt", "Sentence one. Sentence two. Sentence three.")

        assert await rag.index_file("f", path, "text/plain", "s.txt") == 3
        assert len(calls) == 3
        assert await store.count() == 3
        assert len(await rag.search_documents("Sentence two.")) == 3
