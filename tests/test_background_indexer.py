"""Tests for fire-and-forget indexing."""

import asyncio

import pytest

from ragchat.core.services.background_indexer import BackgroundIndexer
from ragchat.core.services.rag_service import RagService


class TestBackgroundIndexer:
    """Tests for BackgroundIndexer."""

    @pytest.mark.asyncio
    async def test_schedule_and_drain(self, rag_service, vector_store, write_text):
        indexer = BackgroundIndexer(rag_service)
        path = write_text("notes.txt", "Lunch is served at noon. The cafeteria closes at two.")

        task = indexer.schedule("n1", path, "text/plain", "notes.txt")

        assert isinstance(task, asyncio.Task)
        assert indexer.pending == 1
        await indexer.drain()

        assert indexer.pending == 0
        assert indexer.failures == []
        assert task.result() == len(vector_store.records) == 1

    @pytest.mark.asyncio
    async def test_failure_is_recorded_not_raised(self, rag_service, vector_store, tmp_path):
        indexer = BackgroundIndexer(rag_service)

        indexer.schedule("bad", tmp_path / "missing.txt", "text/plain", "missing.txt")
        indexer.schedule("img", tmp_path / "photo.png", "image/png", "photo.png")
        await indexer.drain()

        assert sorted(file_id for file_id, _ in indexer.failures) == ["bad", "img"]
        assert vector_store.records == {}

    @pytest.mark.asyncio
    async def test_one_failure_does_not_stop_others(self, rag_service, vector_store, write_text, tmp_path):
        indexer = BackgroundIndexer(rag_service)

        indexer.schedule("bad", tmp_path / "missing.txt", "text/plain", "missing.txt")
        indexer.schedule("ok", write_text("ok.txt", "Parking is free."), "text/plain", "ok.txt")
        await indexer.drain()

        assert [file_id for file_id, _ in indexer.failures] == ["bad"]
        assert list(vector_store.records) == ["ok_chunk_0"]

    @pytest.mark.asyncio
    async def test_disabled(self, processor, embedder, vector_store, write_text):
        rag = RagService(processor, embedder, vector_store, enabled=False)
        indexer = BackgroundIndexer(rag)

        assert indexer.schedule("n1", write_text("a.txt", "text"), "text/plain", "a.txt") is None
        assert indexer.pending == 0

    @pytest.mark.asyncio
    async def test_failure_log_is_bounded(self, rag_service, tmp_path):
        indexer = BackgroundIndexer(rag_service, max_failures=2)

        for name in ["a", "b", "c"]:
            indexer.schedule(name, tmp_path / f"{name}.txt", "text/plain", f"{name}.txt")
        await indexer.drain()

        assert len(indexer.failures) == 2
        assert all(isinstance(message, str) for _, message in indexer.failures)
