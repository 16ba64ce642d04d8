"""Background indexer - fire-and-forget indexing of uploads."""

import asyncio
import logging
from collections import deque
from pathlib import Path

from .rag_service import RagService

logger = logging.getLogger(__name__)


class BackgroundIndexer:
    """Runs ``RagService.index_file`` as detached tasks.

    The upload path never waits for indexing. Failures are logged and
    dropped; there is no automatic retry. Only the most recent failures
    are kept, as ``(file_id, message)``.
    """

    def __init__(self, rag_service: RagService, max_failures: int = 100):
        self._rag = rag_service
        self._tasks: set[asyncio.Task] = set()
        self.failures: deque[tuple[str, str]] = deque(maxlen=max_failures)

    @property
    def pending(self) -> int:
        return len(self._tasks)

    def schedule(
        self,
        file_id: str,
        file_path: str | Path,
        mimetype: str,
        original_name: str,
    ) -> asyncio.Task | None:
        """Dispatch indexing of one file; must be called inside a running loop."""
        if not self._rag.is_enabled():
            return None

        task = asyncio.create_task(
            self._rag.index_file(file_id, file_path, mimetype, original_name),
            name=f"index-{file_id}",
        )
        self._tasks.add(task)
        task.add_done_callback(lambda t: self._on_done(file_id, t))
        return task

    def _on_done(self, file_id: str, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            logger.warning(f"Indexing of file {file_id} was cancelled")
            return
        error = task.exception()
        if error is not None:
            self.failures.append((file_id, str(error)))
            logger.error(f"Background indexing failed for file {file_id}: {error}")

    async def drain(self) -> None:
        """Wait for every pending indexing task (shutdown, tests)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)
            # let done-callbacks run
            await asyncio.sleep(0)
