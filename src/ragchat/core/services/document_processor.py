"""Document processor - text extraction and sentence-aware chunking."""

import asyncio
import bisect
import logging
import re
from pathlib import Path
from typing import Any, Optional

from ..exceptions import ConfigurationError
from ..models.document import DocumentChunk

logger = logging.getLogger(__name__)

_SENTENCE_BOUNDARY = re.compile(r"[.!?]+\s+")


def split_sentences(text: str) -> list[tuple[int, int]]:
    """Split text into sentence spans.

    A sentence ends at a run of ``.``, ``!`` or ``?`` followed by
    whitespace. Leading/trailing whitespace is excluded from each span.

    Args:
        text: Text to split.

    Returns:
        Half-open ``(start, end)`` offsets, in reading order.
    """
    spans = []
    cursor = 0
    for match in _SENTENCE_BOUNDARY.finditer(text):
        boundary = match.start() + len(match.group().rstrip())
        spans.append((cursor, boundary))
        cursor = match.end()
    spans.append((cursor, len(text)))

    trimmed = []
    for start, end in spans:
        piece = text[start:end]
        stripped = piece.strip()
        if not stripped:
            continue
        lead = len(piece) - len(piece.lstrip())
        trimmed.append((start + lead, start + lead + len(stripped)))
    return trimmed


class DocumentProcessor:
    """Extracts text from uploaded files and cuts it into overlapping chunks."""

    def __init__(
        self,
        chunk_size: int = 1000,
        chunk_overlap: int = 200,
        loader: Optional["CompositeLoader"] = None,
    ):
        """Initialize document processor.

        Args:
            chunk_size: Target chunk size in characters.
            chunk_overlap: Maximum overlap carried into the next chunk.
            loader: Document loader; defaults to the composite loader.
        """
        if chunk_size <= 0:
            raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
        if chunk_overlap < 0 or chunk_overlap >= chunk_size:
            raise ConfigurationError(
                f"chunk_overlap must be in [0, {chunk_size}), got {chunk_overlap}"
            )
        self._chunk_size = chunk_size
        self._chunk_overlap = chunk_overlap
        self._loader = loader

    @property
    def loader(self):
        """Lazy load document loader."""
        if self._loader is None:
            from ragchat.infrastructure.document_loaders import CompositeLoader

            self._loader = CompositeLoader()
        return self._loader

    async def extract_text(self, file_path: str | Path, mimetype: str | None) -> str:
        """Extract plain text from a stored file.

        Raises:
            UnsupportedFileTypeError: No loader handles ``mimetype``.
            DocumentProcessingError: The parser failed.
        """
        path = Path(file_path)
        return await asyncio.to_thread(self.loader.load, path, mimetype)

    async def process_file(
        self, file_path: str | Path, mimetype: str | None
    ) -> list[DocumentChunk]:
        """Extract text from a file and chunk it."""
        text = await self.extract_text(file_path, mimetype)
        return self.chunk(text)

    def chunk(
        self, text: str, metadata: Optional[dict[str, Any]] = None
    ) -> list[DocumentChunk]:
        """Split text into overlapping, sentence-aligned chunks.

        Sentences are accumulated greedily. When the next sentence would
        push the buffer past ``chunk_size``, the buffer is sealed and the
        next one starts with an overlap suffix of the sealed chunk. A single
        sentence longer than ``chunk_size`` is kept whole.

        Args:
            text: Extracted document text.
            metadata: Extra metadata attached to every chunk.

        Returns:
            Chunks in reading order; ``content == text[start_char:end_char]``.
        """
        if not text or not text.strip():
            return []

        spans = split_sentences(text)
        starts = [s for s, _ in spans]

        chunks: list[DocumentChunk] = []
        buf_start: Optional[int] = None
        buf_end = 0

        for sent_start, sent_end in spans:
            if buf_start is None:
                buf_start, buf_end = sent_start, sent_end
                continue

            if sent_end - buf_start > self._chunk_size:
                chunks.append(self._seal(text, buf_start, buf_end, len(chunks), metadata))
                overlap_start = self._overlap_start(text, starts, buf_start, buf_end)
                buf_start = overlap_start if overlap_start is not None else sent_start
            buf_end = sent_end

        if buf_start is not None:
            chunks.append(self._seal(text, buf_start, buf_end, len(chunks), metadata))

        logger.debug(
            f"Chunked {len(text)} chars into {len(chunks)} chunks "
            f"(size={self._chunk_size}, overlap={self._chunk_overlap})"
        )
        return chunks

    def _seal(
        self,
        text: str,
        start: int,
        end: int,
        index: int,
        metadata: Optional[dict[str, Any]],
    ) -> DocumentChunk:
        return DocumentChunk(
            content=text[start:end],
            chunk_index=index,
            start_char=start,
            end_char=end,
            metadata=dict(metadata) if metadata else None,
        )

    def _overlap_start(
        self, text: str, sentence_starts: list[int], start: int, end: int
    ) -> Optional[int]:
        """Offset where the overlap suffix of ``text[start:end]`` begins.

        Prefers the first sentence start inside the overlap window, then
        the first word start. Returns None when no overlap fits.
        """
        if self._chunk_overlap == 0:
            return None
        if end - start <= self._chunk_overlap:
            return start

        window_start = end - self._chunk_overlap

        i = bisect.bisect_left(sentence_starts, window_start)
        if i < len(sentence_starts) and sentence_starts[i] < end:
            return sentence_starts[i]

        for pos in range(window_start, end):
            if text[pos - 1].isspace() and not text[pos].isspace():
                return pos
        return None
