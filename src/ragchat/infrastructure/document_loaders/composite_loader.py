import logging
from pathlib import Path

from ragchat.core.exceptions import DocumentProcessingError, UnsupportedFileTypeError

from .docx_loader import DocxLoader
from .pdf_loader import PDFLoader
from .text_loader import TextLoader

logger = logging.getLogger(__name__)


class CompositeLoader:
    """Dispatches to the first loader accepting the MIME type.

    Falls back to the file extension when no MIME type is given.
    """

    def __init__(self):
        self._loaders = [
            PDFLoader(),
            DocxLoader(),
            TextLoader(),
        ]

    def supports(self, file_path: Path, mimetype: str | None = None) -> bool:
        return any(loader.supports(file_path, mimetype) for loader in self._loaders)

    def load(self, file_path: Path, mimetype: str | None = None) -> str:
        for loader in self._loaders:
            if loader.supports(file_path, mimetype):
                try:
                    return loader.load(file_path)
                except Exception as e:
                    logger.error(f"Failed to load {file_path}: {e}")
                    raise DocumentProcessingError(
                        f"Failed to extract text from {file_path.name}: {e}"
                    ) from e
        raise UnsupportedFileTypeError(mimetype or file_path.suffix or "unknown")
