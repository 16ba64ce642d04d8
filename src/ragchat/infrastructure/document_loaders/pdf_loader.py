import logging
from pathlib import Path

from pypdf import PdfReader

from ragchat.core.exceptions import DocumentProcessingError

logger = logging.getLogger(__name__)


class PDFLoader:
    """Extracts page text from PDF files; image-only pages yield nothing."""

    MIMETYPES = {"application/pdf"}

    def supports(self, file_path: Path, mimetype: str | None = None) -> bool:
        if mimetype:
            return mimetype in self.MIMETYPES
        return file_path.suffix.lower() == ".pdf"

    def load(self, file_path: Path) -> str:
        reader = PdfReader(file_path)
        if reader.is_encrypted and not reader.decrypt(""):
            raise DocumentProcessingError(f"{file_path.name} is password protected")

        pages = []
        for number, page in enumerate(reader.pages, 1):
            text = (page.extract_text() or "").strip()
            if not text:
                logger.debug(f"{file_path.name}: page {number} has no extractable text")
                continue
            pages.append(text)
        return "\n\n".join(pages)
