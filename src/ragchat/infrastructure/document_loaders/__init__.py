"""Text extraction for uploaded documents."""
from .composite_loader import CompositeLoader
from .docx_loader import DocxLoader
from .pdf_loader import PDFLoader
from .text_loader import TextLoader

SUPPORTED_MIMETYPES = sorted(
    PDFLoader.MIMETYPES | DocxLoader.MIMETYPES | TextLoader.MIMETYPES
)

__all__ = [
    "CompositeLoader",
    "DocxLoader",
    "PDFLoader",
    "TextLoader",
    "SUPPORTED_MIMETYPES",
]
