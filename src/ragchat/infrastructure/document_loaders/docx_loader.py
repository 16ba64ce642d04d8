from pathlib import Path

from docx import Document


class DocxLoader:
    """Word documents: paragraphs first, then table rows as ``a | b`` lines."""

    MIMETYPES = {
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/msword",
    }
    EXTENSIONS = {".docx", ".doc"}

    def supports(self, file_path: Path, mimetype: str | None = None) -> bool:
        if mimetype:
            return mimetype in self.MIMETYPES
        return file_path.suffix.lower() in self.EXTENSIONS

    def load(self, file_path: Path) -> str:
        doc = Document(str(file_path))
        blocks = [p.text.strip() for p in doc.paragraphs if p.text.strip()]

        for table in doc.tables:
            for row in table.rows:
                cells = [cell.text.strip() for cell in row.cells if cell.text.strip()]
                if cells:
                    blocks.append(" | ".join(cells))
        return "\n\n".join(blocks)
