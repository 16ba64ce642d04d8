from pathlib import Path


class TextLoader:

    MIMETYPES = {"text/plain", "text/markdown"}
    EXTENSIONS = {".txt", ".md", ".markdown"}

    def supports(self, file_path: Path, mimetype: str | None = None) -> bool:
        if mimetype:
            return mimetype in self.MIMETYPES
        return file_path.suffix.lower() in self.EXTENSIONS

    def load(self, file_path: Path) -> str:
        return file_path.read_text(encoding="utf-8")
