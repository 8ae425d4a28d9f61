"""Result of an export call."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ExportResult:
    archive_bytes: bytes
    documentation: str
    filename: str

    @property
    def guide_filename(self) -> str:
        """Companion Markdown guide name, derived from the archive name."""
        for ext in (".pbip.zip", ".pbit", ".zip"):
            if self.filename.endswith(ext):
                return self.filename[: -len(ext)] + "_Guide.md"
        return self.filename + "_Guide.md"

    @property
    def size(self) -> int:
        return len(self.archive_bytes)
