"""Archive assembly: ordered path -> content map serialised to ZIP bytes.

Entry timestamps come from the injected clock and permissions are fixed, so
the same entries always produce the same bytes. Any failure while
serialising is fatal for the export and surfaces as ``ArchiveAssemblyError``.
"""

from __future__ import annotations

import asyncio
import io
import json
import logging
import zipfile
from collections.abc import Iterable, Mapping
from datetime import timezone
from pathlib import Path
from typing import Any, Optional, Union

from .exceptions import ArchiveAssemblyError
from .ids import Clock, SystemClock
from .models.result import ExportResult

logger = logging.getLogger(__name__)

Content = Union[str, bytes, Mapping[str, Any], list, Iterable[str]]

FILE_MODE = 0o100644 << 16
DIR_MODE = (0o40755 << 16) | 0x10
ZIP_EPOCH = (1980, 1, 1, 0, 0, 0)

COMPRESSION = {
    "deflated": zipfile.ZIP_DEFLATED,
    "stored": zipfile.ZIP_STORED,
}


def to_json(content: Any) -> str:
    """Two-space indented JSON with non-ASCII characters kept as-is."""
    return json.dumps(content, indent=2, ensure_ascii=False)


class ArchiveBuilder:
    """Insertion-ordered archive entries.

    Streamed (iterable) entries are consumed when the archive is written, so
    a builder holding them can be serialised once.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        compression: str = "deflated",
        compress_level: int = 6,
    ):
        if compression not in COMPRESSION:
            raise ValueError(f"Unknown compression {compression!r}, expected one of {sorted(COMPRESSION)}")
        self.clock = clock or SystemClock()
        self.compression = COMPRESSION[compression]
        self.compress_level = compress_level
        self._entries: dict[str, Optional[Content]] = {}
        self._streamed = False
        self._consumed = False

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, path: str) -> bool:
        return path in self._entries

    @property
    def paths(self) -> list[str]:
        return list(self._entries)

    def add(self, path: str, content: Content) -> "ArchiveBuilder":
        """Add (or replace) a file entry; returns self for chaining."""
        path = path.lstrip("/")
        if not path or path.endswith("/"):
            raise ValueError(f"Invalid file path {path!r}")
        if not isinstance(content, (str, bytes, Mapping, list)):
            self._streamed = True
        self._entries[path] = content
        return self

    def add_folder(self, path: str) -> "ArchiveBuilder":
        """Add an explicit (empty) directory entry."""
        path = path.strip("/") + "/"
        self._entries[path] = None
        return self

    def _date_time(self) -> tuple[int, int, int, int, int, int]:
        moment = self.clock.now().astimezone(timezone.utc)
        stamp = (moment.year, moment.month, moment.day, moment.hour, moment.minute, moment.second)
        # ZIP timestamps cannot predate 1980
        return max(stamp, ZIP_EPOCH)

    def _zipinfo(self, path: str, date_time: tuple) -> zipfile.ZipInfo:
        info = zipfile.ZipInfo(path, date_time=date_time)
        if path.endswith("/"):
            info.external_attr = DIR_MODE
            info.compress_type = zipfile.ZIP_STORED
        else:
            info.external_attr = FILE_MODE
            info.compress_type = self.compression
        info.create_system = 3
        return info

    def _write_entry(self, zf: zipfile.ZipFile, info: zipfile.ZipInfo, content: Optional[Content]) -> None:
        if content is None:
            zf.writestr(info, b"")
        elif isinstance(content, bytes):
            zf.writestr(info, content, compresslevel=self._level())
        elif isinstance(content, str):
            zf.writestr(info, content.encode("utf-8"), compresslevel=self._level())
        elif isinstance(content, (Mapping, list)):
            zf.writestr(info, to_json(content).encode("utf-8"), compresslevel=self._level())
        else:
            # ZipFile.open() takes no compresslevel argument
            info._compresslevel = self._level()
            with zf.open(info, "w") as handle:
                for chunk in content:
                    handle.write(chunk.encode("utf-8") if isinstance(chunk, str) else chunk)

    def _level(self) -> Optional[int]:
        return self.compress_level if self.compression == zipfile.ZIP_DEFLATED else None

    def to_bytes(self) -> bytes:
        """Serialise every entry in insertion order."""
        if self._streamed and self._consumed:
            raise ArchiveAssemblyError("Archive with streamed entries was already serialised")
        self._consumed = True
        date_time = self._date_time()
        buffer = io.BytesIO()
        path = None
        try:
            with zipfile.ZipFile(buffer, "w", compression=self.compression) as zf:
                for path, content in self._entries.items():
                    self._write_entry(zf, self._zipinfo(path, date_time), content)
                    logger.debug("Archived %s", path)
        except Exception as exc:
            raise ArchiveAssemblyError(f"Failed to assemble archive: {exc}", path) from exc
        data = buffer.getvalue()
        logger.debug("Archive assembled: %d entries, %d bytes", len(self._entries), len(data))
        return data

    async def build_async(self) -> bytes:
        """``to_bytes`` in a worker thread; the export's only suspension point."""
        return await asyncio.to_thread(self.to_bytes)


def save_export(result: ExportResult, directory: Union[str, Path] = ".", write_guide: bool = True) -> list[Path]:
    """Write the archive (and optionally its Markdown guide) to ``directory``."""
    target = Path(directory)
    target.mkdir(parents=True, exist_ok=True)
    archive_path = target / result.filename
    archive_path.write_bytes(result.archive_bytes)
    written = [archive_path]
    if write_guide:
        guide_path = target / result.guide_filename
        guide_path.write_text(result.documentation, encoding="utf-8")
        written.append(guide_path)
    logger.info("Saved %s (%d bytes)", archive_path, result.size)
    return written
