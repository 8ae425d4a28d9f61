"""Tests for archive assembly."""

import asyncio
import io
import zipfile
from datetime import datetime, timezone

import pytest

from phantom_export.archive import ArchiveBuilder, save_export, to_json
from phantom_export.exceptions import ArchiveAssemblyError
from phantom_export.ids import FixedClock
from phantom_export.models.result import ExportResult


def open_archive(data: bytes) -> zipfile.ZipFile:
    return zipfile.ZipFile(io.BytesIO(data))


class TestArchiveBuilder:
    def test_insertion_order(self, fixed_clock, archive_names):
        archive = ArchiveBuilder(fixed_clock)
        archive.add("b.txt", "b").add_folder("a/.pbi").add("a/c.json", {"x": 1})
        assert archive_names(archive.to_bytes()) == ["b.txt", "a/.pbi/", "a/c.json"]
        assert archive.paths == ["b.txt", "a/.pbi/", "a/c.json"]
        assert len(archive) == 3
        assert "a/c.json" in archive

    def test_content_kinds(self, fixed_clock, read_archive):
        archive = ArchiveBuilder(fixed_clock)
        archive.add("text.md", "héllo")
        archive.add("raw.bin", b"\x00\x01")
        archive.add("obj.json", {"name": "Revenue ΔPY"})
        archive.add("list.json", [1, 2])
        archive.add("lines.tmdl", (line for line in ["a\n", "b\n"]))
        data = archive.to_bytes()
        with open_archive(data) as zf:
            assert zf.read("raw.bin") == b"\x00\x01"
        files = read_archive(data)
        assert files["text.md"] == "héllo"
        assert files["obj.json"] == '{\n  "name": "Revenue ΔPY"\n}'
        assert files["list.json"] == to_json([1, 2])
        assert files["lines.tmdl"] == "a\nb\n"

    def test_replacing_a_path_keeps_position(self, fixed_clock, read_archive, archive_names):
        archive = ArchiveBuilder(fixed_clock)
        archive.add("a", "1").add("b", "2").add("a", "3")
        data = archive.to_bytes()
        assert archive_names(data) == ["a", "b"]
        assert read_archive(data)["a"] == "3"

    def test_leading_slash_stripped(self, fixed_clock):
        assert ArchiveBuilder(fixed_clock).add("/x.txt", "").paths == ["x.txt"]

    @pytest.mark.parametrize("path", ["", "/", "dir/"])
    def test_invalid_file_path(self, fixed_clock, path):
        with pytest.raises(ValueError):
            ArchiveBuilder(fixed_clock).add(path, "x")

    def test_unknown_compression(self, fixed_clock):
        with pytest.raises(ValueError, match="Unknown compression"):
            ArchiveBuilder(fixed_clock, compression="lzma")


class TestDeterminism:
    def test_timestamps_from_clock(self, fixed_clock):
        archive = ArchiveBuilder(fixed_clock).add("a.txt", "x").add_folder("d")
        with open_archive(archive.to_bytes()) as zf:
            for info in zf.infolist():
                assert info.date_time == (2024, 3, 15, 9, 30, 0)

    def test_timestamps_clamped_to_1980(self):
        clock = FixedClock(datetime(1970, 1, 1, tzinfo=timezone.utc))
        archive = ArchiveBuilder(clock).add("a.txt", "x")
        with open_archive(archive.to_bytes()) as zf:
            assert zf.infolist()[0].date_time == (1980, 1, 1, 0, 0, 0)

    def test_same_entries_same_bytes(self, fixed_clock):
        def build():
            return ArchiveBuilder(fixed_clock).add("a.json", {"k": [1, 2]}).add("b.txt", "text").to_bytes()
        assert build() == build()

    def test_stored_compression(self, fixed_clock):
        archive = ArchiveBuilder(fixed_clock, compression="stored").add("a.txt", "x" * 100)
        with open_archive(archive.to_bytes()) as zf:
            assert zf.infolist()[0].compress_type == zipfile.ZIP_STORED

    def test_directory_entries_are_stored(self, fixed_clock):
        archive = ArchiveBuilder(fixed_clock).add_folder("d")
        with open_archive(archive.to_bytes()) as zf:
            info = zf.infolist()[0]
            assert info.is_dir()
            assert info.file_size == 0


class TestFailures:
    def test_unserialisable_content(self, fixed_clock):
        archive = ArchiveBuilder(fixed_clock).add("ok.txt", "x").add("bad.json", {"x": object()})
        with pytest.raises(ArchiveAssemblyError) as exc_info:
            archive.to_bytes()
        assert exc_info.value.path == "bad.json"
        assert "bad.json" in str(exc_info.value)

    def test_streamed_archive_serialises_once(self, fixed_clock):
        archive = ArchiveBuilder(fixed_clock).add("s.txt", iter(["a", "b"]))
        archive.to_bytes()
        with pytest.raises(ArchiveAssemblyError, match="already serialised"):
            archive.to_bytes()

    def test_static_archive_serialises_repeatedly(self, fixed_clock):
        archive = ArchiveBuilder(fixed_clock).add("a.txt", "x")
        assert archive.to_bytes() == archive.to_bytes()


class TestAsync:
    def test_build_async_matches_sync(self, fixed_clock):
        def make():
            return ArchiveBuilder(fixed_clock).add("a.txt", "x").add("b.json", {"y": 2})
        assert asyncio.run(make().build_async()) == make().to_bytes()


class TestSaveExport:
    def test_writes_archive_and_guide(self, tmp_path):
        result = ExportResult(b"zipbytes", "# Guide\n", "Retail_Dashboard_2024-03-15.pbit")
        written = save_export(result, tmp_path / "out")
        assert [p.name for p in written] == [
            "Retail_Dashboard_2024-03-15.pbit", "Retail_Dashboard_2024-03-15_Guide.md",
        ]
        assert written[0].read_bytes() == b"zipbytes"
        assert written[1].read_text(encoding="utf-8") == "# Guide\n"

    def test_guide_optional(self, tmp_path):
        result = ExportResult(b"zipbytes", "# Guide\n", "export.pbip.zip")
        written = save_export(result, tmp_path, write_guide=False)
        assert [p.name for p in written] == ["export.pbip.zip"]
