"""Tests for exporting decoded payloads to disk."""

from __future__ import annotations

import base64
import mimetypes
from pathlib import Path

import pytest

from b64kit.config.models import ExportOptions
from b64kit.conversion import FileExporter
from b64kit.detection import ExtensionResolver
from b64kit.errors import InvalidBase64, NoContent
from b64kit.history import RecentFilesStore

PDF_BYTES = b"%PDF-1.4\n%\xe2\xe3\xcf\xd3\n"


def _exporter(directory: Path, **kwargs) -> FileExporter:
    kwargs.setdefault("resolver", ExtensionResolver(mimetypes.MimeTypes()))
    kwargs.setdefault("clock", lambda: 1_700_000_000.5)
    return FileExporter(directory, **kwargs)


def test_export_names_file_after_timestamp_and_extension(tmp_path: Path) -> None:
    exporter = _exporter(tmp_path / "out")

    result = exporter.export(base64.b64encode(PDF_BYTES).decode("ascii"))

    assert result.path == tmp_path / "out" / "decoded_1700000000.pdf"
    assert result.path.read_bytes() == PDF_BYTES
    assert result.extension == "pdf"
    assert not result.conflict_applied
    assert result.descriptor.size_bytes == len(PDF_BYTES)


def test_export_uses_declared_mime(tmp_path: Path) -> None:
    exporter = _exporter(tmp_path)

    result = exporter.export("data:application/json;base64,e30=")

    assert result.path.name == "decoded_1700000000.json"
    assert result.path.read_bytes() == b"{}"


def test_export_appends_number_on_collision(tmp_path: Path) -> None:
    exporter = _exporter(tmp_path)
    (tmp_path / "decoded_1700000000.txt").write_text("existing", encoding="utf-8")
    (tmp_path / "decoded_1700000000-1.txt").write_text("existing", encoding="utf-8")

    result = exporter.export_bytes(b"fresh", mime="text/plain")

    assert result.path.name == "decoded_1700000000-2.txt"
    assert result.conflict_applied
    assert result.notes[0].startswith("Renamed to decoded_1700000000-2.txt")
    assert (tmp_path / "decoded_1700000000.txt").read_text(encoding="utf-8") == "existing"


def test_export_overwrite_mode_replaces_file(tmp_path: Path) -> None:
    exporter = _exporter(tmp_path, conflict_resolution="overwrite")
    target = tmp_path / "decoded_1700000000.txt"
    target.write_text("old", encoding="utf-8")

    result = exporter.export_bytes(b"new", mime="text/plain")

    assert result.path == target
    assert not result.conflict_applied
    assert target.read_bytes() == b"new"


@pytest.mark.parametrize(
    ("name", "expected"),
    [
        ("report", "report.pdf"),
        ("report.pdf", "report.pdf"),
        ("report.PDF", "report.PDF"),
        ("../escape", "escape.pdf"),
        ("   ", "decoded_1700000000.pdf"),
    ],
)
def test_export_respects_requested_name(tmp_path: Path, name: str, expected: str) -> None:
    exporter = _exporter(tmp_path)

    result = exporter.export_bytes(PDF_BYTES, name=name)

    assert result.path == tmp_path / expected


def test_export_rejects_empty_payload(tmp_path: Path) -> None:
    exporter = _exporter(tmp_path)

    with pytest.raises(NoContent):
        exporter.export("data:image/png;base64,")


def test_export_rejects_invalid_payload(tmp_path: Path) -> None:
    exporter = _exporter(tmp_path)

    with pytest.raises(InvalidBase64):
        exporter.export("definitely not base64")
    assert list(tmp_path.iterdir()) == []


def test_export_records_history(tmp_path: Path) -> None:
    history = RecentFilesStore(tmp_path / "recent.json")
    exporter = _exporter(tmp_path / "out", history=history)

    result = exporter.export_bytes(b"\xff\xd8\xff\xe0rest")

    assert result.notes == []
    assert [entry.name for entry in history.list()] == ["decoded_1700000000.jpg"]


def test_from_options_prefers_explicit_directory(tmp_path: Path) -> None:
    options = ExportOptions(directory=str(tmp_path / "configured"), name_prefix="b64")

    configured = FileExporter.from_options(options)
    explicit = FileExporter.from_options(options, directory=tmp_path / "explicit")

    assert configured.directory == tmp_path / "configured"
    assert explicit.directory == tmp_path / "explicit"
    assert explicit.name_prefix == "b64"
