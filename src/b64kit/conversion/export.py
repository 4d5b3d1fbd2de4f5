"""Write decoded payloads to named files."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional

from b64kit.codec import decode, normalize
from b64kit.config.models import ExportOptions
from b64kit.detection import ExtensionResolver, FileDescriptor
from b64kit.errors import ExportError, NoContent
from b64kit.history import RecentFilesStore

from .pipeline import record_history

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class ExportResult:
    """Outcome of exporting a decoded payload.

    Attributes:
        path: File that was written.
        extension: Extension chosen for the file, without a dot.
        descriptor: History descriptor for the written file.
        conflict_applied: Whether the name was changed to avoid a collision.
        notes: Non-fatal issues such as history write failures.
    """

    path: Path
    extension: str
    descriptor: FileDescriptor
    conflict_applied: bool = False
    notes: list[str] = field(default_factory=list)


class FileExporter:
    """Materialize decoded bytes as a file named after its resolved extension."""

    def __init__(
        self,
        directory: Path,
        *,
        resolver: ExtensionResolver | None = None,
        history: RecentFilesStore | None = None,
        name_prefix: str = "decoded",
        conflict_resolution: str = "append_number",
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.directory = directory.expanduser()
        self.resolver = resolver or ExtensionResolver()
        self.history = history
        self.name_prefix = name_prefix
        self.conflict_resolution = conflict_resolution
        self._clock = clock

    @classmethod
    def from_options(
        cls,
        options: ExportOptions,
        *,
        directory: Path | None = None,
        resolver: ExtensionResolver | None = None,
        history: RecentFilesStore | None = None,
    ) -> "FileExporter":
        """Build an exporter; ``directory`` overrides the configured one."""
        target = directory or (Path(options.directory) if options.directory else Path.cwd())
        return cls(
            target,
            resolver=resolver,
            history=history,
            name_prefix=options.name_prefix,
            conflict_resolution=options.conflict_resolution,
        )

    def export(self, text: str, *, name: Optional[str] = None) -> ExportResult:
        """Decode ``text`` (optionally a data URL) and write it to disk.

        Raises:
            InvalidBase64: If the payload is not valid base64.
            NoContent: If the payload decodes to nothing.
            ExportError: If the file cannot be written.
        """
        payload = normalize(text)
        data = decode(payload.raw)
        return self.export_bytes(data, mime=payload.declared_mime, name=name)

    def export_bytes(
        self,
        data: bytes,
        *,
        mime: Optional[str] = None,
        name: Optional[str] = None,
    ) -> ExportResult:
        """Write ``data`` under a name whose extension is resolved from ``mime``/``data``."""
        if not data:
            raise NoContent("Nothing to export; the payload is empty.")

        extension = self.resolver.resolve(mime, data)
        candidate = self.directory / self._file_name(name, extension)
        destination, conflict_applied = self._resolve_destination(candidate)

        try:
            self.directory.mkdir(parents=True, exist_ok=True)
            destination.write_bytes(data)
        except OSError as exc:
            raise ExportError(f"Could not write {destination}: {exc}") from exc
        LOGGER.info("Exported %d bytes to %s", len(data), destination)

        descriptor = FileDescriptor.for_file(destination.name, len(data))
        notes = record_history(self.history, descriptor)
        if conflict_applied:
            notes.insert(0, f"Renamed to {destination.name} to avoid overwriting an existing file.")
        return ExportResult(
            path=destination,
            extension=extension,
            descriptor=descriptor,
            conflict_applied=conflict_applied,
            notes=notes,
        )

    def _file_name(self, name: Optional[str], extension: str) -> str:
        base = Path(name).name.strip() if name else ""
        if not base:
            base = f"{self.name_prefix}_{int(self._clock())}"
        if Path(base).suffix.lower() == f".{extension}":
            return base
        return f"{base}.{extension}"

    def _resolve_destination(self, candidate: Path) -> tuple[Path, bool]:
        if self.conflict_resolution == "overwrite" or not candidate.exists():
            return candidate, False
        counter = 1
        final_candidate = candidate
        while final_candidate.exists():
            final_candidate = candidate.with_name(f"{candidate.stem}-{counter}{candidate.suffix}")
            counter += 1
        return final_candidate, True


__all__ = ["ExportResult", "FileExporter"]
