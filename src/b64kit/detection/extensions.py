"""Best-effort file extension resolution for decoded content."""

from __future__ import annotations

import logging
import mimetypes
import re
from typing import Mapping, Optional, Tuple

LOGGER = logging.getLogger(__name__)

DEFAULT_EXTENSION = "bin"

MIME_EXTENSIONS: Mapping[str, str] = {
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/gif": "gif",
    "application/pdf": "pdf",
    "text/plain": "txt",
    "application/json": "json",
    "audio/mpeg": "mp3",
    "audio/wav": "wav",
    "audio/x-wav": "wav",
    "audio/mp4": "m4a",
    "video/mp4": "mp4",
    "application/zip": "zip",
}

MAGIC_EXTENSIONS: Tuple[Tuple[bytes, str], ...] = (
    (b"\x89PNG", "png"),
    (b"\xff\xd8\xff", "jpg"),
    (b"GIF", "gif"),
    (b"%PDF", "pdf"),
    (b"PK\x03\x04", "zip"),
    (b"Rar!", "rar"),
    (b"7z\xbc\xaf", "7z"),
)

_RIFF = b"RIFF"
_WAVE = b"WAVE"
_ID3 = b"ID3"
_FLAC = b"fLaC"
_MIN_MAGIC_BYTES = 4
_SIMPLE_MIME = re.compile(r"^[a-z0-9][a-z0-9!#$&^_.+-]*/([a-z0-9][a-z0-9!#$&^_.+-]*)$")


class ExtensionResolver:
    """Resolve a filename extension from a declared MIME type and/or raw bytes.

    Resolution order: the MIME registry, the built-in MIME table, the bare
    subtype of a simple ``type/subtype`` string, magic numbers, then ``bin``.
    Extensions are returned without a leading dot.
    """

    def __init__(self, registry: Optional[mimetypes.MimeTypes] = None) -> None:
        self._registry = registry

    def resolve(self, mime: Optional[str] = None, data: Optional[bytes] = None) -> str:
        """Return a non-empty extension; never raises."""
        if mime:
            extension = self.from_mime(mime)
            if extension:
                return extension
        if data is not None:
            extension = self.from_magic(data)
            if extension:
                return extension
        return DEFAULT_EXTENSION

    def from_mime(self, mime: str) -> Optional[str]:
        """Return an extension for a declared MIME type, or None."""
        normalized = _normalize_mime(mime)
        if not normalized:
            return None

        essence = normalized.split(";", 1)[0].strip()
        guessed = self._guess_extension(essence)
        if guessed:
            return guessed

        mapped = MIME_EXTENSIONS.get(essence)
        if mapped:
            return mapped

        if ";" not in normalized:
            match = _SIMPLE_MIME.match(essence)
            if match:
                return match.group(1)
        return None

    def from_magic(self, data: bytes) -> Optional[str]:
        """Return an extension inferred from leading magic numbers, or None."""
        if len(data) < _MIN_MAGIC_BYTES:
            return None
        for signature, extension in MAGIC_EXTENSIONS:
            if data.startswith(signature):
                return extension
        if data.startswith(_RIFF):
            return "wav" if data[8:12] == _WAVE else "webp"
        if data.startswith(_ID3):
            return "mp3"
        if data.startswith(_FLAC):
            return "flac"
        return None

    def _guess_extension(self, mime: str) -> Optional[str]:
        if self._registry is not None:
            guessed = self._registry.guess_extension(mime)
        else:
            guessed = mimetypes.guess_extension(mime)
        if not guessed:
            return None
        LOGGER.debug("MIME registry mapped %s to %s", mime, guessed)
        return guessed.lstrip(".") or None


def _normalize_mime(mime: str) -> str:
    normalized = mime.strip().lower()
    if normalized.startswith("data:"):
        normalized = normalized[len("data:") :]
    return normalized.strip()


__all__ = [
    "DEFAULT_EXTENSION",
    "MAGIC_EXTENSIONS",
    "MIME_EXTENSIONS",
    "ExtensionResolver",
]
