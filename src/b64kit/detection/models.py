"""Content and file descriptor models produced by detection."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import PurePath
from typing import Tuple

from pydantic import BaseModel, Field


class ContentKind(str, Enum):
    """Renderable kinds of decoded content."""

    IMAGE = "image"
    TEXT = "text"
    JSON = "json"
    PDF = "pdf"
    AUDIO = "audio"

    @property
    def label(self) -> str:
        return _KIND_LABELS[self]


_KIND_LABELS = {
    ContentKind.IMAGE: "Image",
    ContentKind.TEXT: "Text",
    ContentKind.JSON: "JSON",
    ContentKind.PDF: "PDF",
    ContentKind.AUDIO: "Audio",
}


@dataclass(frozen=True, slots=True)
class DecodedBytes:
    """Immutable decoded byte buffer."""

    data: bytes

    @property
    def length(self) -> int:
        return len(self.data)

    def __len__(self) -> int:
        return len(self.data)

    def startswith(self, prefix: bytes, offset: int = 0) -> bool:
        """Return True when ``prefix`` appears at ``offset``."""
        return self.data.startswith(prefix, offset)


@dataclass(frozen=True, slots=True)
class ClassifiedContent:
    """Decoded bytes tagged with the content kind the sniffer assigned.

    Attributes:
        kind: Content kind selected by the first matching rule.
        decoded: Decoded buffer that was classified.
    """

    kind: ContentKind
    decoded: DecodedBytes

    @property
    def data(self) -> bytes:
        return self.decoded.data

    @property
    def size_bytes(self) -> int:
        return self.decoded.length


class FileCategory(str, Enum):
    """Coarse file-manager category derived from a file extension."""

    IMAGE = "Image"
    AUDIO = "Audio"
    VIDEO = "Video"
    DOCUMENT = "Document"
    ARCHIVE = "Archive"
    OTHER = "Other"

    @property
    def extensions(self) -> Tuple[str, ...]:
        return _CATEGORY_EXTENSIONS.get(self, ())

    @classmethod
    def from_extension(cls, extension: str) -> "FileCategory":
        """Return the category owning ``extension`` (case-insensitive, dot optional)."""
        normalized = extension.lower().lstrip(".")
        for category, extensions in _CATEGORY_EXTENSIONS.items():
            if normalized in extensions:
                return category
        return cls.OTHER


_CATEGORY_EXTENSIONS = {
    FileCategory.IMAGE: ("jpg", "jpeg", "png", "gif", "heic", "webp"),
    FileCategory.AUDIO: ("mp3", "wav", "m4a", "aac", "flac", "ogg"),
    FileCategory.VIDEO: ("mp4", "mov", "avi", "mkv", "webm"),
    FileCategory.DOCUMENT: ("pdf", "doc", "docx", "xls", "xlsx", "ppt", "pptx", "txt"),
    FileCategory.ARCHIVE: ("zip", "rar", "7z", "tar", "gz"),
}


class FileDescriptor(BaseModel):
    """Display metadata for a file produced or consumed by a conversion.

    Attributes:
        name: File name including its extension.
        size_bytes: Size of the file contents in bytes.
        category: Coarse category derived from the extension.
        created_at: Time the descriptor was recorded.
    """

    name: str
    size_bytes: int = Field(ge=0)
    category: FileCategory = FileCategory.OTHER
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_file(cls, name: str, size_bytes: int) -> "FileDescriptor":
        """Build a descriptor whose category is derived from ``name``."""
        suffix = PurePath(name).suffix
        return cls(name=name, size_bytes=size_bytes, category=FileCategory.from_extension(suffix))


__all__ = [
    "ClassifiedContent",
    "ContentKind",
    "DecodedBytes",
    "FileCategory",
    "FileDescriptor",
]
