"""Value types shared by the codec helpers."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class EncodedPayload:
    """Base64 payload separated from an optional data-URL header.

    Attributes:
        raw: Base64 text without any ``data:`` header.
        declared_mime: MIME type declared by the header, if one was present.
    """

    raw: str
    declared_mime: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        """Return True when there is no payload text to decode."""
        return not self.raw


@dataclass(frozen=True, slots=True)
class EncodingProgress:
    """Cumulative progress of a single encode operation.

    Attributes:
        bytes_processed: Source bytes encoded so far.
        total_bytes: Size of the source when the operation started.
    """

    bytes_processed: int
    total_bytes: int

    @property
    def fraction(self) -> float:
        """Return progress as a value between 0.0 and 1.0."""
        if self.total_bytes <= 0:
            return 1.0
        return min(1.0, self.bytes_processed / self.total_bytes)

    @property
    def complete(self) -> bool:
        return self.bytes_processed >= self.total_bytes


__all__ = ["EncodedPayload", "EncodingProgress"]
