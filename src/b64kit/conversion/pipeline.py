"""High-level conversion pipeline orchestration."""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from b64kit.codec import ChunkedEncoder, EncodedPayload, decode, normalize
from b64kit.codec.streaming import ProgressCallback
from b64kit.config.models import B64KitConfig
from b64kit.detection import (
    DEFAULT_EXTENSION,
    ClassifiedContent,
    ContentSniffer,
    ExtensionResolver,
    FileDescriptor,
)
from b64kit.errors import B64KitError, InvalidBase64, UnsupportedContent
from b64kit.history import HistoryError, RecentFilesStore

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class DecodeOutcome:
    """Result of decoding one input string.

    Exactly one of three states holds: empty (no payload yet), failed
    (``error`` set, ``content`` None), or classified (``content`` set).

    Attributes:
        payload: Normalized payload and declared MIME type.
        data: Decoded bytes; empty when the payload was empty or invalid.
        content: Classified content on success.
        extension: Best-guess file extension for the decoded bytes.
        error: Typed failure when decoding or classification failed.
    """

    payload: EncodedPayload
    data: bytes = b""
    content: Optional[ClassifiedContent] = None
    extension: str = DEFAULT_EXTENSION
    error: Optional[B64KitError] = None

    @property
    def is_empty(self) -> bool:
        return self.error is None and not self.data

    @property
    def ok(self) -> bool:
        return self.content is not None


@dataclass(slots=True)
class EncodeResult:
    """Base64 text produced from a file plus its history descriptor."""

    text: str
    descriptor: FileDescriptor
    notes: list[str] = field(default_factory=list)


class ConversionPipeline:
    """Coordinate normalization, decoding, sniffing, and encoding."""

    def __init__(
        self,
        sniffer: ContentSniffer,
        resolver: ExtensionResolver,
        encoder: ChunkedEncoder,
        history: RecentFilesStore | None = None,
    ) -> None:
        self.sniffer = sniffer
        self.resolver = resolver
        self.encoder = encoder
        self.history = history

    @classmethod
    def from_config(
        cls,
        config: B64KitConfig,
        *,
        history: RecentFilesStore | None = None,
    ) -> "ConversionPipeline":
        """Build a pipeline from configuration settings."""
        return cls(
            sniffer=ContentSniffer(
                detect_pdf=config.sniffer.detect_pdf,
                image_formats=config.sniffer.image_formats,
            ),
            resolver=ExtensionResolver(),
            encoder=ChunkedEncoder(
                config.encoder.chunk_size_bytes,
                yield_seconds=config.encoder.yield_seconds,
            ),
            history=history,
        )

    def decode(self, text: str) -> DecodeOutcome:
        """Normalize, decode, and classify ``text``.

        Failures are returned on the outcome rather than raised; every call
        classifies from scratch.
        """
        payload = normalize(text)
        if payload.is_empty:
            return DecodeOutcome(payload=payload)

        try:
            data = decode(payload.raw)
        except InvalidBase64 as exc:
            return DecodeOutcome(payload=payload, error=exc)

        if not data:
            return DecodeOutcome(payload=payload)

        extension = self.resolver.resolve(payload.declared_mime, data)
        try:
            content = self.sniffer.classify(data)
        except UnsupportedContent as exc:
            return DecodeOutcome(payload=payload, data=data, extension=extension, error=exc)

        return DecodeOutcome(payload=payload, data=data, content=content, extension=extension)

    def encode_file(
        self,
        path: Path,
        *,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> EncodeResult:
        """Encode the file at ``path`` and record it in the history store.

        Raises:
            B64KitError: Any encoder failure; nothing is recorded in that case.
        """
        processed = 0

        def _track(update) -> None:
            nonlocal processed
            processed = update.bytes_processed
            if progress is not None:
                progress(update)

        text = self.encoder.encode(path, progress=_track, cancel_event=cancel_event)
        descriptor = FileDescriptor.for_file(path.name, processed)
        notes = record_history(self.history, descriptor)
        return EncodeResult(text=text, descriptor=descriptor, notes=notes)


def record_history(history: RecentFilesStore | None, descriptor: FileDescriptor) -> list[str]:
    """Add ``descriptor`` to ``history`` and return any notes about failures."""
    if history is None:
        return []
    try:
        history.add(descriptor)
    except HistoryError as exc:
        LOGGER.warning("Could not update recent files: %s", exc)
        return [f"{descriptor.name}: recent files not updated ({exc})"]
    return []


__all__ = ["ConversionPipeline", "DecodeOutcome", "EncodeResult", "record_history"]
