"""Ordered content sniffing for decoded base64 payloads.

Classification walks an explicit chain of predicates and stops at the first
match, so the precedence below is part of the observable contract:

1. Image  - Pillow opens and verifies the buffer.
2. JSON   - any JSON value, checked before text so JSON is never reported as text.
3. Text   - strict UTF-8.
4. Audio  - container or frame signatures.

PDF has no rule unless ``detect_pdf`` is enabled, in which case a ``%PDF``
signature check runs directly after the image rule.
"""

from __future__ import annotations

import io
import json
import logging
from typing import Callable, Iterable, Optional, Sequence, Tuple, Union

from PIL import Image

from b64kit.errors import NoContent, UnsupportedContent

from .models import ClassifiedContent, ContentKind, DecodedBytes

LOGGER = logging.getLogger(__name__)

Predicate = Callable[[DecodedBytes], bool]

DEFAULT_IMAGE_FORMATS: Tuple[str, ...] = ("PNG", "JPEG", "GIF", "BMP", "TIFF", "WEBP", "ICO")

PDF_SIGNATURE = b"%PDF"

# (offset, signature)
AUDIO_SIGNATURES: Tuple[Tuple[int, bytes], ...] = (
    (0, b"RIFF"),  # WAV container
    (0, b"ID3"),  # MP3 with ID3 tag
    (0, b"\xff\xfb"),  # MP3 frame sync
    (4, b"ftypM4A"),  # M4A
    (0, b"OggS"),
    (0, b"\x1a\x45\xdf\xa3"),  # WebM/Matroska
)


def is_json(decoded: DecodedBytes) -> bool:
    """Return True when the buffer is a well-formed JSON value."""
    try:
        json.loads(decoded.data, parse_constant=_reject_constant)
    except (ValueError, RecursionError):
        return False
    return True


def is_text(decoded: DecodedBytes) -> bool:
    """Return True when the buffer is valid UTF-8."""
    try:
        decoded.data.decode("utf-8")
    except UnicodeDecodeError:
        return False
    return True


def is_audio(decoded: DecodedBytes) -> bool:
    """Return True when the buffer carries a known audio signature."""
    return any(decoded.startswith(signature, offset) for offset, signature in AUDIO_SIGNATURES)


def is_pdf(decoded: DecodedBytes) -> bool:
    return decoded.startswith(PDF_SIGNATURE)


def _reject_constant(name: str) -> None:
    raise ValueError(f"{name} is not valid JSON")


class ContentSniffer:
    """Classify decoded bytes into a :class:`ContentKind`."""

    def __init__(
        self,
        *,
        detect_pdf: bool = False,
        image_formats: Iterable[str] = DEFAULT_IMAGE_FORMATS,
    ) -> None:
        """Build the predicate chain.

        Args:
            detect_pdf: Insert a ``%PDF`` signature rule after the image rule.
            image_formats: Pillow format identifiers accepted as images.
        """
        self._image_formats = _available_formats(image_formats)
        rules: list[Tuple[ContentKind, Predicate]] = [(ContentKind.IMAGE, self.is_image)]
        if detect_pdf:
            rules.append((ContentKind.PDF, is_pdf))
        rules.extend(
            [
                (ContentKind.JSON, is_json),
                (ContentKind.TEXT, is_text),
                (ContentKind.AUDIO, is_audio),
            ]
        )
        self._chain: Tuple[Tuple[ContentKind, Predicate], ...] = tuple(rules)

    @property
    def chain(self) -> Tuple[Tuple[ContentKind, Predicate], ...]:
        """Return the ordered ``(kind, predicate)`` rules."""
        return self._chain

    @property
    def precedence(self) -> Tuple[ContentKind, ...]:
        return tuple(kind for kind, _ in self._chain)

    @property
    def image_formats(self) -> Tuple[str, ...]:
        return self._image_formats

    def is_image(self, decoded: DecodedBytes) -> bool:
        """Return True when Pillow can open and verify the buffer as a raster image."""
        if not self._image_formats:
            return False
        try:
            with Image.open(io.BytesIO(decoded.data), formats=self._image_formats) as image:
                image.verify()
        except Exception:  # unrecognised or corrupt images
            return False
        return True

    def match(self, decoded: DecodedBytes) -> Optional[ContentKind]:
        """Return the first matching kind, or None when no rule matches."""
        for kind, predicate in self._chain:
            if predicate(decoded):
                return kind
        return None

    def classify(self, data: Union[bytes, DecodedBytes]) -> ClassifiedContent:
        """Classify a non-empty decoded buffer.

        Args:
            data: Decoded bytes to inspect.

        Returns:
            ClassifiedContent: Buffer tagged with the first matching kind.

        Raises:
            NoContent: If the buffer is empty.
            UnsupportedContent: If no rule matches.
        """
        decoded = data if isinstance(data, DecodedBytes) else DecodedBytes(bytes(data))
        if not decoded.length:
            raise NoContent("Cannot classify empty content.")

        kind = self.match(decoded)
        if kind is None:
            LOGGER.debug("No content rule matched %d bytes", decoded.length)
            raise UnsupportedContent("Unable to decode content. Unsupported format.")
        LOGGER.debug("Classified %d bytes as %s", decoded.length, kind.value)
        return ClassifiedContent(kind=kind, decoded=decoded)


def _available_formats(formats: Iterable[str]) -> Tuple[str, ...]:
    Image.init()
    requested: Sequence[str] = [fmt.upper() for fmt in formats]
    available = tuple(fmt for fmt in requested if fmt in Image.OPEN)
    missing = set(requested) - set(available)
    if missing:
        LOGGER.debug("Pillow cannot open image formats: %s", ", ".join(sorted(missing)))
    return available


__all__ = [
    "AUDIO_SIGNATURES",
    "DEFAULT_IMAGE_FORMATS",
    "PDF_SIGNATURE",
    "ContentSniffer",
    "Predicate",
    "is_audio",
    "is_json",
    "is_pdf",
    "is_text",
]
