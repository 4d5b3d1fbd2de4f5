"""Stateful decoder for interactively pasted base64 text."""

from __future__ import annotations

from typing import Optional

from b64kit.detection import ClassifiedContent
from b64kit.errors import InvalidBase64

from .pipeline import ConversionPipeline, DecodeOutcome

INVALID_BASE64_MESSAGE = "Invalid base64 string"
UNSUPPORTED_MESSAGE = "Unable to decode content. Unsupported format."


class DecoderSession:
    """Track the current input and the preview derived from it.

    Each new input is classified from scratch. A failure clears the previous
    preview and sets a short message; an empty input clears both. Re-submitting
    the last successfully decoded text is a no-op.
    """

    def __init__(self, pipeline: ConversionPipeline) -> None:
        self._pipeline = pipeline
        self._text = ""
        self._last_valid = ""
        self._outcome: Optional[DecodeOutcome] = None
        self._content: Optional[ClassifiedContent] = None
        self._error_message: Optional[str] = None

    @property
    def text(self) -> str:
        return self._text

    @property
    def content(self) -> Optional[ClassifiedContent]:
        return self._content

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @property
    def outcome(self) -> Optional[DecodeOutcome]:
        return self._outcome

    def update(self, text: str) -> Optional[ClassifiedContent]:
        """Decode ``text`` and return the resulting preview content, if any."""
        self._text = text
        if text and text == self._last_valid:
            return self._content

        outcome = self._pipeline.decode(text)
        self._outcome = outcome
        if outcome.content is not None:
            self._content = outcome.content
            self._last_valid = text
            self._error_message = None
        else:
            self._content = None
            self._last_valid = ""
            self._error_message = _message_for(outcome)
        return self._content

    def clear(self) -> None:
        self._text = ""
        self._last_valid = ""
        self._outcome = None
        self._content = None
        self._error_message = None


def _message_for(outcome: DecodeOutcome) -> Optional[str]:
    if outcome.is_empty:
        return None
    if isinstance(outcome.error, InvalidBase64):
        return INVALID_BASE64_MESSAGE
    return UNSUPPORTED_MESSAGE


__all__ = ["DecoderSession", "INVALID_BASE64_MESSAGE", "UNSUPPORTED_MESSAGE"]
