"""Exceptions raised by the conversion pipeline."""


class B64KitError(Exception):
    """Base exception for encode, decode, and export failures."""


class InvalidBase64(B64KitError):
    """Raised when a payload is not valid standard base64."""


class UnsupportedContent(B64KitError):
    """Raised when decoded bytes match none of the known content kinds."""


class NoContent(B64KitError):
    """Raised when an operation requires content but the input is empty."""


class SourceUnreadable(B64KitError):
    """Raised when an encode source cannot be opened or sized."""


class ReadError(B64KitError):
    """Raised when reading from an encode source fails mid-stream."""


class EncodingFailed(B64KitError):
    """Raised when encoding produced no output for non-empty input."""


class EncodingCancelled(B64KitError):
    """Raised when an in-flight encode is cancelled before completion."""


class EncoderBusy(B64KitError):
    """Raised when an encoder instance already has an operation in flight."""


class ExportError(B64KitError):
    """Raised when decoded content cannot be written to disk."""
