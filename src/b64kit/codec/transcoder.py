"""Standard base64 encode/decode contract used by every caller."""

from __future__ import annotations

import base64
import binascii
import logging

from b64kit.errors import InvalidBase64

LOGGER = logging.getLogger(__name__)


def encode(data: bytes) -> str:
    """Return the padded standard-alphabet base64 text for ``data``."""
    return base64.b64encode(data).decode("ascii")


def decode(text: str) -> bytes:
    """Decode standard base64 text into bytes.

    An empty string decodes to empty bytes; callers treat that as "no content"
    rather than as a failure.

    Args:
        text: Base64 payload with no data-URL header.

    Returns:
        bytes: Decoded content.

    Raises:
        InvalidBase64: If ``text`` contains characters outside the base64
            alphabet or has an invalid padding length.
    """
    if not text:
        return b""
    try:
        return base64.b64decode(text, validate=True)
    except (binascii.Error, ValueError) as exc:
        LOGGER.debug("Rejected base64 payload of %d characters: %s", len(text), exc)
        raise InvalidBase64(f"Invalid base64 string: {exc}") from exc


def is_valid_base64(text: str) -> bool:
    """Return True when ``text`` decodes under :func:`decode`."""
    try:
        decode(text)
    except InvalidBase64:
        return False
    return True


__all__ = ["encode", "decode", "is_valid_base64"]
