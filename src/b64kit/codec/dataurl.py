"""Data-URL header stripping.

This is a textual scan rather than an RFC 2397 parser: the first ``base64,``
token splits the header from the payload, and anything pasted without the
token is treated as a bare payload. The ``data:`` scheme is matched
case-insensitively, as URL schemes are; the ``base64,`` token and the MIME
text are taken literally.
"""

from __future__ import annotations

from .models import EncodedPayload

BASE64_TOKEN = "base64,"
_SCHEME = "data:"


def normalize(text: str) -> EncodedPayload:
    """Split ``text`` into a clean base64 payload and its declared MIME type.

    Args:
        text: Arbitrary input that may or may not be a data URL.

    Returns:
        EncodedPayload: Payload after the first ``base64,`` token together with
        the MIME type found between ``data:`` and the first ``;``. Inputs
        without the token are returned unchanged with no declared MIME type.
    """
    index = text.find(BASE64_TOKEN)
    if index < 0:
        return EncodedPayload(raw=text, declared_mime=None)

    header = text[:index]
    payload = text[index + len(BASE64_TOKEN) :]
    return EncodedPayload(raw=payload, declared_mime=_declared_mime(header))


def _declared_mime(header: str) -> str | None:
    start = header.lower().find(_SCHEME)
    if start < 0:
        return None
    mime = header[start + len(_SCHEME) :]
    semicolon = mime.find(";")
    if semicolon >= 0:
        mime = mime[:semicolon]
    mime = mime.strip()
    return mime or None


__all__ = ["BASE64_TOKEN", "normalize"]
