"""Base64 codec, data-URL normalization, and streaming encoder."""

from .dataurl import BASE64_TOKEN, normalize
from .models import EncodedPayload, EncodingProgress
from .streaming import DEFAULT_CHUNK_SIZE, ChunkedEncoder, EncodeJob, aligned_chunk_size
from .transcoder import decode, encode, is_valid_base64

__all__ = [
    "BASE64_TOKEN",
    "DEFAULT_CHUNK_SIZE",
    "ChunkedEncoder",
    "EncodeJob",
    "EncodedPayload",
    "EncodingProgress",
    "aligned_chunk_size",
    "decode",
    "encode",
    "is_valid_base64",
    "normalize",
]
