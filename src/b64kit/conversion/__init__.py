"""Conversion orchestration: decode, classify, export, and encode."""

from .export import ExportResult, FileExporter
from .pipeline import ConversionPipeline, DecodeOutcome, EncodeResult
from .session import INVALID_BASE64_MESSAGE, UNSUPPORTED_MESSAGE, DecoderSession

__all__ = [
    "ConversionPipeline",
    "DecodeOutcome",
    "DecoderSession",
    "EncodeResult",
    "ExportResult",
    "FileExporter",
    "INVALID_BASE64_MESSAGE",
    "UNSUPPORTED_MESSAGE",
]
