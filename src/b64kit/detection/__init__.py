"""Content sniffing, extension resolution, and file metadata."""

from .extensions import DEFAULT_EXTENSION, ExtensionResolver
from .extractors import MetadataExtractor
from .models import ClassifiedContent, ContentKind, DecodedBytes, FileCategory, FileDescriptor
from .sniffer import ContentSniffer

__all__ = [
    "DEFAULT_EXTENSION",
    "ClassifiedContent",
    "ContentKind",
    "ContentSniffer",
    "DecodedBytes",
    "ExtensionResolver",
    "FileCategory",
    "FileDescriptor",
    "MetadataExtractor",
]
