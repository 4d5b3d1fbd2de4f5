"""Metadata and preview helpers for classified content."""

from __future__ import annotations

import io
import json
from typing import Dict, Optional

from PIL import ExifTags, Image

from .models import ClassifiedContent, ContentKind

PREVIEW_LIMIT = 512


class MetadataExtractor:
    """Extract display metadata and previews for classified content."""

    def extract(self, content: ClassifiedContent) -> Dict[str, str]:
        """Return metadata key/value pairs for the content.

        Args:
            content: Classified content produced by the sniffer.

        Returns:
            Dict[str, str]: Mapping of metadata field names to values.
        """
        metadata: Dict[str, str] = {
            "kind": content.kind.label,
            "size_bytes": str(content.size_bytes),
        }

        if content.kind in {ContentKind.TEXT, ContentKind.JSON}:
            text = content.data.decode("utf-8", errors="replace")
            metadata["characters"] = str(len(text))
            metadata["lines"] = str(text.count("\n") + 1)
        if content.kind is ContentKind.JSON:
            try:
                obj = json.loads(content.data)
            except ValueError:  # pragma: no cover - sniffer already parsed it
                obj = None
            metadata["json_type"] = type(obj).__name__ if obj is not None else "null"
            if isinstance(obj, dict):
                metadata["json_keys"] = str(len(obj))
            elif isinstance(obj, list):
                metadata["json_items"] = str(len(obj))
        if content.kind is ContentKind.IMAGE:
            try:
                with Image.open(io.BytesIO(content.data)) as img:
                    width, height = img.size
                    metadata["image_format"] = img.format or "unknown"
                    metadata["image_width"] = str(width)
                    metadata["image_height"] = str(height)
                    metadata["image_mode"] = img.mode
                    exif_data = img.getexif()
                    if exif_data:
                        orientation_key = next(
                            (k for k, v in ExifTags.TAGS.items() if v == "Orientation"),
                            None,
                        )
                        if orientation_key and orientation_key in exif_data:
                            metadata["image_orientation"] = str(exif_data[orientation_key])
            except Exception:  # pragma: no cover - corrupt images
                pass

        return metadata

    def preview(self, content: ClassifiedContent, limit: int = PREVIEW_LIMIT) -> Optional[str]:
        """Return a short textual preview for text-like content.

        JSON is pretty-printed before truncation.
        """
        if content.kind is ContentKind.JSON:
            try:
                snippet = json.dumps(json.loads(content.data), indent=2, ensure_ascii=False)
            except ValueError:  # pragma: no cover - sniffer already parsed it
                snippet = content.data.decode("utf-8", errors="replace")
        elif content.kind is ContentKind.TEXT:
            snippet = content.data.decode("utf-8", errors="replace")
        else:
            return None
        snippet = snippet[:limit].strip()
        return snippet or None


__all__ = ["MetadataExtractor", "PREVIEW_LIMIT"]
