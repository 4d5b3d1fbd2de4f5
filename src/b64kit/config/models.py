"""Configuration models describing b64kit settings."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from b64kit.codec.streaming import DEFAULT_CHUNK_SIZE, DEFAULT_YIELD_SECONDS
from b64kit.detection.sniffer import DEFAULT_IMAGE_FORMATS


class B64KitBaseModel(BaseModel):
    """Shared configuration for b64kit Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class EncoderOptions(B64KitBaseModel):
    """Options governing chunked encoding.

    Attributes:
        chunk_size_bytes: Requested chunk size; rounded down to a multiple of 3.
        yield_seconds: Pause between chunks so the host stays responsive.
    """

    chunk_size_bytes: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    yield_seconds: float = Field(default=DEFAULT_YIELD_SECONDS, ge=0)


class SnifferOptions(B64KitBaseModel):
    """Options governing content classification.

    Attributes:
        detect_pdf: Whether to check for a ``%PDF`` signature after the image rule.
        image_formats: Pillow format identifiers accepted as images.
    """

    detect_pdf: bool = False
    image_formats: List[str] = Field(default_factory=lambda: list(DEFAULT_IMAGE_FORMATS))


class ExportOptions(B64KitBaseModel):
    """Settings that govern writing decoded files.

    Attributes:
        directory: Destination directory; the working directory when unset.
        name_prefix: Prefix for generated file names.
        conflict_resolution: Strategy to avoid name collisions.
    """

    directory: Optional[str] = None
    name_prefix: str = "decoded"
    conflict_resolution: Literal["append_number", "overwrite"] = "append_number"


class HistoryOptions(B64KitBaseModel):
    """Recent-files history settings.

    Attributes:
        enabled: Whether conversions are recorded.
        path: Location of the JSON history file.
        max_entries: Number of entries retained, most recent first.
    """

    enabled: bool = True
    path: str = "~/.b64kit/recent.json"
    max_entries: int = Field(default=10, ge=1)


class LoggingSettings(B64KitBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        path: Optional log file; console-only logging when unset.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    path: Optional[str] = None
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(B64KitBaseModel):
    """CLI behavior defaults and presentation preferences.

    Attributes:
        quiet_default: Whether commands suppress non-error output by default.
        show_progress: Whether encode renders a progress bar.
    """

    quiet_default: bool = False
    show_progress: bool = True


class B64KitConfig(B64KitBaseModel):
    """Top-level configuration struct for b64kit.

    Attributes:
        encoder: Chunked encoder settings.
        sniffer: Content classification settings.
        export: Decoded file export settings.
        history: Recent-files history settings.
        logging: Logging configuration.
        cli: CLI presentation defaults.
    """

    encoder: EncoderOptions = Field(default_factory=EncoderOptions)
    sniffer: SnifferOptions = Field(default_factory=SnifferOptions)
    export: ExportOptions = Field(default_factory=ExportOptions)
    history: HistoryOptions = Field(default_factory=HistoryOptions)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "B64KitBaseModel",
    "EncoderOptions",
    "SnifferOptions",
    "ExportOptions",
    "HistoryOptions",
    "LoggingSettings",
    "CLIOptions",
    "B64KitConfig",
]
