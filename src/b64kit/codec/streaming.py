"""Chunked base64 encoding for large files with progress reporting."""

from __future__ import annotations

import logging
import os
import threading
import time
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Callable, Iterator, Optional, Tuple, Union

from b64kit.errors import (
    EncoderBusy,
    EncodingCancelled,
    EncodingFailed,
    ReadError,
    SourceUnreadable,
)

from .models import EncodingProgress
from .transcoder import encode

LOGGER = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 1_048_576
DEFAULT_YIELD_SECONDS = 0.01

EncodeSource = Union[str, "os.PathLike[str]", BinaryIO]
ProgressCallback = Callable[[EncodingProgress], None]


def aligned_chunk_size(chunk_size: int) -> int:
    """Return ``chunk_size`` rounded down to a whole number of base64 blocks.

    Base64 maps 3 input bytes to 4 output characters, so only chunks sized in
    multiples of 3 concatenate to the same text as a whole-buffer encode.
    """
    if chunk_size <= 0:
        raise ValueError("chunk_size must be a positive number of bytes.")
    return max(3, chunk_size - chunk_size % 3)


class ChunkedEncoder:
    """Encode byte sources to base64 one bounded chunk at a time.

    Each instance runs at most one operation at a time; the progress it reports
    belongs to that operation alone.
    """

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        *,
        yield_seconds: float = DEFAULT_YIELD_SECONDS,
    ) -> None:
        """Initialise the encoder.

        Args:
            chunk_size: Requested chunk size in bytes. Sources smaller than this
                are encoded in a single pass.
            yield_seconds: Pause between chunks so other work can run.

        Raises:
            ValueError: If ``chunk_size`` is not positive.
        """
        self._block_size = aligned_chunk_size(chunk_size)
        self.chunk_size = chunk_size
        self.yield_seconds = max(0.0, yield_seconds)
        self._lock = threading.Lock()

    @property
    def block_size(self) -> int:
        """Return the effective read size used for each chunk."""
        return self._block_size

    def encode(
        self,
        source: EncodeSource,
        *,
        progress: Optional[ProgressCallback] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> str:
        """Encode ``source`` and return the complete base64 text.

        Args:
            source: Filesystem path or seekable binary stream. Paths are opened
                and closed by the encoder; streams are read from their current
                position and left open.
            progress: Optional callback receiving cumulative progress.
            cancel_event: Optional event; once set, the operation stops at the
                next chunk boundary.

        Returns:
            str: Base64 text identical to encoding the whole source at once.

        Raises:
            EncoderBusy: If this encoder already has an operation in flight.
            SourceUnreadable: If the source cannot be opened or sized.
            ReadError: If a read fails part-way through the source.
            EncodingCancelled: If ``cancel_event`` was set before completion.
            EncodingFailed: If non-empty input produced no output.
        """
        if not self._lock.acquire(blocking=False):
            raise EncoderBusy("An encode operation is already running on this encoder.")
        try:
            with _open_source(source) as (handle, total):
                LOGGER.debug("Encoding %d bytes with block size %d", total, self._block_size)
                return self._encode_stream(handle, total, progress, cancel_event)
        finally:
            self._lock.release()

    def submit(
        self,
        source: EncodeSource,
        *,
        progress: Optional[ProgressCallback] = None,
    ) -> "EncodeJob":
        """Start encoding ``source`` on a worker thread.

        Returns:
            EncodeJob: Handle used to cancel the operation or collect its result.
        """
        job = EncodeJob(self, source, progress)
        job.start()
        return job

    # Internal helpers -------------------------------------------------

    def _encode_stream(
        self,
        handle: BinaryIO,
        total: int,
        progress: Optional[ProgressCallback],
        cancel_event: Optional[threading.Event],
    ) -> str:
        _raise_if_cancelled(cancel_event)

        if total < self.chunk_size:
            data = _read_block(handle, -1, processed=0)
            result = encode(data)
            _ensure_output(data, result)
            if progress is not None:
                progress(EncodingProgress(len(data), max(total, len(data))))
            return result

        parts: list[str] = []
        processed = 0
        while True:
            block = _read_block(handle, self._block_size, processed=processed)
            if not block:
                break
            parts.append(encode(block))
            processed += len(block)
            if progress is not None:
                progress(EncodingProgress(processed, max(total, processed)))
            # A cancel after the last chunk does not discard the finished result.
            if processed < total:
                self._pause(cancel_event)

        result = "".join(parts)
        if processed and not result:
            raise EncodingFailed("Failed to encode file")
        LOGGER.debug("Encoded %d bytes into %d characters", processed, len(result))
        return result

    def _pause(self, cancel_event: Optional[threading.Event]) -> None:
        if cancel_event is None:
            if self.yield_seconds:
                time.sleep(self.yield_seconds)
            return
        if cancel_event.wait(self.yield_seconds):
            raise EncodingCancelled("Encoding cancelled.")


class EncodeJob:
    """Background encode operation started by :meth:`ChunkedEncoder.submit`."""

    def __init__(
        self,
        encoder: ChunkedEncoder,
        source: EncodeSource,
        progress: Optional[ProgressCallback] = None,
    ) -> None:
        self._encoder = encoder
        self._source = source
        self._progress = progress
        self._cancel = threading.Event()
        self._finished = threading.Event()
        self._result: Optional[str] = None
        self._error: Optional[BaseException] = None
        self._thread = threading.Thread(target=self._run, name="b64kit-encode", daemon=True)

    def start(self) -> None:
        self._thread.start()

    def cancel(self) -> None:
        """Request cancellation at the next chunk boundary."""
        self._cancel.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel.is_set()

    def done(self) -> bool:
        return self._finished.is_set()

    def result(self, timeout: Optional[float] = None) -> str:
        """Wait for the operation and return its base64 text.

        Raises:
            TimeoutError: If the job has not finished within ``timeout`` seconds.
            B64KitError: Whatever the underlying encode raised.
        """
        if not self._finished.wait(timeout):
            raise TimeoutError("Encode job did not finish in time.")
        if self._error is not None:
            raise self._error
        if self._result is None:
            raise EncodingFailed("Encode job finished without producing output.")
        return self._result

    def _run(self) -> None:
        try:
            self._result = self._encoder.encode(
                self._source,
                progress=self._progress,
                cancel_event=self._cancel,
            )
        except Exception as exc:  # surfaced through result()
            LOGGER.debug("Encode job failed: %s", exc)
            self._error = exc
        finally:
            self._finished.set()


@contextmanager
def _open_source(source: EncodeSource) -> Iterator[Tuple[BinaryIO, int]]:
    if isinstance(source, (str, os.PathLike)):
        path = Path(source)
        try:
            total = path.stat().st_size
            handle = path.open("rb")
        except OSError as exc:
            raise SourceUnreadable(f"Cannot open {path}: {exc}") from exc
        with handle:
            yield handle, total
        return

    yield source, _remaining_size(source)


def _remaining_size(stream: BinaryIO) -> int:
    try:
        start = stream.tell()
        end = stream.seek(0, os.SEEK_END)
        stream.seek(start)
    except (OSError, ValueError, AttributeError) as exc:
        raise SourceUnreadable(f"Cannot determine the size of the source stream: {exc}") from exc
    return max(0, end - start)


def _read_block(handle: BinaryIO, size: int, *, processed: int) -> bytes:
    # Short reads would break block alignment, so fill the block until EOF.
    try:
        if size < 0:
            return handle.read()
        buffer = bytearray()
        while len(buffer) < size:
            piece = handle.read(size - len(buffer))
            if not piece:
                break
            buffer.extend(piece)
        return bytes(buffer)
    except OSError as exc:
        raise ReadError(f"Read failed after {processed} bytes: {exc}") from exc


def _ensure_output(data: bytes, encoded: str) -> None:
    if data and not encoded:
        raise EncodingFailed("Failed to encode file")


def _raise_if_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise EncodingCancelled("Encoding cancelled.")


__all__ = [
    "DEFAULT_CHUNK_SIZE",
    "DEFAULT_YIELD_SECONDS",
    "ChunkedEncoder",
    "EncodeJob",
    "EncodeSource",
    "ProgressCallback",
    "aligned_chunk_size",
]
