"""Tests for the chunked streaming encoder."""

import base64
import io
import os
import threading
from pathlib import Path
from typing import Any, List

import pytest

from b64kit.codec import ChunkedEncoder, EncodeJob, EncodingProgress, aligned_chunk_size
from b64kit.errors import (
    EncoderBusy,
    EncodingCancelled,
    EncodingFailed,
    ReadError,
    SourceUnreadable,
)


def _write(path: Path, size: int) -> bytes:
    data = os.urandom(size)
    path.write_bytes(data)
    return data


@pytest.mark.parametrize(
    ("requested", "expected"),
    [(1, 3), (3, 3), (4, 3), (10, 9), (1_048_576, 1_048_575)],
)
def test_aligned_chunk_size_rounds_down_to_multiple_of_three(requested: int, expected: int) -> None:
    assert aligned_chunk_size(requested) == expected


@pytest.mark.parametrize("requested", [0, -5])
def test_aligned_chunk_size_rejects_non_positive(requested: int) -> None:
    with pytest.raises(ValueError):
        aligned_chunk_size(requested)


@pytest.mark.parametrize("chunk_size", [3, 4, 7, 64, 1000])
def test_chunked_output_matches_whole_buffer_encode(tmp_path: Path, chunk_size: int) -> None:
    source = tmp_path / "payload.bin"
    data = _write(source, 1000)

    encoder = ChunkedEncoder(chunk_size, yield_seconds=0)

    assert encoder.encode(source) == base64.b64encode(data).decode("ascii")


def test_progress_is_cumulative_and_ends_at_total(tmp_path: Path) -> None:
    source = tmp_path / "payload.bin"
    data = _write(source, 1024)
    updates: List[EncodingProgress] = []

    ChunkedEncoder(100, yield_seconds=0).encode(source, progress=updates.append)

    processed = [update.bytes_processed for update in updates]
    assert processed == sorted(processed)
    assert len(updates) == 11
    assert updates[-1].bytes_processed == len(data)
    assert all(update.total_bytes == len(data) for update in updates)
    assert updates[-1].complete
    assert updates[-1].fraction == pytest.approx(1.0)


def test_small_source_is_encoded_in_one_pass(tmp_path: Path) -> None:
    source = tmp_path / "small.txt"
    source.write_bytes(b"hello")
    updates: List[EncodingProgress] = []

    result = ChunkedEncoder(1024, yield_seconds=0).encode(source, progress=updates.append)

    assert result == "aGVsbG8="
    assert updates == [EncodingProgress(5, 5)]


def test_empty_source_encodes_to_empty_text(tmp_path: Path) -> None:
    source = tmp_path / "empty.bin"
    source.write_bytes(b"")
    updates: List[EncodingProgress] = []

    assert ChunkedEncoder(yield_seconds=0).encode(source, progress=updates.append) == ""
    assert updates == [EncodingProgress(0, 0)]


def test_stream_sources_are_read_from_current_position() -> None:
    stream = io.BytesIO(b"skip-hello world")
    stream.seek(5)

    result = ChunkedEncoder(4, yield_seconds=0).encode(stream)

    assert result == base64.b64encode(b"hello world").decode("ascii")
    assert not stream.closed


def test_missing_path_is_unreadable(tmp_path: Path) -> None:
    with pytest.raises(SourceUnreadable):
        ChunkedEncoder(yield_seconds=0).encode(tmp_path / "missing.bin")


def test_directory_is_unreadable(tmp_path: Path) -> None:
    with pytest.raises(SourceUnreadable):
        ChunkedEncoder(yield_seconds=0).encode(tmp_path)


class _FailingStream(io.BytesIO):
    def __init__(self, data: bytes, fail_after: int) -> None:
        super().__init__(data)
        self._reads = 0
        self._fail_after = fail_after

    def read(self, size: int = -1) -> bytes:  # type: ignore[override]
        self._reads += 1
        if self._reads > self._fail_after:
            raise OSError("disk went away")
        return super().read(size)


def test_mid_stream_failure_raises_read_error() -> None:
    stream = _FailingStream(b"x" * 30, fail_after=2)

    with pytest.raises(ReadError) as excinfo:
        ChunkedEncoder(3, yield_seconds=0).encode(stream)

    assert "after 6 bytes" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, OSError)


def test_cancel_event_stops_at_next_chunk_boundary(tmp_path: Path) -> None:
    source = tmp_path / "payload.bin"
    _write(source, 300)
    cancel = threading.Event()
    updates: List[EncodingProgress] = []

    def on_progress(update: EncodingProgress) -> None:
        updates.append(update)
        cancel.set()

    with pytest.raises(EncodingCancelled):
        ChunkedEncoder(30, yield_seconds=0).encode(
            source, progress=on_progress, cancel_event=cancel
        )

    assert len(updates) == 1


def test_pre_set_cancel_event_cancels_before_reading(tmp_path: Path) -> None:
    source = tmp_path / "payload.bin"
    _write(source, 10)
    cancel = threading.Event()
    cancel.set()
    updates: List[EncodingProgress] = []

    with pytest.raises(EncodingCancelled):
        ChunkedEncoder(yield_seconds=0).encode(source, progress=updates.append, cancel_event=cancel)

    assert updates == []


def test_submitted_job_returns_result(tmp_path: Path) -> None:
    source = tmp_path / "payload.bin"
    data = _write(source, 500)

    job = ChunkedEncoder(64, yield_seconds=0).submit(source)

    assert job.result(timeout=5) == base64.b64encode(data).decode("ascii")
    assert job.done()
    assert not job.cancelled


def test_submitted_job_surfaces_errors(tmp_path: Path) -> None:
    job = ChunkedEncoder(yield_seconds=0).submit(tmp_path / "missing.bin")

    with pytest.raises(SourceUnreadable):
        job.result(timeout=5)


def test_cancelling_a_job_raises_cancelled(tmp_path: Path) -> None:
    source = tmp_path / "payload.bin"
    _write(source, 3000)
    first_chunk = threading.Event()
    resume = threading.Event()

    def on_progress(update: EncodingProgress) -> None:
        first_chunk.set()
        resume.wait(5)

    job = ChunkedEncoder(30, yield_seconds=0).submit(source, progress=on_progress)
    assert first_chunk.wait(5)
    job.cancel()
    resume.set()

    with pytest.raises(EncodingCancelled):
        job.result(timeout=5)
    assert job.cancelled


def test_second_concurrent_encode_is_rejected(tmp_path: Path) -> None:
    source = tmp_path / "payload.bin"
    data = _write(source, 300)
    started = threading.Event()
    release = threading.Event()

    def on_progress(update: EncodingProgress) -> None:
        started.set()
        release.wait(5)

    encoder = ChunkedEncoder(30, yield_seconds=0)
    job = encoder.submit(source, progress=on_progress)
    assert started.wait(5)

    with pytest.raises(EncoderBusy):
        encoder.encode(source)

    release.set()
    assert job.result(timeout=5) == base64.b64encode(data).decode("ascii")
    assert encoder.encode(source) == base64.b64encode(data).decode("ascii")


def test_cancelled_path_source_closes_its_handle(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    source = tmp_path / "payload.bin"
    _write(source, 300)
    handles: List[Any] = []
    real_open = Path.open

    def _tracking_open(self: Path, *args: Any, **kwargs: Any) -> Any:
        handle = real_open(self, *args, **kwargs)
        handles.append(handle)
        return handle

    monkeypatch.setattr(Path, "open", _tracking_open)
    cancel = threading.Event()

    with pytest.raises(EncodingCancelled):
        ChunkedEncoder(30, yield_seconds=0).encode(
            source, progress=lambda update: cancel.set(), cancel_event=cancel
        )

    assert handles
    assert all(handle.closed for handle in handles)


def test_cancel_after_final_chunk_keeps_result(tmp_path: Path) -> None:
    source = tmp_path / "payload.bin"
    data = _write(source, 90)
    cancel = threading.Event()

    def on_progress(update: EncodingProgress) -> None:
        if update.complete:
            cancel.set()

    result = ChunkedEncoder(30, yield_seconds=0).encode(
        source, progress=on_progress, cancel_event=cancel
    )

    assert result == base64.b64encode(data).decode("ascii")
    assert cancel.is_set()


class _SilentEncoder:
    def encode(self, source: Any, **_: Any) -> None:
        return None


def test_job_without_output_raises_encoding_failed() -> None:
    job = EncodeJob(_SilentEncoder(), io.BytesIO(b"abc"))  # type: ignore[arg-type]
    job.start()

    with pytest.raises(EncodingFailed):
        job.result(timeout=5)
