"""Persistent recent-files history."""

from __future__ import annotations

import json
import logging
import threading
from pathlib import Path
from typing import List

from pydantic import TypeAdapter, ValidationError

from b64kit.detection.models import FileDescriptor

from .errors import HistoryError

LOGGER = logging.getLogger(__name__)

DEFAULT_HISTORY_PATH = Path("~/.b64kit/recent.json")
DEFAULT_MAX_ENTRIES = 10

_ENTRIES = TypeAdapter(List[FileDescriptor])


class RecentFilesStore:
    """Most-recent-first list of converted files, persisted as JSON.

    The file is read once when the store is created and rewritten after every
    mutation. Adding beyond ``max_entries`` evicts the oldest entries.
    """

    def __init__(
        self,
        path: Path = DEFAULT_HISTORY_PATH,
        *,
        max_entries: int = DEFAULT_MAX_ENTRIES,
        reset_on_error: bool = False,
    ) -> None:
        """Load the store from ``path``.

        Args:
            path: JSON file backing the store. It need not exist yet.
            max_entries: Number of entries retained.
            reset_on_error: Start empty instead of raising when the stored data
                cannot be read. The file is replaced on the next mutation.

        Raises:
            ValueError: If ``max_entries`` is less than one.
            HistoryError: If the stored data cannot be parsed and
                ``reset_on_error`` is False.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1.")
        self._path = path.expanduser()
        self._max_entries = max_entries
        self._lock = threading.Lock()
        try:
            self._entries: List[FileDescriptor] = self._load()
        except HistoryError as exc:
            if not reset_on_error:
                raise
            LOGGER.warning("Discarding unreadable recent files: %s", exc)
            self._entries = []

    @property
    def path(self) -> Path:
        return self._path

    @property
    def max_entries(self) -> int:
        return self._max_entries

    def add(self, descriptor: FileDescriptor) -> None:
        """Insert ``descriptor`` at the front and persist the store.

        Raises:
            HistoryError: If the store cannot be written.
        """
        with self._lock:
            self._entries.insert(0, descriptor)
            del self._entries[self._max_entries :]
            self._save()
        LOGGER.debug("Recorded %s in recent files", descriptor.name)

    def list(self) -> List[FileDescriptor]:
        """Return entries, most recent first."""
        with self._lock:
            return [entry.model_copy() for entry in self._entries]

    def clear(self) -> None:
        """Remove every entry and persist the empty store."""
        with self._lock:
            self._entries.clear()
            self._save()

    def __len__(self) -> int:
        return len(self._entries)

    def _load(self) -> List[FileDescriptor]:
        if not self._path.exists():
            return []
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
            entries = _ENTRIES.validate_python(data)
        except (OSError, json.JSONDecodeError, ValidationError) as exc:
            raise HistoryError(f"Invalid recent files data at {self._path}: {exc}") from exc
        return entries[: self._max_entries]

    def _save(self) -> None:
        payload = _ENTRIES.dump_python(self._entries, mode="json")
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        except OSError as exc:
            raise HistoryError(f"Could not write recent files to {self._path}: {exc}") from exc


__all__ = [
    "DEFAULT_HISTORY_PATH",
    "DEFAULT_MAX_ENTRIES",
    "HistoryError",
    "RecentFilesStore",
]
