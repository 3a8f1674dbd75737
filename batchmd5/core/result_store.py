"""
In-memory store of per-file records.

Records keep scan discovery order and are keyed by identity for O(1)
lookup while a run updates them. Reads may come from the worker thread,
so access is guarded by a mutex.
"""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, Optional

from PyQt6.QtCore import QMutex, QMutexLocker

from batchmd5.core.models import FileRecord


class ResultStore:
    """Ordered collection of FileRecord keyed by identity."""

    def __init__(self, records: Iterable[FileRecord] = ()):
        self._mutex = QMutex()
        self._records: dict[str, FileRecord] = {}
        for record in records:
            self._records[record.identity] = record

    def __len__(self) -> int:
        with QMutexLocker(self._mutex):
            return len(self._records)

    def __iter__(self) -> Iterator[FileRecord]:
        return iter(self.snapshot())

    def __contains__(self, path: object) -> bool:
        if not isinstance(path, (str, Path)):
            return False
        with QMutexLocker(self._mutex):
            return str(path) in self._records

    def snapshot(self) -> tuple[FileRecord, ...]:
        """All records in discovery order."""
        with QMutexLocker(self._mutex):
            return tuple(self._records.values())

    def paths(self) -> list[Path]:
        with QMutexLocker(self._mutex):
            return [record.path for record in self._records.values()]

    def get(self, path: Path | str) -> Optional[FileRecord]:
        with QMutexLocker(self._mutex):
            return self._records.get(str(path))

    def replace(self, records: Iterable[FileRecord]) -> None:
        """Discard all records and load a fresh scan result."""
        fresh = {record.identity: record for record in records}
        with QMutexLocker(self._mutex):
            self._records = fresh

    def update(self, record: FileRecord) -> bool:
        """
        Replace an existing record in place.

        Returns False (and stores nothing) if the identity is unknown,
        e.g. after the store was cleared mid-run.
        """
        with QMutexLocker(self._mutex):
            if record.identity not in self._records:
                return False
            self._records[record.identity] = record
            return True

    def clear(self) -> None:
        with QMutexLocker(self._mutex):
            self._records = {}

    @property
    def processed_records(self) -> list[FileRecord]:
        return [record for record in self.snapshot() if record.processed]
