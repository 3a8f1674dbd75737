"""
Workers for the append-and-rehash pass.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from batchmd5.core.errors import IOReadError
from batchmd5.core.models import DEFAULT_BYTE_COUNT, FileRecord, ProcessOutcome
from batchmd5.core.result_store import ResultStore
from batchmd5.services.hashing import HashingService
from batchmd5.services.mutation import MutationService
from batchmd5.workers.base_worker import BaseWorker


def mutate_and_rehash(
    path: Path,
    byte_count: int,
    hasher: HashingService,
    mutator: MutationService
) -> ProcessOutcome:
    """Append random bytes to one file and digest the result."""
    result = mutator.append(path, byte_count)
    if not result.success:
        return ProcessOutcome(path=path, success=False, error=result.error)

    try:
        digest = hasher.digest_of_file(path)
    except IOReadError as e:
        logging.warning(f"ProcessWorker - Modified {path.name} but could not re-hash it: {e}")
        return ProcessOutcome(path=path, success=False, error=str(e))

    return ProcessOutcome(path=path, success=True, modified_digest=digest)


class ProcessWorker(BaseWorker):
    """
    Worker for one run over the candidate list.

    Files are processed strictly one at a time, in candidate order.
    Cancellation is checked before each file; the file in flight
    always completes.
    """

    # Emitted before a file is touched: (file name, path)
    file_started = pyqtSignal(str, object)

    # Emitted after each counted file
    file_processed = pyqtSignal(object)  # ProcessOutcome

    def __init__(
        self,
        candidates: list[Path],
        store: ResultStore,
        byte_count: int = DEFAULT_BYTE_COUNT,
        hasher: Optional[HashingService] = None,
        mutator: Optional[MutationService] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        # Bound at run start; files added to the folder later are not picked up
        self.candidates = list(candidates)
        self.store = store
        self.byte_count = byte_count
        self.hasher = hasher or HashingService()
        self.mutator = mutator or MutationService()

    def do_work(self) -> list[ProcessOutcome]:
        """Process all candidates until done or cancelled."""
        outcomes: list[ProcessOutcome] = []
        total = len(self.candidates)

        for i, path in enumerate(self.candidates):
            if self.is_cancelled:
                logging.info(f"ProcessWorker - Cancelled after {len(outcomes)} of {total} files")
                break

            self.file_started.emit(path.name, path)
            self.report_progress(i, total, path.name)

            if self.store.get(path) is None:
                logging.debug(f"ProcessWorker - No record for {path}, skipping")
                continue

            outcome = mutate_and_rehash(path, self.byte_count, self.hasher, self.mutator)
            outcomes.append(outcome)
            self.file_processed.emit(outcome)

        return outcomes


class SingleFileWorker(BaseWorker):
    """
    Worker that hashes, mutates and re-hashes one file.

    Returns the resulting FileRecord, or None when the file cannot be
    read for its original digest.
    """

    def __init__(
        self,
        path: str | Path,
        byte_count: int = DEFAULT_BYTE_COUNT,
        hasher: Optional[HashingService] = None,
        mutator: Optional[MutationService] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.path = Path(path).resolve()
        self.byte_count = byte_count
        self.hasher = hasher or HashingService()
        self.mutator = mutator or MutationService()

    def do_work(self) -> Optional[FileRecord]:
        original = self.hasher.try_digest_of_file(self.path)
        if original is None:
            logging.warning(f"SingleFileWorker - Cannot read {self.path.name}")
            return None

        record = FileRecord(path=self.path, original_digest=original)
        outcome = mutate_and_rehash(self.path, self.byte_count, self.hasher, self.mutator)
        if outcome.success:
            record = record.with_modified(outcome.modified_digest)
        return record
