"""
Processing session: the engine's entry point for a presentation layer.

The session owns the candidate records and the progress counters.
Workers run on a serial background queue and report back through
queued signals, so every state mutation happens on the session's own
thread, in the order the worker produced it. Observers receive
immutable snapshots through the session's signals, or poll them.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot

from batchmd5.core.errors import SessionBusyError
from batchmd5.core.folder.collector import CollectOptions, FileCollector
from batchmd5.core.models import (
    DEFAULT_BYTE_COUNT,
    FileRecord,
    ProcessOutcome,
    ScanSummary,
    SessionPhase,
    SessionState,
)
from batchmd5.core.result_store import ResultStore
from batchmd5.services.hashing import HashingService
from batchmd5.services.mutation import MutationService
from batchmd5.services.settings import EngineSettings
from batchmd5.workers.base_worker import BaseWorker
from batchmd5.workers.process_worker import ProcessWorker, SingleFileWorker
from batchmd5.workers.scan_worker import FolderScanWorker
from batchmd5.workers.task_queue import TaskQueue


class ProcessingSession(QObject):
    """
    Scan a folder, then append random bytes to every candidate.

    Usage:
        session = ProcessingSession()
        session.scan_finished.connect(on_scanned)
        session.scan_folder(folder)
        ...
        total = session.start_processing()
    """

    # Every published state snapshot
    state_changed = pyqtSignal(object)  # SessionState

    # Whole record list replaced (scan or clear)
    records_changed = pyqtSignal(object)  # tuple[FileRecord, ...]

    # One record gained its modified digest
    record_updated = pyqtSignal(object)  # FileRecord

    scan_finished = pyqtSignal(object)  # tuple[FileRecord, ...]
    run_finished = pyqtSignal(object)  # SessionState
    single_file_processed = pyqtSignal(object)  # FileRecord | None

    # Unexpected worker failure: (error_type, message)
    error = pyqtSignal(str, str)

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        hasher: Optional[HashingService] = None,
        mutator: Optional[MutationService] = None,
        collector: Optional[FileCollector] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.settings = settings or EngineSettings()
        self.hasher = hasher or HashingService(chunk_size=self.settings.chunk_size)
        self.mutator = mutator or MutationService(atomic=self.settings.atomic_writes)
        self.collector = collector or FileCollector(CollectOptions(
            file_filter=self.settings.file_filter,
            include_hidden=self.settings.include_hidden,
            image_extensions=self.settings.image_extensions,
        ))

        self._store = ResultStore()
        self._state = SessionState()
        self._queue = TaskQueue(self)
        self._active: Optional[BaseWorker] = None
        self._resume_phase = SessionPhase.IDLE
        self.current_record: Optional[FileRecord] = None

    # =========================================================================
    # Observable state
    # =========================================================================

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def records(self) -> tuple[FileRecord, ...]:
        return self._store.snapshot()

    @property
    def running(self) -> bool:
        return self._state.running

    @property
    def busy(self) -> bool:
        return self._state.busy

    @property
    def processed_count(self) -> int:
        return self._state.processed_count

    @property
    def success_count(self) -> int:
        return self._state.success_count

    @property
    def fail_count(self) -> int:
        return self._state.fail_count

    @property
    def current_file_name(self) -> Optional[str]:
        return self._state.current_file_name

    # =========================================================================
    # Entry points
    # =========================================================================

    def scan_folder(self, path: str | Path) -> None:
        """
        Scan `path` for image files and compute their original digests.

        The result replaces the current records when the scan finishes
        and is delivered through `scan_finished`.

        Raises:
            SessionBusyError: If a scan, run or single-file pass is in flight
        """
        self._ensure_idle("scan")

        worker = FolderScanWorker(
            path,
            collector=self.collector,
            hasher=self.hasher,
            file_filter=self.settings.file_filter,
        )
        worker.signals.finished.connect(self._on_scan_finished)
        worker.signals.cancelled.connect(self._on_scan_cancelled)
        worker.signals.error.connect(self._on_worker_error)

        logging.info(f"ProcessingSession - Scanning {path}")
        self._set_state(replace(self._state, phase=SessionPhase.SCANNING))
        self._start(worker)

    def start_processing(self, byte_count: int = DEFAULT_BYTE_COUNT) -> int:
        """
        Start a run over the current records.

        Counters are reset and the candidate list is bound now. Returns
        the number of candidates immediately; the run itself proceeds
        in the background.

        Raises:
            SessionBusyError: If a scan, run or single-file pass is in flight
        """
        self._ensure_idle("run")

        candidates = self._store.paths()
        total = len(candidates)
        state = replace(self._state.reset_counters(), total_count=total)

        if total == 0:
            logging.info("ProcessingSession - Nothing to process")
            self._set_state(replace(state, phase=SessionPhase.COMPLETED))
            self.run_finished.emit(self._state)
            return 0

        worker = ProcessWorker(
            candidates,
            self._store,
            byte_count=byte_count,
            hasher=self.hasher,
            mutator=self.mutator,
        )
        worker.file_started.connect(self._on_file_started)
        worker.file_processed.connect(self._on_file_processed)
        worker.signals.finished.connect(self._on_run_finished)
        worker.signals.cancelled.connect(self._on_run_cancelled)
        worker.signals.error.connect(self._on_worker_error)

        logging.info(f"ProcessingSession - Starting run over {total} files ({byte_count} byte(s) each)")
        self._set_state(replace(state, phase=SessionPhase.RUNNING))
        self._start(worker)
        return total

    def process_single_file(self, path: str | Path, byte_count: int = DEFAULT_BYTE_COUNT) -> None:
        """
        Hash, mutate and re-hash a single file outside of any run.

        The resulting record (None if unreadable) is delivered through
        `single_file_processed`. Records and counters are not touched; the
        session is busy until the file is done, then returns to its
        previous phase.

        Raises:
            SessionBusyError: If a scan, run or single-file pass is in flight
        """
        self._ensure_idle("single-file run")

        worker = SingleFileWorker(path, byte_count=byte_count, hasher=self.hasher, mutator=self.mutator)
        worker.signals.finished.connect(self._on_single_file_finished)
        worker.signals.cancelled.connect(self._on_single_file_finished)
        worker.signals.error.connect(self._on_worker_error)

        self._resume_phase = self._state.phase
        self._set_state(replace(self._state, phase=SessionPhase.PROCESSING_FILE))
        self._start(worker)

    def request_cancel(self) -> None:
        """
        Ask the active scan or run to stop.

        The worker stops at its next file boundary; the file in flight
        completes. `running` reads false immediately while `busy` stays
        true until the worker has actually stopped. A single-file pass is
        not cancellable.
        """
        if self._state.phase not in (SessionPhase.SCANNING, SessionPhase.RUNNING):
            return

        logging.info("ProcessingSession - Cancellation requested")
        if self._active is not None:
            self._active.cancel()
        self._set_state(replace(
            self._state,
            phase=SessionPhase.CANCELLING,
            current_file_name=None,
        ))

    def reset_counters(self) -> None:
        """Zero the counters; records and candidates are kept."""
        self._set_state(self._state.reset_counters())

    def clear_all(self) -> None:
        """
        Discard every record, and with them the candidate list.

        A run already in flight keeps the candidates it bound at start,
        so its total is left alone.
        """
        self._store.clear()
        self.current_record = None
        if not self._state.busy:
            self._set_state(replace(self._state, total_count=0))
        self.records_changed.emit(())

    def shutdown(self, timeout_ms: int = 5000) -> bool:
        """Cancel outstanding work and wait for the worker thread."""
        return self._queue.shutdown(timeout_ms)

    # =========================================================================
    # Worker callbacks (session thread)
    #
    # Each callback only acts on signals from the active worker.
    # =========================================================================

    @pyqtSlot(object)
    def _on_scan_finished(self, summary: ScanSummary) -> None:
        if not self._release():
            return
        self._store.replace(summary.records)
        records = self._store.snapshot()

        self._set_state(replace(
            self._state,
            phase=SessionPhase.IDLE,
            total_count=len(records),
            current_file_name=None,
        ))
        self.records_changed.emit(records)
        self.scan_finished.emit(records)

    @pyqtSlot(object)
    def _on_scan_cancelled(self, summary: Optional[ScanSummary]) -> None:
        if not self._release():
            return
        # A cancelled scan leaves the previous records in place
        logging.info("ProcessingSession - Scan cancelled")
        self._set_state(replace(self._state, phase=SessionPhase.IDLE, current_file_name=None))

    @pyqtSlot(str, object)
    def _on_file_started(self, name: str, path: Path) -> None:
        # Once cancel is requested the name stays cleared
        if self._state.phase != SessionPhase.RUNNING or not self._from_active():
            return
        self._set_state(replace(self._state, current_file_name=name))

    @pyqtSlot(object)
    def _on_file_processed(self, outcome: ProcessOutcome) -> None:
        if not self._from_active():
            return
        state = self._state.with_outcome(outcome.success)

        if outcome.success:
            record = self._store.get(outcome.path)
            if record is not None:
                updated = record.with_modified(outcome.modified_digest)
                self._store.update(updated)
                self.record_updated.emit(updated)

        self._set_state(state)

    @pyqtSlot(object)
    def _on_run_finished(self, outcomes: list[ProcessOutcome]) -> None:
        if self._release():
            self._finish_run(SessionPhase.COMPLETED)

    @pyqtSlot(object)
    def _on_run_cancelled(self, outcomes: list[ProcessOutcome]) -> None:
        if self._release():
            self._finish_run(SessionPhase.CANCELLED)

    @pyqtSlot(object)
    def _on_single_file_finished(self, record: Optional[FileRecord]) -> None:
        if not self._release():
            return
        self.current_record = record
        self._set_state(replace(self._state, phase=self._resume_phase))
        self.single_file_processed.emit(record)

    @pyqtSlot(str, str)
    def _on_worker_error(self, error_type: str, message: str) -> None:
        logging.error(f"ProcessingSession - Worker failed: {error_type}: {message}")
        if self._release():
            if self._state.phase == SessionPhase.PROCESSING_FILE:
                phase = self._resume_phase
            else:
                phase = SessionPhase.IDLE
            self._set_state(replace(self._state, phase=phase, current_file_name=None))
        self.error.emit(error_type, message)

    # =========================================================================
    # Helpers
    # =========================================================================

    def _finish_run(self, phase: SessionPhase) -> None:
        self._set_state(replace(self._state, phase=phase, current_file_name=None))
        state = self._state
        logging.info(
            f"ProcessingSession - Run {phase.name.lower()}: {state.processed_count}/{state.total_count} "
            f"processed, {state.success_count} succeeded, {state.fail_count} failed"
        )
        self.run_finished.emit(state)

    def _start(self, worker: BaseWorker) -> None:
        self._active = worker
        self._queue.enqueue_worker(worker)

    def _from_active(self) -> bool:
        """True when the signal being handled was sent by the active worker."""
        worker = self._active
        return worker is not None and self.sender() in (worker, worker.signals)

    def _release(self) -> bool:
        """Drop the active worker if it sent the current signal."""
        if not self._from_active():
            logging.debug("ProcessingSession - Ignoring signal from a stale worker")
            return False
        self._active = None
        return True

    def _ensure_idle(self, operation: str) -> None:
        if self._state.busy:
            raise SessionBusyError(
                f"Cannot start {operation}: session is {self._state.phase.name.lower()}"
            )

    def _set_state(self, state: SessionState) -> None:
        self._state = state
        self.state_changed.emit(state)
