"""
Base worker classes for background operations.

Provides common functionality for all workers:
- Progress reporting
- Cooperative cancellation
- Error handling
- State management
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum, auto
from typing import Any, Optional

from PyQt6.QtCore import QObject, pyqtSignal, pyqtSlot, QMutex, QMutexLocker


class WorkerState(Enum):
    """State of a worker."""
    PENDING = auto()
    RUNNING = auto()
    CANCELLING = auto()
    CANCELLED = auto()
    COMPLETED = auto()
    FAILED = auto()


@dataclass
class ProgressInfo:
    """Progress information from a worker."""
    current: int
    total: int
    message: str = ""
    detail: str = ""

    @property
    def percent(self) -> float:
        if self.total == 0:
            return 0.0
        return (self.current / self.total) * 100


class WorkerSignals(QObject):
    """
    Signals for worker communication.

    Emitted from the worker thread and delivered, in emission order,
    to receivers living in the observer's thread.
    """
    # Progress update: (current, total, message)
    progress = pyqtSignal(int, int, str)

    # Detailed progress: ProgressInfo object
    progress_detail = pyqtSignal(object)

    # Status message
    status = pyqtSignal(str)

    # Worker started
    started = pyqtSignal()

    # Worker finished successfully with result
    finished = pyqtSignal(object)

    # Worker failed with error
    error = pyqtSignal(str, str)  # (error_type, message)

    # Worker was cancelled, with its partial result
    cancelled = pyqtSignal(object)


class WorkerMeta(type(QObject), type(ABC)):
    pass


class BaseWorker(QObject, ABC, metaclass=WorkerMeta):
    """
    Base class for workers that run in a QThread.

    Subclass and implement `do_work`. The worker checks `is_cancelled`
    at its own safe points; nothing is interrupted mid-operation.
    """

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)
        self.signals = WorkerSignals()
        self._state = WorkerState.PENDING
        self._cancelled = False
        self._mutex = QMutex()

    @property
    def state(self) -> WorkerState:
        """Current worker state."""
        with QMutexLocker(self._mutex):
            return self._state

    @state.setter
    def state(self, value: WorkerState) -> None:
        with QMutexLocker(self._mutex):
            self._state = value

    @property
    def is_cancelled(self) -> bool:
        """Check if cancellation was requested."""
        with QMutexLocker(self._mutex):
            return self._cancelled

    def cancel(self) -> None:
        """Request cancellation."""
        with QMutexLocker(self._mutex):
            self._cancelled = True
            if self._state == WorkerState.RUNNING:
                self._state = WorkerState.CANCELLING

    @pyqtSlot()
    def run(self) -> None:
        """
        Main worker execution method.

        Subclasses should not override this directly,
        instead override `do_work`.
        """
        self.state = WorkerState.RUNNING
        self.signals.started.emit()

        try:
            result = self.do_work()
        except Exception as e:
            logging.exception(f"{type(self).__name__} - Worker failed")
            self.state = WorkerState.FAILED
            self.signals.error.emit(type(e).__name__, str(e))
            return

        if self.is_cancelled:
            self.state = WorkerState.CANCELLED
            self.signals.cancelled.emit(result)
        else:
            self.state = WorkerState.COMPLETED
            self.signals.finished.emit(result)

    @abstractmethod
    def do_work(self) -> Any:
        """
        Perform the actual work.

        Should check `is_cancelled` periodically and return early if True.

        Returns:
            The result of the work.
        """
        pass

    def report_progress(
        self,
        current: int,
        total: int,
        message: str = ""
    ) -> None:
        """Report progress to the observer thread."""
        self.signals.progress.emit(current, total, message)

    def report_progress_detail(self, info: ProgressInfo) -> None:
        """Report detailed progress."""
        self.signals.progress_detail.emit(info)

    def report_status(self, message: str) -> None:
        """Report a status message."""
        self.signals.status.emit(message)

