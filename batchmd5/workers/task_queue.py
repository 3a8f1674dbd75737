"""
Sequential task queue.

Executes workers one at a time, in order, on a single dedicated
background QThread. Used so that at most one scan or run touches the
filesystem at a time.
"""

from __future__ import annotations

import logging
from collections import deque
from typing import Optional

from PyQt6.QtCore import QObject, QThread, pyqtSignal, pyqtSlot, QMutex, QMutexLocker

from batchmd5.workers.base_worker import BaseWorker


class _QueueRunner(QObject):
    """Lives in the queue thread and runs workers handed to it."""

    def __init__(self, queue: 'TaskQueue'):
        super().__init__()
        self._queue = queue

    @pyqtSlot(object)
    def execute(self, worker: BaseWorker) -> None:
        if not self._queue._begin(worker):
            return
        try:
            worker.run()
        finally:
            self._queue._end(worker)


class TaskQueue(QObject):
    """
    Serial queue of workers.

    Workers are moved to the queue thread and run in FIFO order; the
    next one starts as soon as the previous `run` returns.
    """

    # Internal: hand a worker to the queue thread
    _dispatch = pyqtSignal(object)

    def __init__(self, parent: Optional[QObject] = None):
        super().__init__(parent)

        self._pending: deque[BaseWorker] = deque()
        self._current: Optional[BaseWorker] = None
        self._mutex = QMutex()

        self._thread = QThread()
        self._thread.setObjectName("batchmd5-worker")
        self._runner = _QueueRunner(self)
        self._runner.moveToThread(self._thread)
        self._dispatch.connect(self._runner.execute)
        self._thread.start()

    def enqueue_worker(self, worker: BaseWorker) -> None:
        """Add a worker to the queue."""
        if not self._thread.isRunning():
            raise RuntimeError("TaskQueue has been shut down")

        worker.moveToThread(self._thread)
        with QMutexLocker(self._mutex):
            self._pending.append(worker)

        logging.debug(f"TaskQueue - Queued {type(worker).__name__}")
        self._dispatch.emit(worker)

    def clear(self) -> None:
        """Drop pending workers; the running one is unaffected."""
        with QMutexLocker(self._mutex):
            self._pending.clear()

    def cancel_current(self) -> None:
        """Cancel the currently running worker."""
        with QMutexLocker(self._mutex):
            worker = self._current
        if worker is not None:
            worker.cancel()

    def shutdown(self, timeout_ms: int = 5000) -> bool:
        """
        Drop pending workers, cancel the current one and stop the thread.

        Returns False if the thread did not stop within the timeout.
        """
        self.clear()
        self.cancel_current()
        self._thread.quit()
        stopped = self._thread.wait(timeout_ms)
        if not stopped:
            logging.warning("TaskQueue - Worker thread did not stop in time")
        return stopped

    def _begin(self, worker: BaseWorker) -> bool:
        """Called in the queue thread; False if the worker was dropped."""
        with QMutexLocker(self._mutex):
            if worker not in self._pending:
                return False
            self._pending.remove(worker)
            self._current = worker
        logging.debug(f"TaskQueue - Running {type(worker).__name__}")
        return True

    def _end(self, worker: BaseWorker) -> None:
        with QMutexLocker(self._mutex):
            self._current = None
