"""
Background workers for non-blocking operations.

Provides QThread-based workers for:
- Folder scanning and original digests
- The append-and-rehash run
- Single-file processing

All workers use Qt signals for thread-safe communication
with the observer thread.
"""

from batchmd5.workers.base_worker import (
    BaseWorker,
    WorkerSignals,
    WorkerState,
    ProgressInfo,
)
from batchmd5.workers.scan_worker import (
    FolderScanWorker,
    scan_folder,
)
from batchmd5.workers.process_worker import (
    ProcessWorker,
    SingleFileWorker,
    mutate_and_rehash,
)
from batchmd5.workers.task_queue import (
    TaskQueue,
)

__all__ = [
    # Base
    'BaseWorker',
    'WorkerSignals',
    'WorkerState',
    'ProgressInfo',
    # Scan
    'FolderScanWorker',
    'scan_folder',
    # Process
    'ProcessWorker',
    'SingleFileWorker',
    'mutate_and_rehash',
    # Queue
    'TaskQueue',
]
