"""
Worker for folder scanning.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from PyQt6.QtCore import QObject, pyqtSignal

from batchmd5.core.errors import IOReadError
from batchmd5.core.folder.collector import FileCollector
from batchmd5.core.models import FileFilter, FileRecord, ScanSummary
from batchmd5.services.hashing import HashingService
from batchmd5.workers.base_worker import BaseWorker, ProgressInfo


def scan_folder(
    root_path: Path | str,
    collector: FileCollector,
    hasher: HashingService,
    file_filter: FileFilter = FileFilter.IMAGES,
    worker: Optional['FolderScanWorker'] = None
) -> ScanSummary:
    """
    Collect files under `root_path` and compute their original digests.

    Files whose digest cannot be computed are left out of the records.
    """
    root_path = Path(root_path).resolve()
    paths = collector.collect(root_path, file_filter)
    summary = ScanSummary(root_path=root_path)

    for i, path in enumerate(paths):
        if worker is not None:
            if worker.is_cancelled:
                break
            worker.report_progress_detail(ProgressInfo(
                current=i,
                total=len(paths),
                message=f"Hashing {path.name}",
                detail=str(path)
            ))

        try:
            digest = hasher.digest_of_file(path)
        except IOReadError as e:
            logging.warning(f"FolderScanWorker - Skipping unreadable file {path.name}: {e}")
            summary.skipped.append(path)
            continue

        record = FileRecord(path=path, original_digest=digest)
        summary.records.append(record)
        if worker is not None:
            worker.record_found.emit(record)

    logging.info(
        f"FolderScanWorker - Scanned {root_path}: {summary.file_count} files, "
        f"{len(summary.skipped)} unreadable"
    )
    return summary


class FolderScanWorker(BaseWorker):
    """
    Worker for scanning a folder and hashing its candidate files.

    Reports progress as files are hashed.
    """

    # Signal emitted for each record found (for live updates)
    record_found = pyqtSignal(object)  # FileRecord

    def __init__(
        self,
        path: str | Path,
        collector: Optional[FileCollector] = None,
        hasher: Optional[HashingService] = None,
        file_filter: FileFilter = FileFilter.IMAGES,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.path = Path(path)
        self.collector = collector or FileCollector()
        self.hasher = hasher or HashingService()
        self.file_filter = file_filter

    def do_work(self) -> ScanSummary:
        """Perform the scan."""
        self.report_status(f"Scanning {self.path.name}...")
        return scan_folder(self.path, self.collector, self.hasher, self.file_filter, worker=self)

    def cancel(self) -> None:
        """Cancel the scan."""
        super().cancel()
        self.collector.cancel()
