"""
Mutation service that appends random bytes to files.

Handles:
- Reading the full current content
- Appending uniformly random bytes
- Plain or atomic write-back (write to temp then replace)

A plain write-back is not atomic: if it fails midway the file may be
left partially written even though the outcome is reported as a failure.
"""

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from batchmd5.core.errors import IOReadError, IOWriteError


@dataclass
class WriteResult:
    """Result of an append operation."""
    success: bool
    bytes_written: int = 0
    suffix: bytes = b""
    error: Optional[str] = None


class MutationService:
    """Service for appending random bytes to files in place."""

    def __init__(
        self,
        atomic: bool = False,
        random_bytes: Callable[[int], bytes] = os.urandom
    ):
        self.atomic = atomic
        self._random_bytes = random_bytes

    def append_random_bytes(self, path: Path | str, count: int) -> bool:
        """
        Append `count` random bytes to a file.

        Returns False without touching the file when `count <= 0`, and
        False when the read or the write fails.
        """
        return self.append(path, count).success

    def append(self, path: Path | str, count: int) -> WriteResult:
        """Append `count` random bytes and report what was written."""
        path = Path(path)

        if count <= 0:
            return WriteResult(success=False, error=f"Invalid byte count: {count}")

        try:
            content = self._read(path)
            suffix = self._random_bytes(count)
            data = content + suffix
            self._write(path, data)
        except (IOReadError, IOWriteError) as e:
            logging.warning(f"MutationService - Failed to modify {path.name}: {e}")
            return WriteResult(success=False, error=str(e))

        return WriteResult(success=True, bytes_written=len(data), suffix=suffix)

    def _read(self, path: Path) -> bytes:
        try:
            return path.read_bytes()
        except OSError as e:
            raise IOReadError(f"Cannot read {path}: {e}", path) from e

    def _write(self, path: Path, data: bytes) -> None:
        try:
            if self.atomic:
                self._write_atomic(path, data)
            else:
                path.write_bytes(data)
        except OSError as e:
            raise IOWriteError(f"Cannot write {path}: {e}", path) from e

    def _write_atomic(self, path: Path, data: bytes) -> None:
        """Write to a temporary file in the same directory, then replace."""
        fd, temp_path = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.")
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            # Keep the original permission bits on the replacement
            os.chmod(temp_path, path.stat().st_mode & 0o7777)
            os.replace(temp_path, path)
        except OSError:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
            raise
