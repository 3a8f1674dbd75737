"""
Hashing service for change detection.

Digests are MD5, hex-encoded lowercase. They only detect that a file's
content changed; collision resistance is irrelevant here.
"""

from __future__ import annotations

import hashlib
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from batchmd5.core.errors import IOReadError


@dataclass
class HashResult:
    """Result of a hash operation."""
    hash_hex: str
    file_size: int


@dataclass
class HashProgress:
    """Progress information for hashing operation."""
    bytes_processed: int
    total_bytes: int
    percent: float
    file_path: Optional[Path] = None


class HashingService:
    """Service for computing content digests."""

    def __init__(self, chunk_size: int = 65536):
        self.chunk_size = chunk_size

    def hash_file(
        self,
        path: Path | str,
        progress_callback: Optional[Callable[[HashProgress], None]] = None
    ) -> HashResult:
        """
        Compute the digest of a file.

        Args:
            path: Path to the file
            progress_callback: Called with progress updates

        Returns:
            HashResult with the computed digest

        Raises:
            IOReadError: If the file cannot be read
        """
        path = Path(path)
        hasher = hashlib.md5()
        bytes_processed = 0

        try:
            file_size = path.stat().st_size

            with open(path, 'rb') as f:
                while chunk := f.read(self.chunk_size):
                    hasher.update(chunk)
                    bytes_processed += len(chunk)

                    if progress_callback:
                        progress_callback(HashProgress(
                            bytes_processed=bytes_processed,
                            total_bytes=file_size,
                            percent=(bytes_processed / file_size * 100) if file_size > 0 else 100,
                            file_path=path
                        ))
        except OSError as e:
            logging.debug(f"HashingService - Failed to read {path}: {e}")
            raise IOReadError(f"Cannot read {path}: {e}", path) from e

        return HashResult(
            hash_hex=hasher.hexdigest(),
            file_size=bytes_processed
        )

    def digest_of_file(self, path: Path | str) -> str:
        """Hex digest of a file's full content. Raises IOReadError."""
        return self.hash_file(path).hash_hex

    def digest_of_bytes(self, data: bytes) -> str:
        """Hex digest of an in-memory buffer."""
        return hashlib.md5(data).hexdigest()

    def try_digest_of_file(self, path: Path | str) -> Optional[str]:
        """Digest of a file, or None when it cannot be read."""
        try:
            return self.digest_of_file(path)
        except IOReadError:
            return None
