"""
Exception types raised by the engine.

Per-file errors are contained by the services that raise them and
downgrade only that file's outcome; none of them abort a scan or a run.
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional


class BatchMD5Error(Exception):
    """Base class for engine errors."""

    def __init__(self, message: str, path: Optional[Path] = None):
        super().__init__(message)
        self.path = path


class IOReadError(BatchMD5Error):
    """File could not be read for hashing or mutation."""
    pass


class IOWriteError(BatchMD5Error):
    """Mutated content could not be written back."""
    pass


class MetadataError(BatchMD5Error):
    """Filesystem attribute lookup failed during a scan."""
    pass


class SessionBusyError(BatchMD5Error):
    """A scan or run was requested while another is still in flight."""
    pass
