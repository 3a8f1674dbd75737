"""
Core data models for the batch MD5 engine.

This module defines the data structures shared by the scanner,
the processing workers and the session:
- Per-file records (original / modified digests)
- Session state snapshots published to observers
- Per-file processing outcomes

All models are designed to be:
- UI-agnostic (can be used with any frontend)
- Immutable, so published snapshots can cross threads safely
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum, auto
from pathlib import Path
from typing import Optional


# Number of random bytes appended to each file per run.
DEFAULT_BYTE_COUNT = 1

# Extension allow-list used when content-type introspection is unavailable.
IMAGE_EXTENSIONS: frozenset[str] = frozenset({
    'jpg', 'jpeg', 'png', 'gif', 'bmp',
    'tiff', 'tif', 'heic', 'heif', 'webp',
})


# =============================================================================
# Enumerations
# =============================================================================

class FileFilter(Enum):
    """Which regular files a folder walk collects."""
    ALL = auto()     # Every regular file
    IMAGES = auto()  # Image content types only


class SessionPhase(Enum):
    """Lifecycle phase of a processing session."""
    IDLE = auto()
    SCANNING = auto()
    RUNNING = auto()
    CANCELLING = auto()  # Cancel requested, loop finishing the current file
    PROCESSING_FILE = auto()  # Single-file pass outside of any run
    COMPLETED = auto()
    CANCELLED = auto()


# =============================================================================
# Records
# =============================================================================

@dataclass(frozen=True)
class FileRecord:
    """
    Digest bookkeeping for one candidate file.

    `modified_digest` is set if and only if `processed` is true.
    """
    path: Path
    original_digest: str
    modified_digest: Optional[str] = None
    processed: bool = False

    def __post_init__(self) -> None:
        if self.processed != (self.modified_digest is not None):
            raise ValueError(
                f"Inconsistent record for {self.path}: processed={self.processed}, "
                f"modified_digest={self.modified_digest!r}"
            )

    @property
    def identity(self) -> str:
        """Stable per-file key (absolute path)."""
        return str(self.path)

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def changed(self) -> bool:
        """True when the file was processed and its digest moved."""
        return self.processed and self.modified_digest != self.original_digest

    def with_modified(self, digest: str) -> 'FileRecord':
        """Return a processed copy carrying the post-mutation digest."""
        return replace(self, modified_digest=digest, processed=True)


@dataclass(frozen=True)
class ProcessOutcome:
    """Result of mutating and re-hashing a single file."""
    path: Path
    success: bool
    modified_digest: Optional[str] = None
    error: Optional[str] = None


# =============================================================================
# Session State
# =============================================================================

@dataclass(frozen=True)
class SessionState:
    """
    Snapshot of a session's progress counters.

    `processed_count == success_count + fail_count` holds for every
    snapshot the session publishes.
    """
    phase: SessionPhase = SessionPhase.IDLE
    total_count: int = 0
    processed_count: int = 0
    success_count: int = 0
    fail_count: int = 0
    current_file_name: Optional[str] = None

    @property
    def running(self) -> bool:
        return self.phase == SessionPhase.RUNNING

    @property
    def busy(self) -> bool:
        """True while a scan, run or single-file pass occupies the worker."""
        return self.phase in (
            SessionPhase.SCANNING,
            SessionPhase.RUNNING,
            SessionPhase.CANCELLING,
            SessionPhase.PROCESSING_FILE,
        )

    @property
    def percent(self) -> float:
        if self.total_count == 0:
            return 0.0
        return (self.processed_count / self.total_count) * 100

    def with_outcome(self, success: bool) -> 'SessionState':
        """Return a copy with one more file counted."""
        return replace(
            self,
            processed_count=self.processed_count + 1,
            success_count=self.success_count + (1 if success else 0),
            fail_count=self.fail_count + (0 if success else 1),
        )

    def reset_counters(self) -> 'SessionState':
        return replace(
            self,
            processed_count=0,
            success_count=0,
            fail_count=0,
            current_file_name=None,
        )


@dataclass
class ScanSummary:
    """Outcome of a folder scan."""
    root_path: Path
    records: list[FileRecord] = field(default_factory=list)
    skipped: list[Path] = field(default_factory=list)  # Unreadable candidates

    @property
    def file_count(self) -> int:
        return len(self.records)
