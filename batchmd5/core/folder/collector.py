"""
Directory walker that collects candidate files.

Provides recursive traversal with:
- Hidden entry skipping
- Regular-file filtering (symlinks and directories excluded)
- Image classification by content type, with an extension fallback
- Error resilience (a bad entry never aborts the walk)
"""

from __future__ import annotations

import logging
import os
import stat
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterator, Optional

from PyQt6.QtCore import QMimeDatabase

from batchmd5.core.errors import MetadataError
from batchmd5.core.models import FileFilter, IMAGE_EXTENSIONS


@dataclass
class CollectOptions:
    """Options for collecting files."""
    file_filter: FileFilter = FileFilter.IMAGES
    include_hidden: bool = False
    image_extensions: frozenset[str] = field(default_factory=lambda: IMAGE_EXTENSIONS)

    def is_hidden(self, name: str) -> bool:
        return not self.include_hidden and name.startswith('.')


@dataclass
class EntryMetadata:
    """Attributes read for a single directory entry."""
    is_regular: bool
    content_type: Optional[str] = None
    parent_types: tuple[str, ...] = ()

    @property
    def is_image(self) -> bool:
        types = ((self.content_type,) if self.content_type else ()) + self.parent_types
        return any(t.startswith('image/') for t in types)


class FileCollector:
    """
    Collects regular files below a root directory.

    Files are returned in filesystem enumeration order, which becomes
    the processing order of a run.
    """

    def __init__(self, options: Optional[CollectOptions] = None):
        self.options = options or CollectOptions()
        self._mime_db = QMimeDatabase()
        self._cancelled = False

    def collect(
        self,
        root_path: Path | str,
        file_filter: Optional[FileFilter] = None
    ) -> list[Path]:
        """
        Walk `root_path` recursively and collect matching files.

        Args:
            root_path: Directory to walk
            file_filter: Overrides the configured filter

        Raises:
            FileNotFoundError: If the root does not exist
            NotADirectoryError: If the root is not a directory
        """
        root_path = Path(root_path).resolve()

        if not root_path.exists():
            logging.error(f"FileCollector - Root path not found: {root_path}")
            raise FileNotFoundError(f"Directory not found: {root_path}")

        if not root_path.is_dir():
            logging.error(f"FileCollector - Root path is not a directory: {root_path}")
            raise NotADirectoryError(f"Not a directory: {root_path}")

        self._cancelled = False
        file_filter = file_filter or self.options.file_filter
        results: list[Path] = []

        for path in self._iter_entries(root_path):
            if self._cancelled:
                logging.info("FileCollector - Collection cancelled")
                break

            if self._accept(path, file_filter):
                results.append(path)

        logging.debug(f"FileCollector - Collected {len(results)} files under {root_path}")
        return results

    def cancel(self) -> None:
        """Cancel an ongoing walk."""
        self._cancelled = True

    def is_image_extension(self, path: Path) -> bool:
        return path.suffix.lower().lstrip('.') in self.options.image_extensions

    def _iter_entries(self, root_path: Path) -> Iterator[Path]:
        def on_walk_error(error: OSError) -> None:
            logging.warning(f"FileCollector - Walk error at {error.filename}: {error.strerror}")

        for dirpath, dirnames, filenames in os.walk(root_path, topdown=True, onerror=on_walk_error):
            # Prune hidden directories in place to stop recursion into them
            dirnames[:] = [d for d in dirnames if not self.options.is_hidden(d)]

            for filename in filenames:
                if self.options.is_hidden(filename):
                    continue
                yield Path(dirpath) / filename

    def _accept(self, path: Path, file_filter: FileFilter) -> bool:
        try:
            metadata = self._read_metadata(path, with_content_type=file_filter == FileFilter.IMAGES)
        except MetadataError as e:
            logging.debug(f"FileCollector - {e}; falling back to path checks")
            return self._accept_fallback(path, file_filter)

        if not metadata.is_regular:
            return False
        if file_filter == FileFilter.IMAGES:
            return metadata.is_image
        return True

    def _accept_fallback(self, path: Path, file_filter: FileFilter) -> bool:
        """Decide without metadata: extension allow-list, then existence."""
        if file_filter == FileFilter.IMAGES and not self.is_image_extension(path):
            return False
        return os.path.exists(path) and not os.path.isdir(path)

    def _read_metadata(self, path: Path, with_content_type: bool = True) -> EntryMetadata:
        """
        Read file type and content type for an entry.

        Raises:
            MetadataError: If the attributes cannot be read
        """
        try:
            stat_result = path.lstat()
        except OSError as e:
            raise MetadataError(f"Cannot read attributes of {path}: {e}", path) from e

        if not stat.S_ISREG(stat_result.st_mode):
            return EntryMetadata(is_regular=False)

        if not with_content_type:
            return EntryMetadata(is_regular=True)

        mime_type = self._mime_db.mimeTypeForFile(str(path))
        if not mime_type.isValid():
            raise MetadataError(f"No content type for {path}", path)

        return EntryMetadata(
            is_regular=True,
            content_type=mime_type.name(),
            parent_types=tuple(mime_type.allAncestors()),
        )
