"""
Folder traversal.

Provides:
- FileCollector: Recursive collection of candidate files
- CollectOptions: Hidden-entry and filter options
"""

from batchmd5.core.folder.collector import (
    FileCollector,
    CollectOptions,
    EntryMetadata,
)

__all__ = [
    'FileCollector',
    'CollectOptions',
    'EntryMetadata',
]
