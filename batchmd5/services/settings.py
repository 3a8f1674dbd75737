"""
Engine settings.

Settings live for the process lifetime only; defaults can be overridden
from environment variables. Nothing is read from or written to disk.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Optional

from batchmd5.core.models import FileFilter, IMAGE_EXTENSIONS


_TRUE_VALUES = {'1', 'true', 'yes', 'on'}
_FALSE_VALUES = {'0', 'false', 'no', 'off', ''}

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL')


@dataclass
class EngineSettings:
    """Tunables for scanning, hashing and mutation."""
    chunk_size: int = 65536
    include_hidden: bool = False
    file_filter: FileFilter = FileFilter.IMAGES
    image_extensions: frozenset[str] = field(default_factory=lambda: IMAGE_EXTENSIONS)
    atomic_writes: bool = False
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, environ: Optional[dict[str, str]] = None) -> 'EngineSettings':
        """
        Build settings from BATCHMD5_* environment variables.

        Recognised: BATCHMD5_LOG_LEVEL, BATCHMD5_ATOMIC_WRITES,
        BATCHMD5_INCLUDE_HIDDEN, BATCHMD5_CHUNK_SIZE.

        Raises:
            ValueError: If a variable holds an invalid value
        """
        env = os.environ if environ is None else environ
        settings = cls()

        level = env.get('BATCHMD5_LOG_LEVEL')
        if level is not None:
            level = level.strip().upper()
            if level not in LOG_LEVELS:
                raise ValueError(f"BATCHMD5_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {level!r}")
            settings.log_level = level

        settings.atomic_writes = _get_bool(env, 'BATCHMD5_ATOMIC_WRITES', settings.atomic_writes)
        settings.include_hidden = _get_bool(env, 'BATCHMD5_INCLUDE_HIDDEN', settings.include_hidden)

        chunk = env.get('BATCHMD5_CHUNK_SIZE')
        if chunk is not None:
            try:
                settings.chunk_size = int(chunk)
            except ValueError:
                raise ValueError(f"BATCHMD5_CHUNK_SIZE must be an integer, got {chunk!r}") from None
            if settings.chunk_size <= 0:
                raise ValueError(f"BATCHMD5_CHUNK_SIZE must be positive, got {settings.chunk_size}")

        logging.debug(f"EngineSettings - Loaded {settings}")
        return settings


def _get_bool(env, name: str, default: bool) -> bool:
    raw = env.get(name)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean (1/0, true/false, yes/no, on/off), got {raw!r}")
