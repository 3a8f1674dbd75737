"""Shared test fixtures for batchmd5 tests."""

from __future__ import annotations

import sys
import threading
from pathlib import Path
from typing import Any, Generator, Optional

import pytest
from PyQt6.QtCore import QCoreApplication, QEventLoop, QTimer

from batchmd5.services.mutation import MutationService
from batchmd5.session import ProcessingSession


PNG_BYTES = b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR" + b"\x00" * 17
JPEG_BYTES = b"\xff\xd8\xff\xe0\x00\x10JFIF\x00\x01\x01\x00\x00\x01\x00\x01\x00\x00\xff\xd9"
GIF_BYTES = b"GIF89a\x01\x00\x01\x00\x00\x00\x00;"


class SignalWaiter:
    """Collect emissions of a signal and spin an event loop until one arrives.

    Connect before triggering the work, then call wait().
    """

    def __init__(self, signal):
        self.signal = signal
        self.emissions: list[tuple[Any, ...]] = []
        self._loop: Optional[QEventLoop] = None
        signal.connect(self._on_emit)

    def _on_emit(self, *args) -> None:
        self.emissions.append(args)
        if self._loop is not None:
            self._loop.quit()

    def wait(self, timeout_ms: int = 5000) -> tuple[Any, ...]:
        if not self.emissions:
            self._loop = QEventLoop()
            QTimer.singleShot(timeout_ms, self._loop.quit)
            self._loop.exec()
            self._loop = None
        assert self.emissions, "signal was not emitted before the timeout"
        return self.emissions[-1]


class FixedBytesMutator(MutationService):
    """Mutator that appends a known byte pattern."""

    def __init__(self, byte: int = 0x2A, **kwargs):
        super().__init__(random_bytes=lambda n: bytes([byte]) * n, **kwargs)


class BlockingMutator(FixedBytesMutator):
    """Mutator that holds appends until released; rearm() holds them again."""

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.started = threading.Event()
        self.release = threading.Event()

    def append(self, path, count):
        self.started.set()
        self.release.wait(5)
        return super().append(path, count)

    def rearm(self) -> None:
        self.started.clear()
        self.release.clear()


@pytest.fixture(scope="session")
def qapp() -> QCoreApplication:
    """A Qt application so queued signals and QThreads work."""
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(sys.argv[:1])
    return app


@pytest.fixture
def image_folder(tmp_path: Path) -> Path:
    """A folder with three images (one nested) and a text file."""
    (tmp_path / "a.png").write_bytes(PNG_BYTES)
    (tmp_path / "b.jpg").write_bytes(JPEG_BYTES)
    nested = tmp_path / "nested"
    nested.mkdir()
    (nested / "c.gif").write_bytes(GIF_BYTES)
    (tmp_path / "notes.txt").write_text("not an image\n")
    return tmp_path


@pytest.fixture
def session(qapp) -> Generator[ProcessingSession, None, None]:
    s = ProcessingSession(mutator=FixedBytesMutator())
    try:
        yield s
    finally:
        s.shutdown()


def scan(session: ProcessingSession, folder: Path) -> tuple:
    """Scan synchronously from the test's point of view."""
    waiter = SignalWaiter(session.scan_finished)
    session.scan_folder(folder)
    return waiter.wait()[0]
