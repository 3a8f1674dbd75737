"""Tests for logging setup and the headless driver."""

from __future__ import annotations

import logging

import pytest

import main
from batchmd5.core.models import SessionPhase, SessionState

from conftest import PNG_BYTES


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    try:
        yield root
    finally:
        root.handlers[:] = handlers
        root.setLevel(level)


def test_setup_logging_console_and_file(restore_root_logger, tmp_path):
    log_file = tmp_path / "logs" / "batchmd5.log"

    root = main.setup_logging("debug", log_file)
    logging.getLogger("batchmd5.test").debug("hello from the test")
    for handler in root.handlers:
        handler.flush()

    assert root.level == logging.DEBUG
    assert len(root.handlers) == 2
    assert "hello from the test" in log_file.read_text(encoding="utf-8")
    assert "\033[" not in log_file.read_text(encoding="utf-8")


def test_unknown_level_falls_back_to_info(restore_root_logger):
    assert main.setup_logging("chatty").level == logging.INFO


def test_format_summary():
    state = SessionState(phase=SessionPhase.CANCELLED, total_count=4).with_outcome(True).with_outcome(False)
    assert main.format_summary(state) == "cancelled: 2/4 processed, 1 succeeded, 1 failed"


def test_main_rejects_missing_folder(restore_root_logger, tmp_path):
    assert main.main([str(tmp_path / "missing")]) == 2


def test_main_rejects_bad_environment(monkeypatch, tmp_path, capsys):
    monkeypatch.setenv("BATCHMD5_CHUNK_SIZE", "huge")
    assert main.main([str(tmp_path)]) == 2
    assert "BATCHMD5_CHUNK_SIZE" in capsys.readouterr().err


def test_run_headless_processes_folder(qapp, restore_root_logger, tmp_path, monkeypatch):
    monkeypatch.setattr(main.signal, "signal", lambda signum, handler: None)
    image = tmp_path / "a.png"
    image.write_bytes(PNG_BYTES)

    exit_code = main.run_headless(tmp_path, main.EngineSettings())

    assert exit_code == 0
    assert image.stat().st_size == len(PNG_BYTES) + 1
