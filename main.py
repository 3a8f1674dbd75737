"""
Main entry point for the batch MD5 engine.

This module handles:
- Logging configuration
- A headless driver that scans a folder and processes it once
- Signal handling (Ctrl+C requests a cooperative cancel)
"""

from __future__ import annotations

import argparse
import logging
import signal
import sys
from pathlib import Path
from typing import Optional, List

from PyQt6.QtCore import QCoreApplication, QTimer

from batchmd5.core.models import DEFAULT_BYTE_COUNT, SessionState
from batchmd5.services.settings import EngineSettings
from batchmd5.session import ProcessingSession


# =============================================================================
# Constants
# =============================================================================

APP_NAME = "BatchMD5"
APP_VERSION = "1.0.0"


# =============================================================================
# Logging Setup
# =============================================================================

class LogFormatter(logging.Formatter):
    """Log formatter with colors for console."""

    COLORS = {
        logging.INFO: '\033[32m',      # Green
        logging.WARNING: '\033[33m',   # Yellow
        logging.ERROR: '\033[31m',     # Red
        logging.CRITICAL: '\033[35m',  # Magenta
    }
    RESET = '\033[0m'

    def __init__(self, use_colors: bool = True):
        super().__init__(
            fmt='%(asctime)s | %(levelname)-8s | %(name)s | %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        )
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        formatted = super().format(record)

        if self.use_colors:
            color = self.COLORS.get(record.levelno, '')
            return f"{color}{formatted}{self.RESET}"

        return formatted


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None) -> logging.Logger:
    """
    Configure application logging.

    Args:
        level: Log level string
        log_file: Optional file path for logging

    Returns:
        Root logger instance
    """
    numeric_level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(numeric_level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(numeric_level)
    console_handler.setFormatter(LogFormatter(use_colors=True))
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(
            log_file,
            encoding='utf-8'
        )
        file_handler.setLevel(numeric_level)
        file_handler.setFormatter(LogFormatter(use_colors=False))
        root_logger.addHandler(file_handler)

    return root_logger


# =============================================================================
# Headless Driver
# =============================================================================

def parse_arguments(args: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse the folder to process."""
    parser = argparse.ArgumentParser(
        prog=APP_NAME.lower(),
        description="Append random bytes to every image under a folder and report MD5 changes.",
    )
    parser.add_argument('folder', help="Folder to scan recursively")
    return parser.parse_args(args)


def format_summary(state: SessionState) -> str:
    return (
        f"{state.phase.name.lower()}: {state.processed_count}/{state.total_count} processed, "
        f"{state.success_count} succeeded, {state.fail_count} failed"
    )


def run_headless(folder: Path, settings: EngineSettings) -> int:
    """
    Scan `folder`, process every candidate once and log the outcome.

    Returns a process exit code: 0 when every file succeeded.
    """
    app = QCoreApplication.instance() or QCoreApplication(sys.argv[:1])
    session = ProcessingSession(settings)
    exit_code = [0]

    def on_scanned(records) -> None:
        logging.info(f"Found {len(records)} candidate files")
        session.start_processing(DEFAULT_BYTE_COUNT)

    def on_finished(state: SessionState) -> None:
        for record in session.records:
            if record.processed:
                logging.info(f"{record.name}: {record.original_digest} -> {record.modified_digest}")
        logging.info(format_summary(state))
        exit_code[0] = 0 if state.fail_count == 0 and state.processed_count == state.total_count else 1
        app.quit()

    def on_error(error_type: str, message: str) -> None:
        exit_code[0] = 2
        app.quit()

    session.scan_finished.connect(on_scanned)
    session.run_finished.connect(on_finished)
    session.error.connect(on_error)

    signal.signal(signal.SIGINT, lambda signum, frame: session.request_cancel())
    # Wake the event loop periodically so Python can deliver SIGINT
    timer = QTimer()
    timer.timeout.connect(lambda: None)
    timer.start(200)

    session.scan_folder(folder)
    app.exec()
    session.shutdown()
    return exit_code[0]


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_arguments(argv)

    try:
        settings = EngineSettings.from_env()
    except ValueError as e:
        print(f"{APP_NAME}: {e}", file=sys.stderr)
        return 2

    setup_logging(settings.log_level)
    logging.info(f"Starting {APP_NAME} v{APP_VERSION}")

    folder = Path(args.folder).expanduser()
    if not folder.is_dir():
        logging.error(f"Not a directory: {folder}")
        return 2

    return run_headless(folder, settings)


if __name__ == '__main__':
    sys.exit(main())
