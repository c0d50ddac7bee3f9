"""
This module provides the logging setup and the error report used by the service.

Console and file logging go through loguru. Failed engine invocations can also
be appended to a plain-text `error.txt`, which keeps the full command line and
the engine's stderr together in one place for operators.
"""

import sys
from pathlib import Path
from typing import Optional

from loguru import logger

from ..config.common import LOGGER_FORMAT


def configure_logging(level: str = "INFO", log_file: Optional[Path] = None):
    """
    Replaces the loguru sinks with a stderr sink and an optional file sink.

    Args:
        level: Minimum level for both sinks (e.g. "DEBUG", "INFO").
        log_file: If given, log records are also appended to this file.
    """
    logger.remove()
    logger.add(sys.stderr, level=level, format=LOGGER_FORMAT)
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        logger.add(log_file, level=level, format=LOGGER_FORMAT, encoding="utf-8")


class ErrorLog:
    """
    Appends human-readable error reports to a text file.

    Each call to `write` adds one report followed by a separator line, so the
    file reads as a chronological record of failures.
    """

    DEFAULT_ERROR_FILENAME = "error.txt"
    linesep_marker: str = "=" * 50

    def __init__(self, error_log_dir: Path, filename: str = DEFAULT_ERROR_FILENAME):
        self.log_dir: Path = error_log_dir.resolve()
        self.log_dir.mkdir(parents=True, exist_ok=True)
        self.log_file_path = self.log_dir / filename

    def write(self, *error_messages: str):
        """
        Writes one or more message lines as a single report.

        If the file cannot be written, the messages are sent to the loguru
        logger instead so they are not lost.
        """
        if not error_messages:
            return

        content_to_write = "\n".join(error_messages) + "\n" + self.linesep_marker + "\n"
        try:
            with self.log_file_path.open("a", encoding="utf-8") as f:
                f.write(content_to_write)
        except OSError as e:
            logger.error(f"Failed to write to error log {self.log_file_path}: {e}")
            for msg in error_messages:
                logger.error(f"  - {msg}")
