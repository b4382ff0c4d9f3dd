"""
Logging configuration for claude-runner.

Modules log through logging.getLogger(__name__); setup_logging() attaches
handlers to the package logger once, with a rotating log file in the app
directory and optional stderr output.
"""

import logging
import os
import sys
import tempfile
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from .paths import get_logs_dir

PACKAGE_LOGGER = "claude_runner"
LOG_FILENAME = "claude-runner.log"
LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def get_log_level() -> int:
    """
    Get log level from environment variable or default to INFO.

    Environment variable: CLAUDE_RUNNER_LOG_LEVEL
    Valid values: DEBUG, INFO, WARNING, ERROR, CRITICAL
    """
    level_name = os.getenv("CLAUDE_RUNNER_LOG_LEVEL", "INFO").upper()
    level_map = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return level_map.get(level_name, logging.INFO)


def get_log_directory() -> Path:
    """
    Get a writable log directory.

    Prefers <app dir>/logs and falls back to the system temp directory for
    sandboxed environments.
    """
    candidates = [get_logs_dir(), Path(tempfile.gettempdir()) / "claude-runner-logs"]
    for candidate in candidates:
        try:
            candidate.mkdir(parents=True, exist_ok=True)
            if os.access(candidate, os.W_OK):
                return candidate
        except OSError:
            continue
    return candidates[-1]


def setup_logging(
    level: Optional[int] = None,
    console_output: bool = False,
    log_to_file: bool = True,
    max_bytes: int = 5 * 1024 * 1024,
    backup_count: int = 1,
) -> logging.Logger:
    """
    Configure the claude_runner package logger.

    Args:
        level: Log level; defaults to CLAUDE_RUNNER_LOG_LEVEL or INFO
        console_output: Also log to stderr
        log_to_file: Write to <log dir>/claude-runner.log
        max_bytes: Maximum size of the log file before rotation
        backup_count: Number of rotated files to keep

    Returns:
        The configured package logger

    Calling this again only updates the level; handlers are not duplicated.
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    if level is None:
        level = get_log_level()

    if logger.handlers:
        logger.setLevel(level)
        return logger

    logger.setLevel(level)
    logger.propagate = False

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_to_file:
        try:
            log_path = get_log_directory() / LOG_FILENAME
            file_handler = RotatingFileHandler(
                log_path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
        except OSError as e:
            # Logging setup must never break the application
            print(f"Warning: Failed to set up file logging: {e}", file=sys.stderr)

    if console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if not logger.handlers:
        logger.addHandler(logging.NullHandler())

    return logger


def reset_logging() -> None:
    """Remove and close all handlers from the package logger."""
    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


class temporary_log_level:
    """
    Context manager to temporarily change a logger's level.

    Example:
        >>> with temporary_log_level("claude_runner.store", logging.DEBUG):
        ...     store.reload()
    """

    def __init__(self, logger_name: str, level: int):
        self.logger = logging.getLogger(logger_name)
        self.original_level = self.logger.level
        self.new_level = level

    def __enter__(self):
        self.logger.setLevel(self.new_level)
        return self.logger

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.logger.setLevel(self.original_level)
        return False
