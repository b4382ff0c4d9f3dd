"""
Tests for logging configuration.
"""

import logging
from logging.handlers import RotatingFileHandler

import pytest

from claude_runner.logging_config import (
    PACKAGE_LOGGER,
    get_log_directory,
    get_log_level,
    setup_logging,
    temporary_log_level,
)


class TestGetLogLevel:
    """Tests for CLAUDE_RUNNER_LOG_LEVEL parsing."""

    def test_default_info(self, monkeypatch):
        monkeypatch.delenv("CLAUDE_RUNNER_LOG_LEVEL", raising=False)
        assert get_log_level() == logging.INFO

    @pytest.mark.parametrize("value, level", [("debug", logging.DEBUG), ("ERROR", logging.ERROR)])
    def test_from_env(self, monkeypatch, value, level):
        monkeypatch.setenv("CLAUDE_RUNNER_LOG_LEVEL", value)
        assert get_log_level() == level

    def test_unknown_falls_back_to_info(self, monkeypatch):
        monkeypatch.setenv("CLAUDE_RUNNER_LOG_LEVEL", "chatty")
        assert get_log_level() == logging.INFO


class TestSetupLogging:
    """Tests for handler setup on the package logger."""

    def test_file_handler_in_app_logs_dir(self, isolated_app_dir):
        logger = setup_logging()

        assert logger.name == PACKAGE_LOGGER
        assert logger.propagate is False
        file_handlers = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1
        assert file_handlers[0].baseFilename == str(isolated_app_dir / "logs" / "claude-runner.log")

    def test_module_loggers_write_to_file(self, isolated_app_dir):
        setup_logging(level=logging.DEBUG)
        logging.getLogger("claude_runner.store").info("reloaded 3 sessions")
        for handler in logging.getLogger(PACKAGE_LOGGER).handlers:
            handler.flush()

        content = (isolated_app_dir / "logs" / "claude-runner.log").read_text()
        assert "reloaded 3 sessions" in content
        assert "[claude_runner.store]" in content

    def test_idempotent(self):
        logger = setup_logging()
        count = len(logger.handlers)

        setup_logging(level=logging.DEBUG)
        assert len(logger.handlers) == count
        assert logger.level == logging.DEBUG

    def test_console_output(self):
        logger = setup_logging(console_output=True, log_to_file=False)
        assert any(type(h) is logging.StreamHandler for h in logger.handlers)

    def test_no_handlers_gets_null_handler(self):
        logger = setup_logging(log_to_file=False)
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.NullHandler)

    def test_log_directory_falls_back_to_tempdir(self, monkeypatch, tmp_path):
        blocker = tmp_path / "blocker"
        blocker.write_text("not a directory")
        monkeypatch.setattr("claude_runner.logging_config.get_logs_dir", lambda: blocker / "logs")
        monkeypatch.setattr("claude_runner.logging_config.tempfile.gettempdir", lambda: str(tmp_path))

        assert get_log_directory() == tmp_path / "claude-runner-logs"


class TestTemporaryLogLevel:
    """Tests for the temporary_log_level context manager."""

    def test_restores_level(self):
        logger = logging.getLogger("claude_runner.watcher")
        logger.setLevel(logging.WARNING)

        with temporary_log_level("claude_runner.watcher", logging.DEBUG) as temp:
            assert temp is logger
            assert logger.level == logging.DEBUG

        assert logger.level == logging.WARNING
        logger.setLevel(logging.NOTSET)
