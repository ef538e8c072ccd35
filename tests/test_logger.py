"""
Unit tests for quarkdrive_fs.logger module.

Tests cover:
- FileHandler creation when file is specified
- StreamHandler creation when console=True
- Log level setting
- HTTP library loggers quieted unless DEBUG
- Log format (timestamp, level, thread name)
"""

import logging
import sys
from pathlib import Path

import pytest

from quarkdrive_fs.config import LogConfig
from quarkdrive_fs.logger import LOG_FORMAT, QUIET_LOGGERS, setup_logging


@pytest.fixture(autouse=True)
def restore_root_logger():
    """Put the root logger back the way pytest left it."""
    root_logger = logging.getLogger()
    handlers = list(root_logger.handlers)
    level = root_logger.level
    yield
    for handler in root_logger.handlers:
        if handler not in handlers:
            handler.close()
    root_logger.handlers[:] = handlers
    root_logger.setLevel(level)
    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.NOTSET)


def _stream_handlers(root_logger):
    return [
        h
        for h in root_logger.handlers
        if isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
    ]


def _flush():
    for handler in logging.getLogger().handlers:
        handler.flush()


class TestSetupLoggingHandlers:
    """Tests for handler creation."""

    def test_file_handler_created(self, log_config):
        setup_logging(log_config)

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert len(file_handlers) == 1
        assert Path(file_handlers[0].baseFilename) == Path(log_config.file)
        assert file_handlers[0].mode == "a"
        assert file_handlers[0].encoding == "utf-8"

    def test_no_file_handler_when_file_empty(self):
        setup_logging(LogConfig(level="INFO", file="", console=True))

        file_handlers = [h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)]
        assert file_handlers == []

    def test_creates_parent_directories(self, tmp_path: Path):
        nested = tmp_path / "logs" / "deep" / "quarkdrive-fs.log"

        setup_logging(LogConfig(level="INFO", file=str(nested), console=False))

        assert nested.parent.exists()

    def test_console_handler_uses_stderr(self, log_config):
        log_config.console = True

        setup_logging(log_config)

        stream_handlers = _stream_handlers(logging.getLogger())
        assert len(stream_handlers) == 1
        assert stream_handlers[0].stream is sys.stderr

    def test_no_console_handler_when_disabled(self, log_config):
        setup_logging(log_config)

        assert _stream_handlers(logging.getLogger()) == []

    def test_repeated_setup_does_not_duplicate(self, log_config):
        log_config.console = True

        setup_logging(log_config)
        setup_logging(log_config)

        assert len(logging.getLogger().handlers) == 2


class TestSetupLoggingLevel:
    """Tests for log level setting."""

    @pytest.mark.parametrize(
        "level_str,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("info", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("BOGUS", logging.INFO),
        ],
    )
    def test_root_level(self, tmp_path: Path, level_str: str, expected_level: int):
        setup_logging(LogConfig(level=level_str, file=str(tmp_path / "t.log"), console=False))

        root_logger = logging.getLogger()
        assert root_logger.level == expected_level
        for handler in root_logger.handlers:
            assert handler.level == expected_level

    def test_http_loggers_quiet_at_info(self, log_config):
        log_config.level = "INFO"

        setup_logging(log_config)

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.WARNING

    def test_http_loggers_verbose_at_debug(self, log_config):
        setup_logging(log_config)

        for name in QUIET_LOGGERS:
            assert logging.getLogger(name).level == logging.DEBUG

    def test_messages_below_level_filtered(self, log_config):
        log_config.level = "WARNING"
        setup_logging(log_config)

        logging.getLogger("quarkdrive_fs.test").info("hidden message")
        logging.getLogger("quarkdrive_fs.test").warning("shown message")
        _flush()

        content = Path(log_config.file).read_text(encoding="utf-8")
        assert "hidden message" not in content
        assert "shown message" in content


class TestSetupLoggingFormat:
    """Tests for log format."""

    def test_format_constant(self):
        for placeholder in ("%(asctime)s", "%(levelname)s", "%(threadName)s", "%(message)s"):
            assert placeholder in LOG_FORMAT

    def test_written_line_format(self, log_config):
        setup_logging(log_config)

        logging.getLogger("quarkdrive_fs.cache").debug("cache: miss /docs")
        _flush()

        content = Path(log_config.file).read_text(encoding="utf-8")
        assert " - DEBUG - MainThread - cache: miss /docs" in content

    def test_appends_to_existing_file(self, log_config):
        Path(log_config.file).write_text("existing content\n", encoding="utf-8")

        setup_logging(log_config)
        logging.getLogger().info("new log message")
        _flush()

        content = Path(log_config.file).read_text(encoding="utf-8")
        assert content.startswith("existing content\n")
        assert "new log message" in content
