"""Unit tests for logging configuration module.

Tests verify that the logging configuration functions work correctly with different
scenarios including various log levels, formats, and file logging options.
"""

import logging
import tempfile
from pathlib import Path
from unittest.mock import patch

import pytest

from empire_ai.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


def _console_handler() -> logging.Handler:
    root_logger = logging.getLogger()
    handler = next(
        (h for h in root_logger.handlers if type(h) is logging.StreamHandler),
        None,
    )
    assert handler is not None
    return handler


class TestSetupLoggingLogLevels:
    """Test setup_logging with different log levels."""

    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("ERROR", logging.ERROR),
            ("debug", logging.DEBUG),  # Test lowercase
        ],
    )
    def test_setup_logging_with_different_levels(self, log_level, expected_level):
        """Test setup_logging configures correct log level."""
        setup_logging(log_level=log_level, enable_file=False)

        assert _console_handler().level == expected_level

    def test_setup_logging_does_not_duplicate_handlers(self):
        """Calling setup_logging twice leaves a single console handler."""
        setup_logging(log_level="INFO", enable_file=False)
        setup_logging(log_level="INFO", enable_file=False)

        root_logger = logging.getLogger()
        assert len([h for h in root_logger.handlers if type(h) is logging.StreamHandler]) == 1


class TestSetupLoggingFormats:
    """Test setup_logging with different formats."""

    @pytest.mark.parametrize(
        "log_format,expected",
        [("simple", SIMPLE_FORMAT), ("detailed", DETAILED_FORMAT), ("json", JSON_FORMAT), ("unknown", DETAILED_FORMAT)],
    )
    def test_format_selection(self, log_format, expected):
        setup_logging(log_level="INFO", log_format=log_format, enable_file=False)

        assert _console_handler().formatter._fmt == expected


class TestFileLogging:
    """Test optional file logging."""

    def test_file_handler_written_to_configured_dir(self):
        with tempfile.TemporaryDirectory() as tmp:
            config = {
                "log_level": "INFO",
                "log_format": "simple",
                "log_file_dir": str(Path(tmp) / "logs"),
                "enable_file_logging": True,
            }
            with patch("empire_ai.core.logging_config._get_logging_config", return_value=config):
                setup_logging()

            root_logger = logging.getLogger()
            file_handlers = [h for h in root_logger.handlers if isinstance(h, logging.FileHandler)]
            try:
                assert len(file_handlers) == 1
                assert Path(file_handlers[0].baseFilename) == Path(tmp) / "logs" / "empire_ai.log"
            finally:
                for handler in file_handlers:
                    root_logger.removeHandler(handler)
                    handler.close()


class TestModuleLevels:
    """Test per-module log levels."""

    def test_module_levels_applied(self):
        setup_logging(log_level="INFO", enable_file=False)

        for module_name, level in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == logging.getLevelName(level)

    def test_get_logger_returns_named_logger(self):
        logger = get_logger("empire_ai.agent_core.retry")

        assert logger.name == "empire_ai.agent_core.retry"
        assert logger is logging.getLogger("empire_ai.agent_core.retry")
