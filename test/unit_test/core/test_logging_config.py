"""Unit tests for the logging configuration module."""

import logging
from typing import Optional
from unittest.mock import patch

import pytest

from pagepilot_ai.core.logging_config import (
    DETAILED_FORMAT,
    JSON_FORMAT,
    MODULE_LOG_LEVELS,
    SIMPLE_FORMAT,
    get_logger,
    setup_logging,
)


def _console_handler() -> Optional[logging.Handler]:
    return next(
        (h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler),
        None,
    )


def _file_handler() -> Optional[logging.FileHandler]:
    return next((h for h in logging.getLogger().handlers if isinstance(h, logging.FileHandler)), None)


@pytest.fixture(autouse=True)
def _restore_logging():
    yield
    for handler in logging.getLogger().handlers[:]:
        if isinstance(handler, logging.FileHandler):
            handler.close()
    setup_logging(enable_file=False)


class TestSetupLogging:
    @pytest.mark.parametrize(
        "log_level,expected_level",
        [
            ("DEBUG", logging.DEBUG),
            ("INFO", logging.INFO),
            ("WARNING", logging.WARNING),
            ("error", logging.ERROR),
            ("critical", logging.CRITICAL),
        ],
    )
    def test_console_level(self, log_level, expected_level):
        setup_logging(log_level=log_level, enable_file=False)

        handler = _console_handler()
        assert handler is not None
        assert handler.level == expected_level

    @pytest.mark.parametrize(
        "log_format,expected_format",
        [
            ("simple", SIMPLE_FORMAT),
            ("detailed", DETAILED_FORMAT),
            ("json", JSON_FORMAT),
            ("unknown", DETAILED_FORMAT),
        ],
    )
    def test_formats(self, log_format, expected_format):
        setup_logging(log_format=log_format, enable_file=False)

        handler = _console_handler()
        assert handler.formatter._fmt == expected_format
        assert handler.formatter.datefmt == "%Y-%m-%d %H:%M:%S"

    def test_root_logger_captures_everything(self):
        """Filtering happens at handler level, the root logger stays at DEBUG."""
        setup_logging(log_level="WARNING", enable_file=False)
        assert logging.getLogger().level == logging.DEBUG

    def test_repeated_setup_does_not_duplicate_handlers(self):
        setup_logging(log_level="INFO", enable_file=False)
        setup_logging(log_level="DEBUG", enable_file=False)
        setup_logging(log_level="WARNING", enable_file=False)

        consoles = [h for h in logging.getLogger().handlers if type(h) is logging.StreamHandler]
        assert len(consoles) == 1
        assert consoles[0].level == logging.WARNING


class TestFileLogging:
    def test_file_handler_requires_env_switch(self, tmp_path):
        with patch("pagepilot_ai.core.logging_config.LOG_FILE_DIR", str(tmp_path)):
            with patch("pagepilot_ai.core.logging_config.ENABLE_FILE_LOGGING", False):
                setup_logging(enable_file=True)

        assert _file_handler() is None

    def test_file_handler_always_debug(self, tmp_path):
        log_dir = tmp_path / "new_logs"
        with patch("pagepilot_ai.core.logging_config.LOG_FILE_DIR", str(log_dir)):
            with patch("pagepilot_ai.core.logging_config.ENABLE_FILE_LOGGING", True):
                setup_logging(log_level="ERROR", enable_file=True)

        handler = _file_handler()
        assert handler is not None
        assert handler.level == logging.DEBUG
        assert (log_dir / "pagepilot_ai.log").exists()

    def test_enable_file_false_wins(self, tmp_path):
        with patch("pagepilot_ai.core.logging_config.LOG_FILE_DIR", str(tmp_path)):
            with patch("pagepilot_ai.core.logging_config.ENABLE_FILE_LOGGING", True):
                setup_logging(enable_file=False)

        assert _file_handler() is None


class TestModuleLevels:
    @pytest.mark.parametrize(
        "module_name,expected_level",
        [
            ("pagepilot_ai.agent_core", logging.DEBUG),
            ("pagepilot_ai.agent_core.runtime", logging.DEBUG),
            ("httpx", logging.WARNING),
            ("openai", logging.WARNING),
            ("asyncio", logging.WARNING),
        ],
    )
    def test_module_specific_log_levels(self, module_name, expected_level):
        setup_logging(enable_file=False)
        assert logging.getLogger(module_name).level == expected_level

    def test_all_module_log_levels_configured(self):
        setup_logging(enable_file=False)

        for module_name, expected_level_str in MODULE_LOG_LEVELS.items():
            assert logging.getLogger(module_name).level == getattr(logging, expected_level_str)


class TestGetLogger:
    def test_same_name_returns_same_instance(self):
        assert get_logger("same_module") is get_logger("same_module")

    @pytest.mark.parametrize("module_name", ["pagepilot_ai.agent_core", "custom_module", "module.with-special_chars.123"])
    def test_name_is_kept(self, module_name):
        logger = get_logger(module_name)
        assert isinstance(logger, logging.Logger)
        assert logger.name == module_name
