# tests/test_utils.py
"""Test utilities and helpers"""

import logging
import logging.handlers
from datetime import date

import pytest

from smart_playlist.utils.helpers import (
    chunked,
    format_duration,
    parse_bool,
    parse_release_date,
    to_number
)
from smart_playlist.utils.logger import (
    ConsoleMessageFilter,
    OperationLogger,
    configure_from_settings,
    get_current_log_file,
    get_logger,
    parse_size,
    setup_logging
)


class TestHelpers:
    """Test helper functions"""

    def test_parse_bool(self):
        """Test form flag interpretation"""
        assert parse_bool('on') is True
        assert parse_bool('TRUE') is True
        assert parse_bool(True) is True
        assert parse_bool(1) is True
        assert parse_bool('false') is False
        assert parse_bool('') is False
        assert parse_bool(None) is False
        assert parse_bool(0) is False

    def test_to_number(self):
        """Test operand conversion"""
        assert to_number('2015') == 2015.0
        assert to_number(' 3.5 ') == 3.5
        assert to_number(7) == 7.0
        assert to_number('abc') is None
        assert to_number('nan') is None
        assert to_number(True) is None
        assert to_number(None) is None

    def test_parse_release_date(self):
        """Test release dates of every precision"""
        assert parse_release_date('2015-07-17') == date(2015, 7, 17)
        assert parse_release_date('2015-07') == date(2015, 7, 1)
        assert parse_release_date('2015') == date(2015, 1, 1)
        assert parse_release_date('2015-07-17', 'year') == date(2015, 1, 1)
        assert parse_release_date('0000') is None
        assert parse_release_date('') is None
        assert parse_release_date('unknown') is None

    def test_format_duration(self):
        """Test duration formatting"""
        assert format_duration(90000) == "1:30"
        assert format_duration(3661000) == "1:01:01"
        assert format_duration(0) == "0:00"
        assert format_duration(-10) == "0:00"

    def test_chunked(self):
        """Test batch splitting"""
        assert list(chunked(list(range(5)), 2)) == [[0, 1], [2, 3], [4]]
        assert list(chunked([], 100)) == []
        with pytest.raises(ValueError):
            list(chunked([1], 0))


@pytest.fixture
def restore_root_logger():
    """Put the root logger back the way pytest configured it"""
    root_logger = logging.getLogger()
    previous_handlers = root_logger.handlers[:]
    previous_level = root_logger.level

    yield root_logger

    for handler in root_logger.handlers[:]:
        handler.close()
        root_logger.removeHandler(handler)
    for handler in previous_handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(previous_level)


def file_handlers(root_logger):
    return [handler for handler in root_logger.handlers
            if isinstance(handler, logging.handlers.RotatingFileHandler)]


class TestLogger:
    """Test logging setup"""

    def test_parse_size(self):
        """Test log size parsing"""
        assert parse_size("10MB") == 10 * 1024 ** 2
        assert parse_size("500 KB") == 500 * 1024
        with pytest.raises(ValueError):
            parse_size("big")

    def test_console_filter(self):
        """Test only user-facing records reach the console"""
        console_filter = ConsoleMessageFilter()
        technical = logging.LogRecord('smart_playlist.smart', logging.INFO, '', 0, 'technical', (), None)
        warning = logging.LogRecord('smart_playlist.smart', logging.WARNING, '', 0, 'warn', (), None)
        user = logging.LogRecord('smart_playlist.smart', logging.INFO, '', 0, 'user', (), None)
        user.console_output = True

        assert not console_filter.filter(technical)
        assert console_filter.filter(warning)
        assert console_filter.filter(user)

    def test_file_logging(self, temp_dir, restore_root_logger):
        """Test file handler setup and console_info"""
        log_file = temp_dir / "logs" / "smart-playlist.log"

        setup_logging(level="DEBUG", log_file=str(log_file), console_output=False)
        logger = get_logger('smart_playlist.test')
        logger.console_info("shown to the user")

        assert get_current_log_file() == log_file
        for handler in restore_root_logger.handlers:
            handler.flush()
        content = log_file.read_text(encoding='utf-8')
        assert "shown to the user" in content
        assert "smart_playlist.utils.logger" in content
        assert "Logging initialized" in content

    def test_operation_logger(self, caplog):
        """Test operation lifecycle messages"""
        operation = OperationLogger(get_logger('smart_playlist.test'), "generation")

        with caplog.at_level(logging.INFO):
            operation.start()
            operation.progress("tracks", 5, 10)
            operation.complete()

        assert "Operation started: generation" in caplog.text
        assert "(5/10, 50.0%)" in caplog.text
        assert "Operation completed: generation" in caplog.text

    def test_configure_from_settings_relative_file(self, test_settings, restore_root_logger):
        """Test a relative log file lands in the config directory"""
        test_settings.logging.file = "logs/smart-playlist.log"
        test_settings.logging.level = "WARNING"
        test_settings.logging.console_output = False

        configure_from_settings(test_settings)

        handlers = file_handlers(restore_root_logger)
        assert len(handlers) == 1
        expected = test_settings.get_config_directory() / "logs" / "smart-playlist.log"
        assert handlers[0].baseFilename == str(expected)
        assert handlers[0].level == logging.WARNING

    def test_configure_from_settings_absolute_file(self, test_settings, temp_dir, restore_root_logger):
        """Test an absolute log file path is used as given"""
        log_file = temp_dir / "absolute.log"
        test_settings.logging.file = str(log_file)
        test_settings.logging.level = "DEBUG"
        test_settings.logging.console_output = False

        configure_from_settings(test_settings)

        handlers = file_handlers(restore_root_logger)
        assert len(handlers) == 1
        assert handlers[0].baseFilename == str(log_file)
        assert handlers[0].level == logging.DEBUG

    def test_configure_from_settings_without_file(self, test_settings, restore_root_logger):
        """Test no file handler is attached when no log file is configured"""
        test_settings.logging.console_output = False

        configure_from_settings(test_settings)

        assert file_handlers(restore_root_logger) == []
