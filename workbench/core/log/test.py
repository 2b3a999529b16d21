"""Tests for core logging module."""

import logging
from io import StringIO

import pytest

from .lib import get_logger, parse_level, setup_logging


class TestLogging:
    """Test core logging API."""

    @pytest.mark.unit
    def test_get_logger(self) -> None:
        """Verify logger instance creation."""
        logger = get_logger("test")
        assert logger.name == "test"
        assert isinstance(logger, logging.Logger)

    @pytest.mark.unit
    def test_get_logger_default_name(self) -> None:
        """Verify default logger name."""
        assert get_logger().name == "workbench"

    @pytest.mark.unit
    def test_setup_logging_quiets_http_clients(self) -> None:
        """HTTP client loggers are raised to WARNING outside debug mode."""
        setup_logging(level=logging.INFO, stream=StringIO())
        assert logging.getLogger("httpx").level == logging.WARNING


class TestParseLevel:
    """Test level name resolution."""

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("debug", logging.DEBUG),
            ("WARNING", logging.WARNING),
            (" error ", logging.ERROR),
            (logging.CRITICAL, logging.CRITICAL),
            (None, logging.INFO),
            ("chatty", logging.INFO),
        ],
    )
    def test_parse_level(self, value, expected) -> None:
        assert parse_level(value) == expected
