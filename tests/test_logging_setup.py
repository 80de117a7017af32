import io
import logging

import pytest

from finance_signals import logging_setup
from finance_signals.api import detect_signals
from tests.helpers.factories import tx


@pytest.fixture
def fresh_logger(monkeypatch: pytest.MonkeyPatch):
    """Give each test an unconfigured package logger and restore it afterwards."""

    logger = logging.getLogger(logging_setup.LOGGER_NAME)
    saved = (list(logger.handlers), logger.level, logger.propagate)
    monkeypatch.setattr(logging_setup, "_configured", False)
    logger.handlers = []
    yield logger
    logger.handlers, level, logger.propagate = saved[0], saved[1], saved[2]
    logger.setLevel(level)


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        ("debug", logging.DEBUG),
        (" WARNING ", logging.WARNING),
        ("15", 15),
        (logging.ERROR, logging.ERROR),
        ("chatty", logging.INFO),
    ],
)
def test_resolve_level(value, expected):
    assert logging_setup.resolve_level(value) == expected


def test_resolve_level_reads_environment(monkeypatch):
    monkeypatch.setenv("FINANCE_SIGNALS_LOG_LEVEL", "error")
    assert logging_setup.resolve_level() == logging.ERROR
    monkeypatch.delenv("FINANCE_SIGNALS_LOG_LEVEL")
    assert logging_setup.resolve_level() == logging.INFO


def test_unconfigured_package_is_silent(fresh_logger):
    logging_setup.get_logger("finance_signals.api")
    assert [type(h) for h in fresh_logger.handlers] == [logging.NullHandler]


def test_configure_once_and_signal_summary_at_info(fresh_logger):
    stream = io.StringIO()
    logging_setup.get_logger("finance_signals.api")

    logging_setup.configure_logging("INFO", fmt="%(levelname)s %(message)s", stream=stream)
    logging_setup.configure_logging("DEBUG", stream=io.StringIO())

    assert len(fresh_logger.handlers) == 1
    assert fresh_logger.level == logging.INFO

    detect_signals([tx(-12, "2024-01-02"), tx(900, "2024-03-01")], "2024-03-20")

    lines = stream.getvalue().splitlines()
    assert lines == [
        "INFO signals for 2024-03: 2 transactions, 0 trends, 0 anomalies, 0 recurring"
    ]
