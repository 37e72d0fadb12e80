"""Tests for logging configuration."""

import logging

import pytest

from rowflow.logging import (
    TECHNICAL_MODULES,
    configure_logging,
    get_logger,
    get_logging_status,
)


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, root.handlers[:]
    yield
    root.setLevel(level)
    root.handlers[:] = handlers


def test_get_logger_adds_single_handler():
    logger = get_logger("rowflow.test_module")
    again = get_logger("rowflow.test_module")

    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.propagate is False


@pytest.mark.parametrize(
    "verbose,quiet,root_level,technical_level",
    [
        (False, False, logging.INFO, logging.WARNING),
        (True, False, logging.DEBUG, logging.DEBUG),
        (False, True, logging.WARNING, logging.WARNING),
        (True, True, logging.WARNING, logging.WARNING),
    ],
)
def test_configure_logging_levels(verbose, quiet, root_level, technical_level):
    configure_logging(verbose=verbose, quiet=quiet)

    assert logging.getLogger().level == root_level
    for name in TECHNICAL_MODULES:
        assert logging.getLogger(name).level == technical_level
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING


def test_logging_status_lists_rowflow_modules():
    get_logger("rowflow.status_check")
    configure_logging(quiet=True)

    status = get_logging_status()

    assert status["root_level"] == "WARNING"
    assert status["modules"]["rowflow.status_check"]["propagate"] is False
    assert all(name.startswith("rowflow") for name in status["modules"])
