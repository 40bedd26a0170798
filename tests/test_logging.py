"""Tests for logging setup."""

import logging

import pytest

from ledgerkit.utils.logging import LOG_LEVEL_ENV, resolve_level, setup_logging


def test_resolve_level_names():
    assert resolve_level("debug") == logging.DEBUG
    assert resolve_level(" Info ") == logging.INFO
    assert resolve_level(logging.ERROR) == logging.ERROR


def test_resolve_level_from_environment(monkeypatch):
    monkeypatch.setenv(LOG_LEVEL_ENV, "ERROR")
    assert resolve_level() == logging.ERROR

    monkeypatch.delenv(LOG_LEVEL_ENV)
    assert resolve_level() == logging.WARNING


def test_resolve_level_unknown():
    with pytest.raises(ValueError, match="Unknown log level"):
        resolve_level("chatty")


def test_setup_logging_is_idempotent():
    setup_logging("INFO")
    logger = setup_logging("DEBUG")

    assert logger.name == "ledgerkit"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1
    assert not logger.propagate
    assert logging.getLogger("sqlalchemy.engine").level == logging.WARNING
