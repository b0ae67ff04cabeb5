"""Tests for logging setup."""

import logging

import pytest

from ledgerkit.logging_config import LOG_LEVEL_ENV_VAR, configure_logging


def test_default_level(monkeypatch):
    """Test the WARNING default."""
    monkeypatch.delenv(LOG_LEVEL_ENV_VAR, raising=False)

    logger = configure_logging()

    assert logger.name == "ledgerkit"
    assert logger.level == logging.WARNING
    assert not logger.propagate


def test_env_var_and_repeated_calls(monkeypatch):
    """Test that the environment sets the level and handlers are replaced."""
    monkeypatch.setenv(LOG_LEVEL_ENV_VAR, "debug")

    configure_logging()
    logger = configure_logging()

    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_unknown_level():
    """Test that unknown level names are rejected."""
    with pytest.raises(ValueError, match="Unknown log level"):
        configure_logging("chatty")
