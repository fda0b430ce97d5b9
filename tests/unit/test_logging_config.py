"""Tests for focuslog/logging_config.py"""

import logging

import pytest
import structlog

from focuslog.config_models import LoggingConfig
from focuslog.logging_config import bind_request_context, setup_logging


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    monkeypatch.delenv("FOCUSLOG_LOG_LEVEL", raising=False)
    monkeypatch.delenv("FOCUSLOG_LOG_FORMAT", raising=False)
    yield
    structlog.contextvars.clear_contextvars()


def _renderer():
    formatter = logging.getLogger().handlers[0].formatter
    return formatter.processors[-1]


class TestSetupLogging:
    """Tests for level and format resolution."""

    def test_config_level_and_json_format(self):
        setup_logging(LoggingConfig(level="ERROR", format="json"))

        assert logging.getLogger().level == logging.ERROR
        assert isinstance(_renderer(), structlog.processors.JSONRenderer)

    def test_environment_overrides_config(self, monkeypatch):
        monkeypatch.setenv("FOCUSLOG_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("FOCUSLOG_LOG_FORMAT", "json")

        setup_logging(LoggingConfig(level="ERROR", format="console"))

        assert logging.getLogger().level == logging.DEBUG
        assert isinstance(_renderer(), structlog.processors.JSONRenderer)

    def test_arguments_override_environment(self, monkeypatch):
        monkeypatch.setenv("FOCUSLOG_LOG_LEVEL", "DEBUG")

        setup_logging(level="WARNING", json_output=False)

        assert logging.getLogger().level == logging.WARNING
        assert isinstance(_renderer(), structlog.dev.ConsoleRenderer)

    def test_invalid_format_rejected_by_config(self):
        with pytest.raises(ValueError):
            LoggingConfig(format="xml")


class TestRequestContext:
    """Tests for per-request log context."""

    def test_binds_user_id(self):
        bind_request_context("alice")

        assert structlog.contextvars.get_contextvars() == {"user_id": "alice"}

    def test_rebinding_replaces_previous_caller(self):
        structlog.contextvars.bind_contextvars(user_id="alice", stale="value")

        bind_request_context("bob")

        assert structlog.contextvars.get_contextvars() == {"user_id": "bob"}

    def test_context_reaches_stdlib_records(self, capsys):
        setup_logging(level="INFO", json_output=True)
        bind_request_context("alice")

        logging.getLogger("focuslog.test").info("routine generated")

        line = capsys.readouterr().err.strip().splitlines()[-1]
        assert '"user_id": "alice"' in line
        assert '"event": "routine generated"' in line
