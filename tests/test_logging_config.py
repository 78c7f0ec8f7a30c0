"""Tests for studycal/logging_config.py — root logger setup."""

import json
import logging
import sys

import pytest
from studycal.logging_config import JsonFormatter, setup_logging


@pytest.fixture
def root_logger():
    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)


def test_setup_logging_text(root_logger, monkeypatch):
    monkeypatch.delenv("STUDYCAL_LOG_LEVEL", raising=False)
    monkeypatch.delenv("STUDYCAL_LOG_FORMAT", raising=False)
    setup_logging()
    assert root_logger.level == logging.INFO
    assert len(root_logger.handlers) == 1
    assert not isinstance(root_logger.handlers[0].formatter, JsonFormatter)


def test_setup_logging_from_env(root_logger, monkeypatch):
    monkeypatch.setenv("STUDYCAL_LOG_LEVEL", "debug")
    monkeypatch.setenv("STUDYCAL_LOG_FORMAT", "json")
    setup_logging()
    assert root_logger.level == logging.DEBUG
    assert isinstance(root_logger.handlers[0].formatter, JsonFormatter)


def test_arguments_override_env(root_logger, monkeypatch):
    monkeypatch.setenv("STUDYCAL_LOG_LEVEL", "DEBUG")
    setup_logging(level="WARNING", fmt="text")
    assert root_logger.level == logging.WARNING


def test_unknown_level_defaults_to_info(root_logger):
    setup_logging(level="chatty")
    assert root_logger.level == logging.INFO


def test_json_formatter():
    record = logging.LogRecord("studycal.backups", logging.WARNING, __file__, 1, "Lost %s", ("b1",), None)
    entry = json.loads(JsonFormatter().format(record))
    assert entry["severity"] == "WARNING"
    assert entry["message"] == "Lost b1"
    assert entry["logger"] == "studycal.backups"
    assert "exception" not in entry


def test_json_formatter_exception():
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord("studycal", logging.ERROR, __file__, 1, "failed", (), sys.exc_info())
    entry = json.loads(JsonFormatter().format(record))
    assert "RuntimeError: boom" in entry["exception"]
