"""Unit tests for logging setup."""

import logging

import pytest
import structlog

from app.core.logging_config import CHATTY_LOGGERS, add_service, setup_logging


@pytest.fixture(autouse=True)
def restore_logging():
    levels = {name: logging.getLogger(name).level for name in CHATTY_LOGGERS}
    yield
    for name, level in levels.items():
        logging.getLogger(name).setLevel(level)
    structlog.reset_defaults()


def test_transport_loggers_quieted_at_debug():
    setup_logging(log_level="DEBUG")

    for name in CHATTY_LOGGERS:
        assert logging.getLogger(name).level == logging.WARNING


def test_transport_loggers_follow_stricter_level():
    setup_logging(log_level="ERROR")

    assert logging.getLogger("httpx").level == logging.ERROR


def test_unknown_level_falls_back_to_info():
    setup_logging(log_level="chatty")

    assert logging.getLogger("httpx").level == logging.WARNING


def test_add_service_keeps_explicit_value():
    processor = add_service("Nature Remo Exporter")

    assert processor(None, "info", {"event": "x"})["service"] == "Nature Remo Exporter"
    assert processor(None, "info", {"event": "x", "service": "other"})["service"] == "other"


def test_service_processor_only_when_named():
    setup_logging(use_json=True, include_caller_info=False)
    unnamed = structlog.get_config()["processors"]

    setup_logging(use_json=True, include_caller_info=False, service="remo")
    named = structlog.get_config()["processors"]

    assert len(named) == len(unnamed) + 1
    assert isinstance(named[-1], structlog.processors.JSONRenderer)
