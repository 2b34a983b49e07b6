"""Tests for structured logging setup."""

import json
import logging

import structlog

from fallible.core.logging import configure_logging, get_logger


class TestConfigureLogging:
    """Tests for configure_logging."""

    def teardown_method(self):
        structlog.contextvars.clear_contextvars()
        structlog.reset_defaults()

    def test_json_output(self, caplog):
        caplog.set_level(logging.DEBUG)
        configure_logging(level="DEBUG", json_format=True, service="billing-sync")

        get_logger("json-test").info("fetched", url="https://api.example.com")

        payload = json.loads(caplog.records[-1].getMessage())
        assert payload["event"] == "fetched"
        assert payload["url"] == "https://api.example.com"
        assert payload["service.name"] == "billing-sync"
        assert payload["log.level"] == "info"
        assert "@timestamp" in payload
        assert "timestamp" not in payload
        assert "level" not in payload

    def test_level_filters(self, caplog):
        caplog.set_level(logging.DEBUG)
        configure_logging(level="WARNING", json_format=True)

        get_logger("filter-test").debug("hidden")

        assert not any("hidden" in r.getMessage() for r in caplog.records)

    def test_bound_contextvars_merged(self, caplog):
        """Fields bound for a scope appear on every record inside it."""
        caplog.set_level(logging.DEBUG)
        configure_logging(level="DEBUG", json_format=True)

        with structlog.contextvars.bound_contextvars(url="https://api.example.com/items"):
            get_logger("context-test").info("inside")
        get_logger("context-test").info("outside")

        inside, outside = (json.loads(r.getMessage()) for r in caplog.records[-2:])
        assert inside["url"] == "https://api.example.com/items"
        assert "url" not in outside
