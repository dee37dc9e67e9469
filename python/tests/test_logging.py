"""Tests for structured logging context."""

import logging

import structlog

from corsgate.logging import (
    add_request_context,
    clear_request_context,
    configure_logging,
    get_logger,
    set_request_context,
)


class TestRequestContext:
    """ContextVar values are merged into log events."""

    def teardown_method(self):
        clear_request_context()

    def test_context_added_to_event(self):
        set_request_context(path="/health", method="OPTIONS", origin="https://google.com")
        event = add_request_context(None, "debug", {"event": "cors_preflight_request"})

        assert event["path"] == "/health"
        assert event["method"] == "OPTIONS"
        assert event["origin"] == "https://google.com"

    def test_missing_values_not_added(self):
        set_request_context(path="/health")
        event = add_request_context(None, "debug", {"event": "x"})

        assert event == {"event": "x", "path": "/health"}

    def test_explicit_event_fields_win(self):
        set_request_context(method="GET")
        event = add_request_context(None, "debug", {"event": "x", "method": "POST"})

        assert event["method"] == "POST"

    def test_clear(self):
        set_request_context(path="/a", method="GET", origin="https://a.test")
        clear_request_context()

        assert add_request_context(None, "debug", {"event": "x"}) == {"event": "x"}


class TestConfigureLogging:
    """configure_logging wires structlog into the root logger."""

    def teardown_method(self):
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()
        logging.getLogger().setLevel(logging.WARNING)

    def test_debug_level(self):
        configure_logging(json_format=False, level=logging.DEBUG)
        assert logging.getLogger().level == logging.DEBUG
        assert len(logging.getLogger().handlers) == 1

    def test_json_output(self, capsys):
        configure_logging(json_format=True)
        get_logger("corsgate.test").info("cors_middleware_enabled", style="asgi")

        out = capsys.readouterr().out
        assert '"event": "cors_middleware_enabled"' in out
        assert '"style": "asgi"' in out
