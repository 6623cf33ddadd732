"""Tests for Whisperer structured logging."""

import structlog

from whisperer.config import Settings
from whisperer.logging import (
    REDACTED,
    bind_context,
    configure_from_settings,
    configure_logging,
    get_logger,
    redact_secrets,
    unbind_context,
)


class TestConfigureLogging:
    """Tests for logging configuration."""

    def test_configure_with_defaults(self):
        configure_logging()
        logger = get_logger("test")
        logger.info("test message")

    def test_configure_with_text_format(self):
        configure_logging(level="DEBUG", format="text")
        logger = get_logger("test")
        logger.debug("text format message")

    def test_configure_from_settings(self):
        configure_from_settings(Settings(env="test", log_level="WARNING", log_format="json"))
        get_logger("test").warning("from settings")


class TestRedaction:
    """Tests for secret masking."""

    def test_sensitive_keys_are_masked(self):
        event = redact_secrets(
            None,
            "info",
            {"event": "delivering", "secret_token": "whsec_abc", "webhook_id": "wh_1"},
        )
        assert event["secret_token"] == REDACTED
        assert event["webhook_id"] == "wh_1"

    def test_nested_headers_are_masked(self):
        event = redact_secrets(
            None,
            "info",
            {"event": "request", "headers": {"X-Signature": "sha256=abc", "X-Attempt": "1"}},
        )
        assert event["headers"]["X-Signature"] == REDACTED
        assert event["headers"]["X-Attempt"] == "1"

    def test_none_values_left_alone(self):
        event = redact_secrets(None, "info", {"event": "x", "secret_token": None})
        assert event["secret_token"] is None


class TestContext:
    """Tests for context binding."""

    def test_bind_and_unbind(self):
        bind_context(user_id="user_1", trigger_type="analysis_completed")
        get_logger("test").info("with context")
        assert structlog.contextvars.get_contextvars()["user_id"] == "user_1"

        unbind_context("trigger_type", "user_id")

        assert "user_id" not in structlog.contextvars.get_contextvars()
        assert "trigger_type" not in structlog.contextvars.get_contextvars()
