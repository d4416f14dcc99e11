"""Unit tests for the structured logging configuration.

Verifies that ``configure_logging()`` produces well-formed output, that the
``conversation_id_var`` context variable is propagated, and that secrets are
redacted.
"""

from __future__ import annotations

import json
import logging
from io import StringIO

import structlog

from wayback_relay.core.logging_config import configure_logging, conversation_id_var


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _capture(log_level: str, emit) -> list[dict]:  # type: ignore[no-untyped-def,type-arg]
    """Run *emit* with the root handler writing to a buffer; return JSON records."""
    configure_logging(log_level)

    buffer = StringIO()
    root = logging.getLogger()
    originals = []
    for handler in root.handlers:
        if hasattr(handler, "stream"):
            originals.append((handler, handler.stream))
            handler.stream = buffer

    try:
        emit()
    finally:
        for handler, stream in originals:
            handler.flush()
            handler.stream = stream

    lines = [line for line in buffer.getvalue().splitlines() if line.strip()]
    return [json.loads(line) for line in lines]


def _find(records: list[dict], event: str) -> dict:  # type: ignore[type-arg]
    target = next((r for r in records if r.get("event") == event), None)
    assert target is not None, f"No record with event={event!r} in {records!r}"
    return target


# ---------------------------------------------------------------------------
# Tests
# ---------------------------------------------------------------------------


class TestConfigureLoggingJson:
    def test_json_contains_required_fields(self) -> None:
        records = _capture("INFO", lambda: logging.getLogger("test.logging").info("required_fields"))
        target = _find(records, "required_fields")
        assert target["level"] == "info"
        assert target["logger"] == "test.logging"
        assert "timestamp" in target

    def test_calling_twice_keeps_one_handler(self) -> None:
        configure_logging("INFO")
        configure_logging("INFO")
        assert len(logging.getLogger().handlers) == 1

    def test_noisy_loggers_silenced(self) -> None:
        configure_logging("INFO")
        assert logging.getLogger("httpx").level == logging.WARNING


class TestConversationIdContextVar:
    def test_conversation_id_appears_in_output(self) -> None:
        token = conversation_id_var.set("123:456")
        try:
            records = _capture("INFO", lambda: logging.getLogger("test.logging").info("with_conversation"))
        finally:
            conversation_id_var.reset(token)
        assert _find(records, "with_conversation")["conversation_id"] == "123:456"

    def test_absent_when_unset(self) -> None:
        records = _capture("INFO", lambda: logging.getLogger("test.logging").info("no_conversation"))
        assert "conversation_id" not in _find(records, "no_conversation")


class TestSecretRedaction:
    def test_token_fields_are_redacted(self) -> None:
        def emit() -> None:
            structlog.get_logger("test.logging").info("with_secret", telegram_token="123:abc", slot="ia")

        target = _find(_capture("INFO", emit), "with_secret")
        assert target["telegram_token"] == "[REDACTED]"
        assert target["slot"] == "ia"

    def test_nested_secret_keys_are_redacted(self) -> None:
        def emit() -> None:
            structlog.get_logger("test.logging").info("nested", headers={"Authorization": "Bearer x", "Accept": "*/*"})

        target = _find(_capture("INFO", emit), "nested")
        assert target["headers"] == {"Authorization": "[REDACTED]", "Accept": "*/*"}

    def test_bot_token_in_url_is_redacted(self) -> None:
        url = "https://api.telegram.org/bot123456:AA-bb_CC/sendMessage"
        records = _capture("INFO", lambda: logging.getLogger("test.logging").info("POST %s", url))

        event = next(r["event"] for r in records if r["event"].startswith("POST "))
        assert event == "POST https://api.telegram.org/bot[REDACTED]/sendMessage"
