"""Logging setup: stdlib loggers rendered by structlog.

Modules log through ``logging.getLogger(__name__)`` (or
``structlog.get_logger`` when they want key/value context).  The CLI calls
:func:`configure_logging` once; after that every record, from our code or
from libraries, goes through the same processor chain and comes out as one
JSON object per line, or as coloured console output at ``DEBUG``.

Two relay-specific processors run on every record:

- :func:`add_conversation_id` adds the chat conversation being processed,
  taken from :data:`conversation_id_var`.
- :func:`redact_secrets` masks credential-looking fields and Telegram bot
  tokens embedded in Bot API URLs.
"""

from __future__ import annotations

import logging
import re
import sys
from contextvars import ContextVar
from typing import Any

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

REDACTED: str = "[REDACTED]"

conversation_id_var: ContextVar[str | None] = ContextVar("conversation_id", default=None)
"""Conversation handled by the current task; set by the ingestion loop."""

_SECRET_KEY: re.Pattern[str] = re.compile(
    r"token|secret|password|authorization|api_key|bearer", re.IGNORECASE
)
_BOT_TOKEN_IN_URL: re.Pattern[str] = re.compile(r"/bot\d+:[\w-]+")

_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore", "asyncio", "trafilatura")


# ---------------------------------------------------------------------------
# Processors
# ---------------------------------------------------------------------------


def _scrub(value: Any) -> Any:
    if isinstance(value, str):
        return _BOT_TOKEN_IN_URL.sub("/bot" + REDACTED, value)
    if isinstance(value, dict):
        return {
            k: REDACTED if _SECRET_KEY.search(str(k)) else _scrub(v)
            for k, v in value.items()
        }
    return value


def redact_secrets(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:  # noqa: ARG001
    """Mask secret-named keys (at any depth) and bot tokens inside URLs.

    httpx logs full request URLs, and Bot API URLs carry the token in their
    path, so string values are scrubbed as well as keys.
    """
    return _scrub(event_dict)


def add_conversation_id(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:  # noqa: ARG001
    cid = conversation_id_var.get()
    if cid is not None:
        event_dict.setdefault("conversation_id", cid)
    return event_dict


def _shared_processors() -> list[Processor]:
    return [
        structlog.contextvars.merge_contextvars,
        add_conversation_id,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        redact_secrets,
    ]


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


def configure_logging(log_level: str = "INFO") -> None:
    """Route all logging to stdout through structlog.

    Safe to call more than once; the root handler is replaced each time.

    Args:
        log_level: Level name, case-insensitive.  ``DEBUG`` also switches to
            the human-readable console renderer and leaves library loggers
            at their own levels.
    """
    name = log_level.upper()
    level = logging.getLevelName(name)
    if not isinstance(level, int):
        level = logging.INFO
    development = name == "DEBUG"

    renderer: Processor = (
        structlog.dev.ConsoleRenderer(colors=True)
        if development
        else structlog.processors.JSONRenderer()
    )
    shared = _shared_processors()

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            foreign_pre_chain=shared,
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
        )
    )
    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    quiet_level = logging.NOTSET if development else logging.WARNING
    for noisy in _QUIET_LOGGERS:
        logging.getLogger(noisy).setLevel(quiet_level)

    structlog.configure(
        processors=[*shared, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
