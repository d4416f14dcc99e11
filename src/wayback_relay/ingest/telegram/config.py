"""Telegram Bot API configuration.

The relay talks to the Bot API directly over HTTPS.  Updates are fetched by
long polling ``getUpdates``; each call acknowledges every update below the
``offset`` passed in.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# API endpoints
# ---------------------------------------------------------------------------

TELEGRAM_API_BASE: str = "https://api.telegram.org"
"""Bot API base URL; methods live under ``/bot<token>/<method>``."""


def telegram_method_url(token: str, method: str) -> str:
    """Return the URL of Bot API *method* for bot *token*."""
    return f"{TELEGRAM_API_BASE}/bot{token}/{method}"


# ---------------------------------------------------------------------------
# API constants
# ---------------------------------------------------------------------------

TELEGRAM_ALLOWED_UPDATES: list[str] = ["message", "channel_post"]
"""Update kinds requested from ``getUpdates``."""

TELEGRAM_MAX_MESSAGE_CHARS: int = 4096
"""Maximum length of a ``sendMessage`` text."""

TELEGRAM_HTTP_MARGIN: float = 10.0
"""Seconds added to the long-poll timeout for the HTTP request timeout."""
