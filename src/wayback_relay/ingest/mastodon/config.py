"""Mastodon REST API configuration.

The relay reads its direct conversations instead of the streaming API: one
``GET /api/v1/conversations`` per poll interval.  Each handled conversation
is deleted afterwards so it is not picked up again.
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# API endpoints (relative to the instance base URL)
# ---------------------------------------------------------------------------

MASTODON_CONVERSATIONS_PATH: str = "/api/v1/conversations"
"""List direct conversations."""

MASTODON_CONVERSATION_PATH: str = "/api/v1/conversations/{conversation_id}"
"""Delete a conversation; fill in ``conversation_id`` before use."""

MASTODON_STATUSES_PATH: str = "/api/v1/statuses"
"""Post a status."""

MASTODON_CLEAR_NOTIFICATIONS_PATH: str = "/api/v1/notifications/clear"
"""Dismiss every notification."""

# ---------------------------------------------------------------------------
# API constants
# ---------------------------------------------------------------------------

MASTODON_MAX_RESULTS_PER_PAGE: int = 40
"""Maximum conversations per request (Mastodon API maximum)."""

MASTODON_MAX_STATUS_CHARS: int = 500
"""Default status length limit of a Mastodon instance."""

MASTODON_CLEAR_INTERVAL: float = 600.0
"""Seconds between notification clean-ups."""
