"""Configuration for the Telegraph backend.

Telegraph pages are created through the public JSON API.  Without a
configured token (``Settings.telegraph_token``) an anonymous account is
created for each page.

Reference: https://telegra.ph/api
"""

from __future__ import annotations

TELEGRAPH_API_URL: str = "https://api.telegra.ph"
"""Base URL of the Telegraph API."""

TELEGRAPH_SHORT_NAME: str = "wayback"
"""Short name used when creating an anonymous account."""

TELEGRAPH_MAX_TITLE: int = 256
"""Maximum page title length accepted by Telegraph."""

TELEGRAPH_MAX_TEXT_CHARS: int = 30_000
"""Text budget per page; the API rejects content above 64 KB of JSON."""

TELEGRAPH_MAX_PARAGRAPHS: int = 200
"""Maximum number of paragraph nodes per page."""
