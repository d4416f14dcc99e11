"""Configuration for the Internet Archive backend.

Save Page Now is unauthenticated and IP-rate-limited; a 429 response is
recorded as a failure (no retry).  The availability API answers lookups.
"""

from __future__ import annotations

import re

IA_BASE_URL: str = "https://web.archive.org"
"""Root of the Wayback Machine, used to absolutize relative locations."""

IA_SAVE_ENDPOINT: str = "https://web.archive.org/save/"
"""Save Page Now endpoint.  The source URL is appended verbatim."""

IA_AVAILABILITY_URL: str = "https://archive.org/wayback/available"
"""Availability API returning the closest snapshot of a URL."""

IA_SNAPSHOT_PATTERN: re.Pattern[str] = re.compile(r"^https?://web\.archive\.org/web/\d{14}")
"""Matches a snapshot URL such as ``https://web.archive.org/web/20240101000000/...``."""
