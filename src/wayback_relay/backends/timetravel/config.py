"""Configuration for the Time Travel lookup backend.

Time Travel aggregates Memento TimeMaps from many web archives and returns
the memento closest to a requested datetime.

Reference: http://timetravel.mementoweb.org/guide/api/
"""

from __future__ import annotations

TT_API_URL: str = "http://timetravel.mementoweb.org/api/json/{timestamp}/{url}"
"""JSON API template.  ``timestamp`` is ``YYYYMMDDhhmmss`` (UTC)."""

TT_TIMESTAMP_FORMAT: str = "%Y%m%d%H%M%S"
