"""Configuration for the Google cache lookup backend."""

from __future__ import annotations

GC_CACHE_URL: str = "https://webcache.googleusercontent.com/search"
"""Cache endpoint; queried with ``q=cache:<url>``."""
