"""Configuration for the archive.today backend.

archive.today serves the same archive from several mirror domains; only
``archive.ph`` is used.  Submission needs the ``submitid`` token embedded in
the home page form.
"""

from __future__ import annotations

import re

IS_BASE_URL: str = "https://archive.ph/"
"""Home page, fetched first to obtain the ``submitid`` form token."""

IS_SUBMIT_URL: str = "https://archive.ph/submit/"
"""Form endpoint accepting ``url``, ``anyway`` and ``submitid``."""

IS_NEWEST_URL: str = "https://archive.ph/newest/"
"""Timegate redirecting to the newest snapshot of the appended URL."""

IS_SUBMIT_ID_PATTERN: re.Pattern[str] = re.compile(
    r'name="submitid"\s+value="([^"]+)"'
)
"""Extracts the hidden ``submitid`` value from the home page HTML."""

IS_REFRESH_PATTERN: re.Pattern[str] = re.compile(r"url=(\S+)", re.IGNORECASE)
"""Extracts the target of a ``Refresh: 0;url=...`` header."""
