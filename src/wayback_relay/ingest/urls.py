"""URL extraction from free-form message text."""

from __future__ import annotations

import re

_URL_PATTERN: re.Pattern[str] = re.compile(r"https?://[^\s<>\"'`\[\]{}|\\^]+", re.IGNORECASE)

_TRAILING_PUNCTUATION: str = ".,;:!?'\"»…"


def _trim(url: str) -> str:
    """Drop trailing punctuation and unbalanced closing parentheses."""
    while url:
        last = url[-1]
        if last in _TRAILING_PUNCTUATION:
            url = url[:-1]
        elif last == ")" and url.count(")") > url.count("("):
            url = url[:-1]
        else:
            break
    return url


def extract_urls(text: str) -> list[str]:
    """Return the http(s) URLs found in *text*.

    Order of first appearance is preserved and duplicates are removed.

    Args:
        text: Message text (plain text, not HTML).

    Returns:
        List of URL strings, possibly empty.
    """
    if not text:
        return []
    seen: dict[str, None] = {}
    for match in _URL_PATTERN.finditer(text):
        url = _trim(match.group(0))
        if "://" in url and not url.endswith("://"):
            seen.setdefault(url, None)
    return list(seen)
