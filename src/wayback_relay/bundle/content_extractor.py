"""Readable text and title from captured HTML.

``trafilatura`` does the boilerplate removal.  When it is missing, fails, or
finds nothing (very short pages, script-rendered sites), a small
``html.parser`` pass keeps whatever visible text the page has.  The bundle
provider writes the result as the ``text`` asset; the Telegraph backend uses
it when no bundle was captured.
"""

from __future__ import annotations

import html as html_module
import logging
import re
from dataclasses import dataclass
from html.parser import HTMLParser

logger = logging.getLogger(__name__)

MAX_TEXT_CHARS: int = 200_000
"""Upper bound on extracted text kept per page."""

_TITLE_PATTERN: re.Pattern[str] = re.compile(r"<title[^>]*>(.*?)</title>", re.IGNORECASE | re.DOTALL)
_INLINE_SPACE: re.Pattern[str] = re.compile(r"[ \t\r\f\v]+")
_BLANK_RUN: re.Pattern[str] = re.compile(r"\n{3,}")

_INVISIBLE = {"script", "style", "noscript", "head", "meta", "link", "template"}
_BLOCK = {"p", "br", "div", "li", "h1", "h2", "h3", "h4", "h5", "h6", "tr", "section", "article"}


@dataclass
class ExtractedContent:
    """Text and title pulled out of one page.  Either may be ``None``."""

    text: str | None
    title: str | None


class _VisibleText(HTMLParser):
    def __init__(self) -> None:
        super().__init__()
        self.parts: list[str] = []
        self.hidden = 0

    def _tag(self, tag: str, opening: bool) -> None:
        tag = tag.lower()
        if tag in _INVISIBLE:
            self.hidden = self.hidden + 1 if opening else max(self.hidden - 1, 0)
        elif tag in _BLOCK:
            self.parts.append("\n")

    def handle_starttag(self, tag: str, attrs: list) -> None:  # type: ignore[override]
        self._tag(tag, True)

    def handle_endtag(self, tag: str) -> None:
        self._tag(tag, False)

    def handle_data(self, data: str) -> None:
        if not self.hidden:
            self.parts.append(data)


def _tidy(raw: str) -> str:
    lines = [_INLINE_SPACE.sub(" ", line).strip() for line in html_module.unescape(raw).split("\n")]
    return _BLANK_RUN.sub("\n\n", "\n".join(lines)).strip()


def strip_tags(html: str) -> str:
    """Visible text of *html*, one line per block element."""
    parser = _VisibleText()
    try:
        parser.feed(html)
        parser.close()
    except Exception as exc:  # noqa: BLE001
        logger.debug("extractor: html parser gave up early: %s", exc)
    return _tidy("".join(parser.parts))


def _html_title(html: str) -> str | None:
    match = _TITLE_PATTERN.search(html)
    if match is None:
        return None
    return " ".join(html_module.unescape(match.group(1)).split()) or None


def _run_trafilatura(html: str, url: str) -> tuple[str | None, str | None]:
    try:
        import trafilatura  # type: ignore[import-untyped]
    except ImportError:
        logger.warning("extractor: trafilatura not installed; falling back to tag stripping")
        return None, None

    try:
        body = trafilatura.extract(
            html,
            url=url,
            include_comments=False,
            include_tables=True,
            output_format="txt",
        )
        meta = trafilatura.extract_metadata(html, default_url=url)
    except Exception as exc:  # noqa: BLE001
        logger.warning("extractor: trafilatura extraction failed for %s: %s", url, exc)
        return None, None
    return body or None, getattr(meta, "title", None) or None


def extract_from_html(html: str, url: str) -> ExtractedContent:
    """Extract readable text and a title from a page.

    Args:
        html: Raw HTML, possibly partial or malformed.
        url: Address the page was loaded from; trafilatura uses it for
            site-specific heuristics.

    Returns:
        An :class:`ExtractedContent`.  Text has NUL bytes removed and is cut
        at :data:`MAX_TEXT_CHARS`.
    """
    text, title = _run_trafilatura(html, url)
    text = text or strip_tags(html) or None
    title = title or _html_title(html)

    if text is not None:
        text = text.replace("\x00", "")
        if len(text) > MAX_TEXT_CHARS:
            logger.debug("extractor: truncated text to %d chars for %s", MAX_TEXT_CHARS, url)
            text = text[:MAX_TEXT_CHARS]
    return ExtractedContent(text=text, title=title)
