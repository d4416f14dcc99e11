"""Telegraph archiving backend.

Builds a Telegraph page from the captured bundle (title, extracted text and
the mirrored screenshot, when present).  Without a bundle the page is
fetched and its text extracted on the spot.  The page always ends with a
link back to the source URL.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from wayback_relay.backends.base import ArchiveBackend
from wayback_relay.backends.registry import register
from wayback_relay.backends.telegraph.config import (
    TELEGRAPH_API_URL,
    TELEGRAPH_MAX_PARAGRAPHS,
    TELEGRAPH_MAX_TEXT_CHARS,
    TELEGRAPH_MAX_TITLE,
    TELEGRAPH_SHORT_NAME,
)
from wayback_relay.bundle.content_extractor import extract_from_html
from wayback_relay.core.exceptions import BackendError
from wayback_relay.core.models import Slot

logger = logging.getLogger(__name__)


def build_nodes(text: str, source: str, image: str | None = None) -> list[dict[str, Any]]:
    """Convert plain text into Telegraph content nodes.

    Args:
        text: Article text; blank lines separate paragraphs.
        source: Source URL linked at the bottom of the page.
        image: Optional screenshot URL shown above the text.

    Returns:
        List of Telegraph ``Node`` dicts.
    """
    nodes: list[dict[str, Any]] = []
    if image:
        nodes.append({"tag": "figure", "children": [{"tag": "img", "attrs": {"src": image}}]})

    budget = TELEGRAPH_MAX_TEXT_CHARS
    for paragraph in text.split("\n\n"):
        paragraph = paragraph.strip()
        if not paragraph:
            continue
        if budget <= 0 or len(nodes) >= TELEGRAPH_MAX_PARAGRAPHS:
            break
        paragraph = paragraph[:budget]
        budget -= len(paragraph)
        nodes.append({"tag": "p", "children": [paragraph]})

    nodes.append(
        {
            "tag": "p",
            "children": [
                "Source: ",
                {"tag": "a", "attrs": {"href": source}, "children": [source]},
            ],
        }
    )
    return nodes


@register
class TelegraphArchiver(ArchiveBackend):
    """Publishes the page content as a Telegraph article."""

    slot = Slot.PH
    name = "Telegraph"
    uses_bundle = True

    async def _archive(self) -> str:
        async with self._client() as client:
            title, text, image = await self._content(client)
            token = self.settings.telegraph_token or await self._create_account(client)
            response = await client.post(
                f"{TELEGRAPH_API_URL}/createPage",
                json={
                    "access_token": token,
                    "title": title[:TELEGRAPH_MAX_TITLE],
                    "author_name": self.settings.telegraph_author,
                    "author_url": self.target,
                    "content": build_nodes(text, self.target, image),
                    "return_content": False,
                },
            )
        return self._result(response)["url"]

    async def _content(self, client: httpx.AsyncClient) -> tuple[str, str, str | None]:
        """Return ``(title, text, screenshot_url)`` from the bundle or the live page."""
        if self.bundle is not None:
            text = self.bundle.read_text()
            if text or self.bundle.image.remote:
                title = self.bundle.title or self.target
                return title, text, self.bundle.image.remote

        page = await client.get(self.target, follow_redirects=True)
        page.raise_for_status()
        extracted = extract_from_html(page.text, url=self.target)
        return extracted.title or self.target, extracted.text or "", None

    async def _create_account(self, client: httpx.AsyncClient) -> str:
        response = await client.post(
            f"{TELEGRAPH_API_URL}/createAccount",
            json={
                "short_name": TELEGRAPH_SHORT_NAME,
                "author_name": self.settings.telegraph_author,
            },
        )
        return self._result(response)["access_token"]

    def _result(self, response: httpx.Response) -> dict[str, Any]:
        if response.status_code != 200:
            raise BackendError(f"Telegraph returned HTTP {response.status_code}", slot=self.slot.value)
        payload: dict[str, Any] = response.json()
        if not payload.get("ok"):
            raise BackendError(
                f"Telegraph error: {payload.get('error', 'unknown')}", slot=self.slot.value
            )
        return payload["result"]
