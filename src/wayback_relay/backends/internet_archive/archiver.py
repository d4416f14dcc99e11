"""Internet Archive archiving backend.

Submits the URL to Save Page Now (``GET /save/<url>``).  The Wayback Machine
answers with a ``Content-Location`` header naming the new snapshot, or
redirects straight to it; either is accepted as the destination.
"""

from __future__ import annotations

import logging
from urllib.parse import urljoin

from wayback_relay.backends.base import ArchiveBackend
from wayback_relay.backends.internet_archive.config import (
    IA_BASE_URL,
    IA_SAVE_ENDPOINT,
    IA_SNAPSHOT_PATTERN,
)
from wayback_relay.backends.registry import register
from wayback_relay.core.exceptions import BackendError
from wayback_relay.core.models import Slot

logger = logging.getLogger(__name__)


@register
class InternetArchiveArchiver(ArchiveBackend):
    """Archives a URL to the Wayback Machine via Save Page Now."""

    slot = Slot.IA
    name = "Internet Archive"

    async def _archive(self) -> str:
        async with self._client() as client:
            response = await client.get(IA_SAVE_ENDPOINT + self.target, follow_redirects=True)

        if response.status_code == 429:
            raise BackendError("rate limited by web.archive.org (HTTP 429)", slot=self.slot.value)

        location = response.headers.get("Content-Location")
        if location:
            return urljoin(IA_BASE_URL, location)

        final_url = str(response.url)
        if IA_SNAPSHOT_PATTERN.match(final_url):
            return final_url

        if response.status_code >= 400:
            raise BackendError(
                f"web.archive.org returned HTTP {response.status_code}", slot=self.slot.value
            )
        raise BackendError("no snapshot location in Save Page Now response", slot=self.slot.value)
