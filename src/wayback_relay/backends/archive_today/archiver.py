"""archive.today archiving backend.

Fetches the home page for the ``submitid`` token, then posts the URL to the
submit form.  archive.today answers with a ``Refresh`` header (new capture in
progress), a redirect to an existing snapshot, or the snapshot page itself.
A ``/wip/`` location is turned into the final snapshot URL.
"""

from __future__ import annotations

import logging

import httpx

from wayback_relay.backends.archive_today.config import (
    IS_BASE_URL,
    IS_REFRESH_PATTERN,
    IS_SUBMIT_ID_PATTERN,
    IS_SUBMIT_URL,
)
from wayback_relay.backends.base import ArchiveBackend
from wayback_relay.backends.registry import register
from wayback_relay.core.exceptions import BackendError
from wayback_relay.core.models import Slot

logger = logging.getLogger(__name__)


def _destination(response: httpx.Response) -> str | None:
    """Return the snapshot URL announced by a submit response, if any."""
    refresh = response.headers.get("Refresh")
    if refresh:
        match = IS_REFRESH_PATTERN.search(refresh)
        if match:
            return match.group(1).replace("/wip/", "/")

    location = response.headers.get("Location")
    if location:
        return str(response.url.join(location)).replace("/wip/", "/")

    final_url = str(response.url)
    if response.status_code == 200 and not final_url.rstrip("/").endswith("submit"):
        return final_url
    return None


@register
class ArchiveTodayArchiver(ArchiveBackend):
    """Archives a URL to archive.today."""

    slot = Slot.IS
    name = "archive.today"

    async def _archive(self) -> str:
        async with self._client() as client:
            home = await client.get(IS_BASE_URL)
            match = IS_SUBMIT_ID_PATTERN.search(home.text)
            form = {"url": self.target, "anyway": "1"}
            if match:
                form["submitid"] = match.group(1)
            else:
                logger.debug("archive.today: no submitid on home page, submitting without it")

            response = await client.post(IS_SUBMIT_URL, data=form, follow_redirects=False)

        if response.status_code == 429:
            raise BackendError("rate limited by archive.today (HTTP 429)", slot=self.slot.value)
        if response.status_code >= 400:
            raise BackendError(
                f"archive.today returned HTTP {response.status_code}", slot=self.slot.value
            )

        dst = _destination(response)
        if not dst:
            raise BackendError("no snapshot location in archive.today response", slot=self.slot.value)
        return dst
