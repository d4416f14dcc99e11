"""IPFS archiving backend.

When the batch captured a bundle for the URL, its rendered HTML is uploaded
as-is; otherwise the page is fetched first.  The node answers with the
content identifier, which is turned into a gateway link.
"""

from __future__ import annotations

import logging

from wayback_relay.backends.base import ArchiveBackend
from wayback_relay.backends.ipfs.config import IPFS_ADD_PARAMS, IPFS_ADD_PATH, IPFS_FILENAME
from wayback_relay.backends.registry import register
from wayback_relay.core.exceptions import BackendError
from wayback_relay.core.models import Slot

logger = logging.getLogger(__name__)


@register
class IPFSArchiver(ArchiveBackend):
    """Stores the page HTML on IPFS and returns its gateway URL."""

    slot = Slot.IP
    name = "IPFS"
    uses_bundle = True

    async def _archive(self) -> str:
        async with self._client() as client:
            if self.bundle is not None and self.bundle.html:
                html = self.bundle.html
            else:
                page = await client.get(self.target, follow_redirects=True)
                page.raise_for_status()
                html = page.text

            endpoint = self.settings.ipfs_api.rstrip("/") + IPFS_ADD_PATH
            response = await client.post(
                endpoint,
                params=IPFS_ADD_PARAMS,
                files={"file": (IPFS_FILENAME, html.encode("utf-8"), "text/html")},
            )

        if response.status_code != 200:
            raise BackendError(f"IPFS node returned HTTP {response.status_code}", slot=self.slot.value)
        cid = response.json().get("Hash")
        if not cid:
            raise BackendError("IPFS node returned no content hash", slot=self.slot.value)
        return f"{self.settings.ipfs_gateway.rstrip('/')}/ipfs/{cid}"
