"""Internet Archive lookup backend (availability API)."""

from __future__ import annotations

from typing import Any

from wayback_relay.backends.base import PlaybackBackend
from wayback_relay.backends.internet_archive.config import IA_AVAILABILITY_URL
from wayback_relay.backends.registry import register_playback
from wayback_relay.core.exceptions import BackendError, PlaybackNotFoundError
from wayback_relay.core.models import Slot


@register_playback
class InternetArchivePlayback(PlaybackBackend):
    """Finds the closest Wayback Machine snapshot of a URL."""

    slot = Slot.IA
    name = "Internet Archive"

    async def _lookup(self) -> str:
        async with self._client() as client:
            response = await client.get(IA_AVAILABILITY_URL, params={"url": self.target})
        if response.status_code != 200:
            raise BackendError(
                f"availability API returned HTTP {response.status_code}", slot=self.slot.value
            )
        data: dict[str, Any] = response.json()
        closest = (data.get("archived_snapshots") or {}).get("closest") or {}
        if not closest.get("available") or not closest.get("url"):
            raise PlaybackNotFoundError("not found", slot=self.slot.value)
        return str(closest["url"])
