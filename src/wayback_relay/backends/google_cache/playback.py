"""Google cache lookup backend.

The cache page exists (HTTP 200) only while Google holds a copy; the cache
URL itself is returned as the destination.
"""

from __future__ import annotations

from wayback_relay.backends.base import PlaybackBackend
from wayback_relay.backends.google_cache.config import GC_CACHE_URL
from wayback_relay.backends.registry import register_playback
from wayback_relay.core.exceptions import BackendError, PlaybackNotFoundError
from wayback_relay.core.models import Slot


@register_playback
class GoogleCachePlayback(PlaybackBackend):
    slot = Slot.GC
    name = "Google Cache"

    async def _lookup(self) -> str:
        async with self._client() as client:
            response = await client.get(GC_CACHE_URL, params={"q": f"cache:{self.target}"})
        if response.status_code == 404:
            raise PlaybackNotFoundError("not found", slot=self.slot.value)
        if response.status_code != 200:
            raise BackendError(
                f"Google cache returned HTTP {response.status_code}", slot=self.slot.value
            )
        return str(response.url)
