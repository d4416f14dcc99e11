"""archive.today lookup backend (``/newest/`` timegate)."""

from __future__ import annotations

from wayback_relay.backends.archive_today.config import IS_NEWEST_URL
from wayback_relay.backends.base import PlaybackBackend
from wayback_relay.backends.registry import register_playback
from wayback_relay.core.exceptions import BackendError, PlaybackNotFoundError
from wayback_relay.core.models import Slot


@register_playback
class ArchiveTodayPlayback(PlaybackBackend):
    """Finds the newest archive.today snapshot of a URL."""

    slot = Slot.IS
    name = "archive.today"

    async def _lookup(self) -> str:
        timegate = IS_NEWEST_URL + self.target
        async with self._client() as client:
            response = await client.get(timegate, follow_redirects=True)
        if response.status_code == 404:
            raise PlaybackNotFoundError("not found", slot=self.slot.value)
        if response.status_code != 200:
            raise BackendError(
                f"archive.today returned HTTP {response.status_code}", slot=self.slot.value
            )
        final_url = str(response.url)
        if final_url == timegate:
            raise PlaybackNotFoundError("not found", slot=self.slot.value)
        return final_url
