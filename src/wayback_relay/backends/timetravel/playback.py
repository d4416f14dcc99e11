"""Time Travel lookup backend: closest memento across web archives."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from wayback_relay.backends.base import PlaybackBackend
from wayback_relay.backends.registry import register_playback
from wayback_relay.backends.timetravel.config import TT_API_URL, TT_TIMESTAMP_FORMAT
from wayback_relay.core.exceptions import BackendError, PlaybackNotFoundError
from wayback_relay.core.models import Slot


@register_playback
class TimeTravelPlayback(PlaybackBackend):
    """Asks the memento aggregator for the memento closest to now."""

    slot = Slot.TT
    name = "Time Travel"

    async def _lookup(self) -> str:
        timestamp = datetime.now(timezone.utc).strftime(TT_TIMESTAMP_FORMAT)
        endpoint = TT_API_URL.format(timestamp=timestamp, url=self.target)
        async with self._client() as client:
            response = await client.get(endpoint, follow_redirects=True)
        if response.status_code == 404:
            raise PlaybackNotFoundError("not found", slot=self.slot.value)
        if response.status_code != 200:
            raise BackendError(
                f"Time Travel returned HTTP {response.status_code}", slot=self.slot.value
            )
        data: dict[str, Any] = response.json()
        closest = (data.get("mementos") or {}).get("closest") or {}
        uris = closest.get("uri") or []
        if not uris:
            raise PlaybackNotFoundError("not found", slot=self.slot.value)
        return str(uris[0])
