"""Telegraph lookup backend.

Telegraph pages are named after their title, not their source URL, so an
existing page cannot be found from the URL alone.
"""

from __future__ import annotations

from wayback_relay.backends.base import PlaybackBackend
from wayback_relay.backends.registry import register_playback
from wayback_relay.core.exceptions import PlaybackNotFoundError
from wayback_relay.core.models import Slot


@register_playback
class TelegraphPlayback(PlaybackBackend):
    slot = Slot.PH
    name = "Telegraph"

    async def _lookup(self) -> str:
        raise PlaybackNotFoundError("not found", slot=self.slot.value)
