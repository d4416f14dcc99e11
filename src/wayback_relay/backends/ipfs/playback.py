"""IPFS lookup backend.

IPFS content is addressed by hash, not by source URL, and there is no public
index mapping one to the other, so a lookup can never succeed.  The slot is
still queried so that replies list it alongside the other services.
"""

from __future__ import annotations

from wayback_relay.backends.base import PlaybackBackend
from wayback_relay.backends.registry import register_playback
from wayback_relay.core.exceptions import PlaybackNotFoundError
from wayback_relay.core.models import Slot


@register_playback
class IPFSPlayback(PlaybackBackend):
    slot = Slot.IP
    name = "IPFS"

    async def _lookup(self) -> str:
        raise PlaybackNotFoundError("not found", slot=self.slot.value)
