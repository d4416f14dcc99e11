"""Tests for the PlaybackDispatcher.

Covers:
- every PLAYBACK_SLOTS backend is queried for every URL, regardless of enable flags
- "not found" is recorded as a soft failure
- an all-failed batch is returned, not raised
- malformed URL → InvalidURLError with partial records
"""

from __future__ import annotations

import pytest

from wayback_relay.core.exceptions import InvalidURLError, PlaybackNotFoundError
from wayback_relay.core.models import PLAYBACK_SLOTS, Slot
from wayback_relay.dispatch.playback import PlaybackDispatcher


class TestPlaybackDispatcher:
    @pytest.mark.asyncio
    async def test_queries_every_playback_slot(self, settings, playback_factory) -> None:
        for slot in PLAYBACK_SLOTS:
            playback_factory(slot)
        settings.enable_ia = False

        collects = await PlaybackDispatcher(settings).playback(["https://example.com/"])

        assert {c.slot for c in collects} == set(PLAYBACK_SLOTS)
        assert all(c.ok for c in collects)

    @pytest.mark.asyncio
    async def test_not_found_is_soft(self, settings, playback_factory) -> None:
        for slot in PLAYBACK_SLOTS:
            playback_factory(slot)
        playback_factory(Slot.GC, error=PlaybackNotFoundError("not found", slot="gc"))

        collects = await PlaybackDispatcher(settings).playback(["https://example.com/"])

        by_slot = {c.slot: c for c in collects}
        assert not by_slot[Slot.GC].ok
        assert by_slot[Slot.GC].dst == "not found"
        assert by_slot[Slot.IA].ok

    @pytest.mark.asyncio
    async def test_all_failed_batch_is_returned(self, settings, playback_factory) -> None:
        for slot in PLAYBACK_SLOTS:
            playback_factory(slot, error=PlaybackNotFoundError("not found"))

        collects = await PlaybackDispatcher(settings).playback(["https://example.com/"])

        assert len(collects) == len(PLAYBACK_SLOTS)
        assert not any(c.ok for c in collects)

    @pytest.mark.asyncio
    async def test_malformed_url_raises(self, settings, playback_factory) -> None:
        for slot in PLAYBACK_SLOTS:
            playback_factory(slot)

        with pytest.raises(InvalidURLError) as excinfo:
            await PlaybackDispatcher(settings).playback(["https://example.com/", "nope"])

        assert excinfo.value.url == "nope"
        assert all(c.src == "https://example.com/" for c in excinfo.value.collects)

    @pytest.mark.asyncio
    async def test_empty_url_list_raises_value_error(self, settings) -> None:
        with pytest.raises(ValueError):
            await PlaybackDispatcher(settings).playback([])
