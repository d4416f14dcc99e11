"""Tests for the per-backend BackendLimiter."""

from __future__ import annotations

import asyncio

import pytest

from wayback_relay.core.models import Slot
from wayback_relay.dispatch.limiter import BackendLimiter


class TestBackendLimiter:
    def test_from_settings_uses_max_concurrent_per_backend(self, settings) -> None:
        settings.max_concurrent_per_backend = 7
        assert BackendLimiter.from_settings(settings).limit == 7

    @pytest.mark.asyncio
    async def test_bound_is_per_slot(self) -> None:
        limiter = BackendLimiter(1)
        async with limiter.acquire(Slot.IA):
            # A different slot is not blocked by IA's permit.
            await asyncio.wait_for(self._hold(limiter, Slot.IS), timeout=1)
            assert limiter.in_use(Slot.IA) == 1

    @pytest.mark.asyncio
    async def test_same_slot_waits_for_permit(self) -> None:
        limiter = BackendLimiter(1)
        async with limiter.acquire(Slot.IA):
            with pytest.raises(TimeoutError):
                await asyncio.wait_for(self._hold(limiter, Slot.IA), timeout=0.05)
        assert limiter.in_use(Slot.IA) == 0

    @pytest.mark.asyncio
    async def test_zero_disables_bound(self) -> None:
        limiter = BackendLimiter(0)
        assert not limiter.bounded
        async with limiter.acquire(Slot.IA):
            await asyncio.wait_for(self._hold(limiter, Slot.IA), timeout=1)

    @staticmethod
    async def _hold(limiter: BackendLimiter, slot: Slot) -> None:
        async with limiter.acquire(slot):
            await asyncio.sleep(0)
