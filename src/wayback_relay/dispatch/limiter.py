"""Per-backend concurrency bound for outbound calls."""

from __future__ import annotations

import asyncio
from collections import Counter
from contextlib import asynccontextmanager
from typing import AsyncIterator

from wayback_relay.config.settings import Settings
from wayback_relay.core.models import Slot


class BackendLimiter:
    """One :class:`asyncio.Semaphore` per backend slot.

    Semaphores are created lazily the first time a slot is used.  A limit of
    ``0`` (or less) disables the bound entirely.

    Args:
        limit: Maximum number of concurrent calls per slot.
    """

    def __init__(self, limit: int) -> None:
        self.limit = limit
        self._semaphores: dict[Slot, asyncio.Semaphore] = {}
        self._active: Counter[Slot] = Counter()

    @classmethod
    def from_settings(cls, settings: Settings) -> BackendLimiter:
        return cls(settings.max_concurrent_per_backend)

    @property
    def bounded(self) -> bool:
        return self.limit > 0

    @asynccontextmanager
    async def acquire(self, slot: Slot) -> AsyncIterator[None]:
        """Hold one of *slot*'s permits for the duration of the block."""
        if not self.bounded:
            yield
            return
        semaphore = self._semaphores.get(slot)
        if semaphore is None:
            semaphore = self._semaphores[slot] = asyncio.Semaphore(self.limit)
        async with semaphore:
            self._active[slot] += 1
            try:
                yield
            finally:
                self._active[slot] -= 1

    def in_use(self, slot: Slot) -> int:
        """Return the number of permits of *slot* currently held."""
        return self._active[slot]
