"""Lookup fan-out: find existing archived copies of URLs.

Same shape as :class:`~wayback_relay.dispatch.dispatcher.Dispatcher`, minus
bundles and the enable filter: every lookup backend in
:data:`~wayback_relay.core.models.PLAYBACK_SLOTS` is queried.  An empty
result is returned as-is rather than raised.
"""

from __future__ import annotations

import asyncio
import logging

import httpx

from wayback_relay.backends.registry import autodiscover, resolve_playback
from wayback_relay.config.settings import Settings
from wayback_relay.core.exceptions import BackendError, InvalidURLError
from wayback_relay.core.models import (
    PLAYBACK_SLOTS,
    SLOT_EXTRAS,
    ArchiveFailure,
    Collect,
    Outcome,
    Slot,
    parse_url,
)
from wayback_relay.dispatch.dispatcher import _Batch, _deadline_failure
from wayback_relay.dispatch.limiter import BackendLimiter

logger = logging.getLogger(__name__)


class PlaybackDispatcher:
    """Queries every lookup backend for every URL of a batch.

    Args:
        settings: Configuration passed to every backend.
        limiter: Per-backend concurrency bound.
        http_client: Optional client shared by every lookup task.
    """

    def __init__(
        self,
        settings: Settings,
        limiter: BackendLimiter | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.limiter = limiter or BackendLimiter.from_settings(settings)
        self.http_client = http_client
        autodiscover()

    async def playback(self, urls: list[str]) -> list[Collect]:
        """Look up *urls* on every playback slot.

        Returns:
            One record per (URL, slot) pair; "not found" is a failure record.

        Raises:
            ValueError: If *urls* is empty.
            InvalidURLError: If a URL could not be parsed; carries the
                records produced before the batch stopped.
        """
        if not urls:
            raise ValueError("playback requires at least one URL")

        deadline = asyncio.get_running_loop().time() + self.settings.wayback_timeout
        batch = _Batch()
        await asyncio.gather(
            *(self._run(batch, raw, slot, deadline) for raw in urls for slot in PLAYBACK_SLOTS)
        )

        collects = batch.snapshot()
        if batch.error is not None:
            raise InvalidURLError(batch.error.url, reason=batch.error.reason, collects=collects)
        logger.info(
            "playback finished: %d of %d lookup(s) found a copy",
            sum(1 for c in collects if c.ok),
            len(collects),
        )
        return collects

    async def _run(self, batch: _Batch, raw: str, slot: Slot, deadline: float) -> None:
        if batch.abort.is_set():
            return
        outcome: Outcome
        try:
            async with asyncio.timeout_at(deadline):
                async with self.limiter.acquire(slot):
                    if batch.abort.is_set():
                        return
                    url = parse_url(raw)
                    try:
                        task = resolve_playback(slot, url, self.settings, http_client=self.http_client)
                    except KeyError as exc:
                        cause = BackendError(str(exc.args[0]), slot=slot.value)
                        outcome = ArchiveFailure(slot=slot, cause=cause)
                    else:
                        outcome = await task.playback()
        except InvalidURLError as exc:
            await batch.fail(exc)
            return
        except TimeoutError:
            outcome = _deadline_failure(slot, self.settings.wayback_timeout)

        await batch.record(Collect(src=raw, slot=slot, outcome=outcome, ext=SLOT_EXTRAS[slot]))
