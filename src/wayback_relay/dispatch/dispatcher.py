"""Write-archiving fan-out.

:class:`Dispatcher` archives every URL of a batch to every enabled backend
concurrently and aggregates one :class:`~wayback_relay.core.models.Collect`
per (URL, backend) pair.

Failure model:

- A backend failure is *soft*: it is recorded as an
  :class:`~wayback_relay.core.models.ArchiveFailure` and never affects the
  other tasks.  Running past the batch deadline is soft too.
- A URL that cannot be parsed is *hard*: the first such error aborts the
  batch.  Tasks that have not started yet are skipped; tasks already running
  finish, and their records travel with the raised
  :class:`~wayback_relay.core.exceptions.InvalidURLError`.
- A batch that produced no record at all raises
  :class:`~wayback_relay.core.exceptions.ArchiveFailureError`.

Example::

    async with await Dispatcher(settings).dispatch(["https://example.com/"]) as result:
        for collect in result.collects:
            print(collect.name, collect.dst)
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from types import TracebackType
from typing import Mapping

import httpx

from wayback_relay.backends.registry import autodiscover, resolve
from wayback_relay.bundle.provider import BundleProvider, build_bundle_provider
from wayback_relay.config.settings import Settings
from wayback_relay.core.exceptions import (
    ArchiveFailureError,
    BackendError,
    DeadlineExceededError,
    InvalidURLError,
)
from wayback_relay.core.models import (
    SLOT_EXTRAS,
    ArchiveFailure,
    Bundles,
    Collect,
    Outcome,
    Slot,
    parse_url,
)
from wayback_relay.dispatch.limiter import BackendLimiter

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Batch state
# ---------------------------------------------------------------------------


class _Batch:
    """Mutable state shared by the tasks of one batch.

    ``collects`` is only appended to under ``lock``; ``abort`` is set by the
    first hard error, which is kept in ``error``.
    """

    def __init__(self) -> None:
        self.lock = asyncio.Lock()
        self.abort = asyncio.Event()
        self.collects: list[Collect] = []
        self.error: InvalidURLError | None = None

    async def record(self, collect: Collect) -> None:
        async with self.lock:
            self.collects.append(collect)

    async def fail(self, exc: InvalidURLError) -> None:
        async with self.lock:
            if self.error is None:
                self.error = exc
                logger.warning("batch aborted: %s", exc)
            self.abort.set()

    def snapshot(self) -> list[Collect]:
        return list(self.collects)


def _deadline_failure(slot: Slot, timeout: float) -> ArchiveFailure:
    return ArchiveFailure(
        slot=slot,
        cause=DeadlineExceededError(f"deadline of {timeout:g}s exceeded", slot=slot.value),
    )


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------


@dataclass
class BatchResult:
    """Aggregated records of one batch plus the bundles captured for it.

    Use as an async context manager to release the bundles once the records
    have been consumed.

    Attributes:
        collects: One record per (URL, enabled backend) pair that ran.
        bundles: Bundles captured for the batch, owned by this result.
    """

    collects: list[Collect]
    bundles: Bundles = field(default_factory=Bundles)

    def release(self) -> None:
        self.bundles.release()

    async def __aenter__(self) -> BatchResult:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.release()

    def __len__(self) -> int:
        return len(self.collects)


# ---------------------------------------------------------------------------
# Dispatcher
# ---------------------------------------------------------------------------


class Dispatcher:
    """Archives batches of URLs to every enabled backend.

    Args:
        settings: Configuration passed to every backend of every batch.
        bundle_provider: Provider invoked once per batch.  Defaults to the
            provider selected by ``settings.enable_bundle``.
        limiter: Per-backend concurrency bound.  Defaults to one sized by
            ``settings.max_concurrent_per_backend``.
        http_client: Optional client shared by every backend task.
    """

    def __init__(
        self,
        settings: Settings,
        bundle_provider: BundleProvider | None = None,
        limiter: BackendLimiter | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.settings = settings
        self.bundle_provider = bundle_provider or build_bundle_provider(settings, http_client)
        self.limiter = limiter or BackendLimiter.from_settings(settings)
        self.http_client = http_client
        autodiscover()

    async def dispatch(
        self,
        urls: list[str],
        slots: Mapping[Slot, bool] | None = None,
    ) -> BatchResult:
        """Archive *urls* to every slot whose flag is true.

        Args:
            urls: Source URLs as received.
            slots: ``{Slot: enabled}`` mapping; defaults to
                ``settings.enabled_slots()``.

        Returns:
            A :class:`BatchResult` with one record per (URL, enabled slot).

        Raises:
            ValueError: If *urls* is empty.
            InvalidURLError: If a URL could not be parsed; carries the
                records produced before the batch stopped.
            ArchiveFailureError: If no record was produced.
        """
        if not urls:
            raise ValueError("dispatch requires at least one URL")
        if slots is None:
            slots = self.settings.enabled_slots()
        enabled = [Slot(slot) for slot, on in slots.items() if on]

        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.settings.wayback_timeout
        bundles = await self._produce_bundles(urls, deadline)

        batch = _Batch()
        logger.info("dispatching %d url(s) to %d backend(s)", len(urls), len(enabled))
        try:
            await asyncio.gather(
                *(
                    self._run(batch, raw, slot, bundles, deadline)
                    for raw in urls
                    for slot in enabled
                )
            )
        except BaseException:
            bundles.release()
            raise

        collects = batch.snapshot()
        if batch.error is not None:
            bundles.release()
            raise InvalidURLError(batch.error.url, reason=batch.error.reason, collects=collects)
        if not collects:
            bundles.release()
            raise ArchiveFailureError(collects=collects)
        logger.info("dispatch finished with %d record(s)", len(collects))
        return BatchResult(collects=collects, bundles=bundles)

    async def _produce_bundles(self, urls: list[str], deadline: float) -> Bundles:
        try:
            async with asyncio.timeout_at(deadline):
                return await self.bundle_provider.produce(list(urls))
        except Exception as exc:  # noqa: BLE001
            logger.warning("bundle provider failed, continuing without bundles: %s", exc)
            return Bundles()

    async def _run(
        self,
        batch: _Batch,
        raw: str,
        slot: Slot,
        bundles: Bundles,
        deadline: float,
    ) -> None:
        """Archive one (URL, slot) pair and record its outcome."""
        if batch.abort.is_set():
            return
        outcome: Outcome
        try:
            async with asyncio.timeout_at(deadline):
                if self.limiter.bounded and self.limiter.in_use(slot) >= self.limiter.limit:
                    logger.debug("wayback %s to %s: all permits in use, waiting", raw, slot.value)
                async with self.limiter.acquire(slot):
                    if batch.abort.is_set():
                        return
                    url = parse_url(raw)
                    try:
                        task = resolve(
                            slot,
                            url,
                            self.settings,
                            bundle=bundles.get(raw),
                            http_client=self.http_client,
                        )
                    except KeyError as exc:
                        cause = BackendError(str(exc.args[0]), slot=slot.value)
                        outcome = ArchiveFailure(slot=slot, cause=cause)
                    else:
                        outcome = await task.archive()
        except InvalidURLError as exc:
            await batch.fail(exc)
            return
        except TimeoutError:
            logger.warning("wayback %s to %s: deadline exceeded", raw, slot.value)
            outcome = _deadline_failure(slot, self.settings.wayback_timeout)

        await batch.record(Collect(src=raw, slot=slot, outcome=outcome, ext=SLOT_EXTRAS[slot]))
