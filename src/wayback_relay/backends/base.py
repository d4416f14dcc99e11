"""Abstract base classes for archiving and playback backends.

Every archival service integration subclasses :class:`ArchiveBackend` and
implements :meth:`ArchiveBackend._archive`; every lookup integration
subclasses :class:`PlaybackBackend` and implements
:meth:`PlaybackBackend._lookup`.  Instances are short-lived tasks: one per
(URL, backend) pair, created through
:func:`wayback_relay.backends.registry.resolve`.

The public entry points :meth:`ArchiveBackend.archive` and
:meth:`PlaybackBackend.playback` never raise (task cancellation aside).
A failure is logged and returned as an
:class:`~wayback_relay.core.models.ArchiveFailure` so that one broken
service cannot affect its siblings in a batch.

Example usage::

    from wayback_relay.backends.base import ArchiveBackend
    from wayback_relay.backends.registry import register
    from wayback_relay.core.models import Slot

    @register
    class MyArchiver(ArchiveBackend):
        slot = Slot.IA
        name = "my service"

        async def _archive(self) -> str: ...
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, AsyncIterator
from urllib.parse import SplitResult

import httpx

from wayback_relay.core.exceptions import BackendError
from wayback_relay.core.models import (
    ArchiveFailure,
    ArchiveSuccess,
    Bundle,
    Outcome,
    Slot,
)

if TYPE_CHECKING:
    from wayback_relay.config.settings import Settings

logger = logging.getLogger(__name__)

_DEFAULT_HTTP_TIMEOUT: float = 120.0


class _Backend(ABC):
    """Shared constructor and HTTP plumbing of archive and playback backends.

    Class Attributes:
        slot: Registry key of the backend.
        name: Human-readable service name used in log lines.

    Args:
        url: Parsed source URL.
        settings: Explicit configuration for this call.
        http_client: Optional injected :class:`httpx.AsyncClient` (shared by
            the dispatcher, or a mock in tests).  It is never closed here.
    """

    slot: Slot
    name: str

    def __init__(
        self,
        url: SplitResult,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        self.url = url
        self.settings = settings
        self._http_client = http_client

    @property
    def target(self) -> str:
        """The source URL as a string."""
        return self.url.geturl()

    @asynccontextmanager
    async def _client(self) -> AsyncIterator[httpx.AsyncClient]:
        """Yield the injected client, or a private one closed on exit."""
        if self._http_client is not None:
            yield self._http_client
            return
        async with httpx.AsyncClient(
            timeout=_DEFAULT_HTTP_TIMEOUT,
            headers={"User-Agent": self.settings.user_agent},
        ) as client:
            yield client

    def _failure(self, exc: BaseException) -> ArchiveFailure:
        return ArchiveFailure(slot=self.slot, cause=exc)

    def __repr__(self) -> str:
        """Return a developer-friendly representation of the backend task."""
        return (
            f"<{self.__class__.__name__} "
            f"slot={getattr(self, 'slot', '?')} "
            f"url={self.target}>"
        )


class ArchiveBackend(_Backend):
    """Abstract base class for every archival service.

    Subclasses set ``slot`` and ``name`` and implement :meth:`_archive`.
    Backends that can work from pre-captured page content set
    ``uses_bundle = True`` and read :attr:`bundle`; they must still work when
    it is ``None`` by fetching the page themselves.

    Args:
        url: Parsed source URL.
        settings: Explicit configuration for this call.
        bundle: Pre-captured content for *url*, shared read-only, or ``None``.
        http_client: Optional injected :class:`httpx.AsyncClient`.
    """

    uses_bundle: bool = False

    def __init__(
        self,
        url: SplitResult,
        settings: Settings,
        bundle: Bundle | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(url, settings, http_client=http_client)
        self.bundle = bundle

    @abstractmethod
    async def _archive(self) -> str:
        """Archive :attr:`url` and return the archived location.

        Raises:
            BackendError: Or any other exception; :meth:`archive` converts it
                into an :class:`ArchiveFailure`.
        """

    async def archive(self) -> Outcome:
        """Archive the URL, converting every failure into an outcome.

        Returns:
            :class:`ArchiveSuccess` with a non-empty destination, or
            :class:`ArchiveFailure` carrying the cause.
        """
        try:
            dst = await self._archive()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.error("wayback %s to %s failed: %s", self.target, self.name, exc)
            return self._failure(exc)
        if not dst:
            logger.error("wayback %s to %s returned no destination", self.target, self.name)
            return self._failure(BackendError("no destination returned", slot=self.slot.value))
        logger.debug("wayback %s to %s: %s", self.target, self.name, dst)
        return ArchiveSuccess(destination=dst)


class PlaybackBackend(_Backend):
    """Abstract base class for every lookup service.

    Subclasses set ``slot`` and ``name`` and implement :meth:`_lookup`.
    A lookup that finds nothing raises
    :class:`~wayback_relay.core.exceptions.PlaybackNotFoundError`, which is
    recorded like any other failure.
    """

    @abstractmethod
    async def _lookup(self) -> str:
        """Return the location of an existing archived copy of :attr:`url`."""

    async def playback(self) -> Outcome:
        """Look up the URL, converting every failure into an outcome."""
        try:
            dst = await self._lookup()
        except asyncio.CancelledError:
            raise
        except Exception as exc:  # noqa: BLE001
            logger.info("playback %s from %s failed: %s", self.target, self.name, exc)
            return self._failure(exc)
        if not dst:
            return self._failure(BackendError("no destination returned", slot=self.slot.value))
        return ArchiveSuccess(destination=dst)
