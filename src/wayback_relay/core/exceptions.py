"""Application-wide exception hierarchy for Wayback Relay.

All custom exceptions subclass ``WaybackRelayError``, enabling
consistent error handling and structured logging across the application.

Hierarchy::

    WaybackRelayError
    ├── InvalidURLError          (url, collects)   hard: aborts the batch
    ├── ArchiveFailureError      (collects)        batch produced no records
    ├── BackendError             (slot)            soft: recorded in a Collect
    │   ├── DeadlineExceededError
    │   └── PlaybackNotFoundError
    ├── BundleError              (url)
    ├── IngestionError           (source)
    └── PublishError             (sink)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from wayback_relay.core.models import Collect


class WaybackRelayError(Exception):
    """Base class for all Wayback Relay exceptions.

    All application-specific exceptions inherit from this class so that
    callers can catch the entire hierarchy with a single ``except`` clause
    when needed.
    """


# ---------------------------------------------------------------------------
# Batch exceptions
# ---------------------------------------------------------------------------


class InvalidURLError(WaybackRelayError):
    """Raised when a URL in a batch cannot be parsed as an absolute http(s) URL.

    This is the only per-task failure that aborts a batch.  Tasks already
    running when it happens are allowed to finish; whatever they produced is
    attached as ``collects`` so the caller can still render partial results.

    Args:
        url: The offending input string.
        reason: Human-readable description of what is wrong with it.
        collects: Records produced before the batch stopped.
    """

    def __init__(
        self,
        url: str,
        reason: str = "invalid URL",
        collects: list[Collect] | None = None,
    ) -> None:
        super().__init__(f"{reason}: {url!r}")
        self.url = url
        self.reason = reason
        self.collects: list[Collect] = list(collects or [])


class ArchiveFailureError(WaybackRelayError):
    """Raised when a batch finished without producing a single record.

    Distinct from any individual backend failure: it means every backend was
    disabled, or no task ever got far enough to record an outcome.
    """

    def __init__(
        self,
        message: str = "archives failure",
        collects: list[Collect] | None = None,
    ) -> None:
        super().__init__(message)
        self.collects: list[Collect] = list(collects or [])


# ---------------------------------------------------------------------------
# Backend exceptions
# ---------------------------------------------------------------------------


class BackendError(WaybackRelayError):
    """Raised inside a backend when archiving or lookup fails.

    Never escapes :meth:`ArchiveBackend.archive`; it is converted into an
    :class:`~wayback_relay.core.models.ArchiveFailure` there.

    Args:
        message: Human-readable description of the failure.
        slot: Backend slot that failed (e.g. ``"ia"``).
    """

    def __init__(self, message: str, slot: str | None = None) -> None:
        super().__init__(message)
        self.slot = slot


class DeadlineExceededError(BackendError):
    """Raised when the batch deadline expires while a backend call is running."""


class PlaybackNotFoundError(BackendError):
    """Raised by playback backends when the service holds no copy of the URL."""


# ---------------------------------------------------------------------------
# Bundle exceptions
# ---------------------------------------------------------------------------


class BundleError(WaybackRelayError):
    """Raised when the content bundle for a URL cannot be captured.

    Bundle failures are soft: the dispatcher logs them and the affected
    backends fall back to fetching the page themselves.

    Args:
        message: Description of the capture failure.
        url: URL whose bundle could not be produced.
    """

    def __init__(self, message: str, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


# ---------------------------------------------------------------------------
# Ingestion and publishing exceptions
# ---------------------------------------------------------------------------


class IngestionError(WaybackRelayError):
    """Raised when a chat platform cannot be polled or replied to.

    Args:
        message: Description of the transport failure.
        source: Name of the message source (e.g. ``"telegram"``).
    """

    def __init__(self, message: str, source: str | None = None) -> None:
        super().__init__(message)
        self.source = source


class PublishError(WaybackRelayError):
    """Raised when a publish sink rejects a rendered result.

    Args:
        message: Description of the delivery failure.
        sink: Name of the sink (e.g. ``"github"``).
    """

    def __init__(self, message: str, sink: str | None = None) -> None:
        super().__init__(message)
        self.sink = sink
