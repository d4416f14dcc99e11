"""Shared result and data types.

Everything that crosses a component boundary lives here: backend slot
identifiers, the per-URL content :class:`Bundle`, and the :class:`Collect`
record produced once per (URL, backend) pair.

A backend outcome is a tagged value, either :class:`ArchiveSuccess` or
:class:`ArchiveFailure`, so callers never need to inspect a destination
string to find out whether archiving worked.  :attr:`Collect.dst` still
offers the single printable value that reply templates expect.
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Union
from urllib.parse import SplitResult, urlsplit

from wayback_relay.core.exceptions import InvalidURLError

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Backend slots
# ---------------------------------------------------------------------------


class Slot(str, Enum):
    """Identifier of an archival or lookup backend.

    Attributes:
        IA: Internet Archive Wayback Machine.
        IS: archive.today.
        IP: IPFS.
        PH: Telegraph.
        TT: Time Travel memento aggregator (lookup only).
        GC: Google cache (lookup only).
    """

    IA = "ia"
    IS = "is"
    IP = "ip"
    PH = "ph"
    TT = "tt"
    GC = "gc"


SLOT_NAMES: dict[Slot, str] = {
    Slot.IA: "Internet Archive",
    Slot.IS: "archive.today",
    Slot.IP: "IPFS",
    Slot.PH: "Telegraph",
    Slot.TT: "Time Travel",
    Slot.GC: "Google Cache",
}

SLOT_EXTRAS: dict[Slot, str] = {
    Slot.IA: "https://web.archive.org/",
    Slot.IS: "https://archive.today/",
    Slot.IP: "https://ipfs.github.io/public-gateway-checker/",
    Slot.PH: "https://telegra.ph/",
    Slot.TT: "http://timetravel.mementoweb.org/",
    Slot.GC: "https://webcache.googleusercontent.com/",
}

WRITABLE_SLOTS: tuple[Slot, ...] = (Slot.IA, Slot.IS, Slot.IP, Slot.PH)
"""Slots that can archive a URL."""

PLAYBACK_SLOTS: tuple[Slot, ...] = (Slot.IA, Slot.IS, Slot.IP, Slot.PH, Slot.TT, Slot.GC)
"""Slots queried by the playback dispatcher (a superset of the writable ones)."""


# ---------------------------------------------------------------------------
# URL parsing
# ---------------------------------------------------------------------------

_ALLOWED_SCHEMES: frozenset[str] = frozenset({"http", "https"})


def parse_url(raw: str) -> SplitResult:
    """Parse *raw* into an absolute http(s) URL.

    Args:
        raw: URL string as received from the user.

    Returns:
        The :class:`urllib.parse.SplitResult` for *raw*.

    Raises:
        InvalidURLError: If the string cannot be split, has no http(s)
            scheme, or has no network location.
    """
    try:
        parts = urlsplit(raw.strip())
        # Accessing .port validates the numeric port and raises ValueError.
        parts.port
    except (ValueError, AttributeError) as exc:
        raise InvalidURLError(str(raw), reason=f"parse uri failed ({exc})") from exc
    if parts.scheme.lower() not in _ALLOWED_SCHEMES:
        raise InvalidURLError(raw, reason="unsupported or missing scheme")
    if not parts.netloc:
        raise InvalidURLError(raw, reason="missing host")
    return parts


# ---------------------------------------------------------------------------
# Bundle
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Asset:
    """A single captured file.

    Attributes:
        local: Path of the file on local disk, or ``None`` if not captured.
        remote: Mirror URL of the file, or ``None`` if not mirrored.
    """

    local: str | None = None
    remote: str | None = None

    def __bool__(self) -> bool:
        return bool(self.local or self.remote)


@dataclass(frozen=True)
class Bundle:
    """Pre-captured page assets for one URL, shared read-only within a batch.

    Attributes:
        url: Source URL the bundle was captured from.
        title: Document title, if the page had one.
        html: Rendered page HTML kept in memory for backends that reuse it.
        image: Full-page PNG screenshot.
        pdf: PDF print of the page.
        raw_html: Rendered HTML written to disk.
        text: Extracted article text.
        har: HTTP archive of the page load.
        single_html: Self-contained single-file HTML.
        warc: WARC record of the page load.
        media: Main media file of the page.
        directory: Directory holding the local assets (removed on release).
    """

    url: str
    title: str = ""
    html: str = ""
    image: Asset = field(default_factory=Asset)
    pdf: Asset = field(default_factory=Asset)
    raw_html: Asset = field(default_factory=Asset)
    text: Asset = field(default_factory=Asset)
    har: Asset = field(default_factory=Asset)
    single_html: Asset = field(default_factory=Asset)
    warc: Asset = field(default_factory=Asset)
    media: Asset = field(default_factory=Asset)
    directory: str | None = None

    def assets(self) -> dict[str, Asset]:
        """Return the non-empty assets keyed by field name."""
        names = ("image", "pdf", "raw_html", "text", "har", "single_html", "warc", "media")
        return {name: getattr(self, name) for name in names if getattr(self, name)}

    def read_text(self) -> str:
        """Return the extracted article text, or an empty string."""
        if not self.text.local:
            return ""
        try:
            return Path(self.text.local).read_text(encoding="utf-8")
        except OSError as exc:
            logger.warning("bundle: cannot read text asset %s: %s", self.text.local, exc)
            return ""


class Bundles(dict):  # type: ignore[type-arg]
    """Mapping of source URL to :class:`Bundle` for one batch.

    A URL missing from the mapping means "no bundle available".

    Args:
        root: Batch directory holding every bundle directory, removed on
            :meth:`release`.
    """

    def __init__(self, *args, root: str | None = None, **kwargs) -> None:  # type: ignore[no-untyped-def]
        super().__init__(*args, **kwargs)
        self.root = root

    def release(self) -> None:
        """Delete every local asset directory owned by the batch."""
        for bundle in self.values():
            if bundle.directory:
                shutil.rmtree(bundle.directory, ignore_errors=True)
        if self.root:
            shutil.rmtree(self.root, ignore_errors=True)
            self.root = None
        self.clear()


# ---------------------------------------------------------------------------
# Outcomes and collect records
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ArchiveSuccess:
    """A backend returned an archived (or found) location."""

    destination: str

    def __str__(self) -> str:
        return self.destination


@dataclass(frozen=True)
class ArchiveFailure:
    """A backend failed; the failure is recorded, never raised.

    Attributes:
        slot: Slot of the backend that failed.
        cause: The exception (or message) describing the failure.
    """

    slot: Slot
    cause: Union[BaseException, str]

    def __str__(self) -> str:
        text = str(self.cause)
        if text:
            return text
        return type(self.cause).__name__


Outcome = Union[ArchiveSuccess, ArchiveFailure]


@dataclass(frozen=True)
class Collect:
    """Result of one (URL, backend) pair.

    Attributes:
        src: Source URL.
        slot: Backend slot that produced the outcome.
        outcome: Success destination or typed failure.
        ext: Extra tag (the slot's home page) used by reply templates.
    """

    src: str
    slot: Slot
    outcome: Outcome
    ext: str = ""

    @property
    def ok(self) -> bool:
        return isinstance(self.outcome, ArchiveSuccess)

    @property
    def dst(self) -> str:
        """Printable destination: the archived location, or the failure text."""
        return str(self.outcome)

    @property
    def name(self) -> str:
        return SLOT_NAMES.get(self.slot, self.slot.value)
