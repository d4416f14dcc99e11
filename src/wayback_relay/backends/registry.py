"""Backend registry for dynamic discovery and registration of archivers.

Backends register themselves on import using the ``@register`` (archiving)
or ``@register_playback`` (lookup) decorator.  The registry is a pair of
module-level lookup tables mapping a :class:`~wayback_relay.core.models.Slot`
to a backend class, so the dispatcher never branches on the slot itself:
adding a backend means adding a module, not editing the dispatcher.

Example, registering a backend::

    from wayback_relay.backends.base import ArchiveBackend
    from wayback_relay.backends.registry import register
    from wayback_relay.core.models import Slot

    @register
    class InternetArchiveArchiver(ArchiveBackend):
        slot = Slot.IA
        name = "Internet Archive"
        ...

Example, resolving a task::

    from wayback_relay.backends.registry import resolve

    task = resolve(Slot.IA, parse_url(url), settings, bundle=bundle)
    outcome = await task.archive()
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from typing import TYPE_CHECKING
from urllib.parse import SplitResult

from wayback_relay.core.models import SLOT_NAMES, Slot

if TYPE_CHECKING:
    import httpx

    from wayback_relay.backends.base import ArchiveBackend, PlaybackBackend
    from wayback_relay.config.settings import Settings
    from wayback_relay.core.models import Bundle

logger = logging.getLogger(__name__)

# Registry singletons: slot -> backend class
_REGISTRY: dict[Slot, type[ArchiveBackend]] = {}
_PLAYBACK_REGISTRY: dict[Slot, type[PlaybackBackend]] = {}

_DISCOVERABLE_MODULES: tuple[str, ...] = (".archiver", ".playback")


def _add(table: dict, cls: type, kind: str) -> type:  # type: ignore[type-arg]
    slot = Slot(cls.slot)
    if slot in table:
        logger.warning(
            "%s backend for slot '%s' is already registered (was %s). Overwriting with %s.",
            kind,
            slot.value,
            table[slot].__qualname__,
            cls.__qualname__,
        )
    table[slot] = cls
    logger.debug(
        "Registered %s backend: slot=%s class=%s", kind, slot.value, cls.__qualname__
    )
    return cls


def register(cls: type[ArchiveBackend]) -> type[ArchiveBackend]:
    """Decorator that registers an ``ArchiveBackend`` subclass.

    If a backend with the same slot has already been registered, the new
    registration overwrites the old one and a warning is emitted.

    Args:
        cls: ``ArchiveBackend`` subclass defining a ``slot`` class attribute.

    Returns:
        The same class (decorator pass-through).

    Raises:
        AttributeError: If ``cls`` does not define ``slot``.
        ValueError: If ``cls.slot`` is not a known slot.
    """
    return _add(_REGISTRY, cls, "archive")


def register_playback(cls: type[PlaybackBackend]) -> type[PlaybackBackend]:
    """Decorator that registers a ``PlaybackBackend`` subclass.

    Same rules as :func:`register`, applied to the lookup table.
    """
    return _add(_PLAYBACK_REGISTRY, cls, "playback")


def _lookup(table: dict, slot: Slot | str, kind: str) -> type:  # type: ignore[type-arg]
    try:
        return table[Slot(slot)]
    except (KeyError, ValueError):
        registered = sorted(s.value for s in table)
        raise KeyError(
            f"No {kind} backend registered for slot '{slot}'. "
            f"Registered slots: {registered}. "
            "Did you forget to call autodiscover() or import the backend module?"
        ) from None


def get_backend(slot: Slot | str) -> type[ArchiveBackend]:
    """Retrieve the registered archiving backend class for *slot*.

    Raises:
        KeyError: If no archiving backend is registered for *slot*.
    """
    return _lookup(_REGISTRY, slot, "archive")


def get_playback_backend(slot: Slot | str) -> type[PlaybackBackend]:
    """Retrieve the registered playback backend class for *slot*.

    Raises:
        KeyError: If no playback backend is registered for *slot*.
    """
    return _lookup(_PLAYBACK_REGISTRY, slot, "playback")


def resolve(
    slot: Slot | str,
    url: SplitResult,
    settings: Settings,
    bundle: Bundle | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> ArchiveBackend:
    """Build the archiving task for one (URL, backend) pair.

    Args:
        slot: Backend slot.
        url: Parsed source URL.
        settings: Explicit configuration handed to the backend.
        bundle: Shared bundle for *url*, or ``None``.
        http_client: Optional shared HTTP client.

    Returns:
        A ready-to-run :class:`ArchiveBackend` instance.
    """
    cls = get_backend(slot)
    return cls(url, settings, bundle=bundle, http_client=http_client)


def resolve_playback(
    slot: Slot | str,
    url: SplitResult,
    settings: Settings,
    http_client: httpx.AsyncClient | None = None,
) -> PlaybackBackend:
    """Build the lookup task for one (URL, backend) pair."""
    cls = get_playback_backend(slot)
    return cls(url, settings, http_client=http_client)


def list_backends() -> list[dict]:  # type: ignore[type-arg]
    """Return metadata for all registered backends, ordered by slot.

    Returns:
        List of dicts with ``slot``, ``name``, ``archive`` (class path or
        ``None``), ``playback`` (class path or ``None``) and ``uses_bundle``.
    """
    rows = []
    for slot in Slot:
        archiver = _REGISTRY.get(slot)
        playback = _PLAYBACK_REGISTRY.get(slot)
        if archiver is None and playback is None:
            continue
        rows.append(
            {
                "slot": slot.value,
                "name": SLOT_NAMES.get(slot, slot.value),
                "archive": f"{archiver.__module__}.{archiver.__qualname__}" if archiver else None,
                "playback": f"{playback.__module__}.{playback.__qualname__}" if playback else None,
                "uses_bundle": bool(archiver and archiver.uses_bundle),
            }
        )
    return rows


def autodiscover() -> None:
    """Import all backend ``archiver`` and ``playback`` modules.

    Walks the ``wayback_relay.backends`` package tree so that the
    ``@register`` decorators run.  This function is idempotent.

    A module that fails to import is logged; the other backends still load.
    """
    import wayback_relay.backends as backends_pkg

    prefix = backends_pkg.__name__ + "."
    for _finder, module_name, _is_pkg in pkgutil.walk_packages(
        path=backends_pkg.__path__, prefix=prefix
    ):
        if module_name.endswith(_DISCOVERABLE_MODULES):
            try:
                importlib.import_module(module_name)
                logger.debug("Autodiscovered backend module: %s", module_name)
            except Exception as exc:  # noqa: BLE001
                logger.error(
                    "Failed to import backend module '%s': %s",
                    module_name,
                    exc,
                    exc_info=True,
                )
