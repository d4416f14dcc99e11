"""Shared pytest fixtures for Wayback Relay tests.

Fixture summary
---------------
settings          Settings built from explicit values only (no env, no .env).
fake_registry     Empties both backend registries for the duration of a test.
archiver_factory  Builds scripted ArchiveBackend subclasses.
playback_factory  Builds scripted PlaybackBackend subclasses.

No test talks to the network: backend and source tests mock HTTP with respx,
Redis is replaced by ``unittest.mock.AsyncMock``.
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Callable

import pytest

from wayback_relay.backends import registry
from wayback_relay.backends.base import ArchiveBackend, PlaybackBackend
from wayback_relay.config.settings import Settings
from wayback_relay.core.models import Slot

# Import every real backend once, before any test swaps the registries, so a
# later autodiscover() never registers real backends into a test registry.
registry.autodiscover()


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    """Settings with short timeouts and a temporary storage directory."""
    return Settings(
        _env_file=None,
        enable_ia=True,
        enable_is=True,
        enable_ip=False,
        enable_ph=False,
        wayback_timeout=5.0,
        max_concurrent_per_backend=4,
        storage_dir=tmp_path / "storage",
        ipfs_api="http://ipfs.test:5001",
        ipfs_gateway="https://gateway.test",
        telegraph_token=None,
        telegram_token=None,
        mastodon_server=None,
        mastodon_access_token=None,
        github_token=None,
        redis_url=None,
        poll_interval=0.01,
        release_grace=0.0,
    )


# ---------------------------------------------------------------------------
# Scripted backends
# ---------------------------------------------------------------------------


@pytest.fixture
def fake_registry(monkeypatch: pytest.MonkeyPatch) -> tuple[dict, dict]:  # type: ignore[type-arg]
    """Replace both registries with empty dicts; returns ``(archive, playback)``."""
    archive: dict[Slot, type[ArchiveBackend]] = {}
    playback: dict[Slot, type[PlaybackBackend]] = {}
    monkeypatch.setattr(registry, "_REGISTRY", archive)
    monkeypatch.setattr(registry, "_PLAYBACK_REGISTRY", playback)
    return archive, playback


@pytest.fixture
def archiver_factory(fake_registry: tuple[dict, dict]) -> Callable[..., type[ArchiveBackend]]:  # type: ignore[type-arg]
    """Return ``make(slot, *, dst=None, error=None, delay=0.0, gate=None)``.

    The built class is registered for *slot* and records every instance it
    runs in its ``instances`` list.  *gate* is an :class:`asyncio.Event` the
    backend waits on before answering.
    """
    archive, _ = fake_registry

    def make(
        slot: Slot,
        *,
        dst: str | None = None,
        error: BaseException | None = None,
        delay: float = 0.0,
        gate: asyncio.Event | None = None,
    ) -> type[ArchiveBackend]:
        instances: list[ArchiveBackend] = []

        async def _archive(self: ArchiveBackend) -> str:
            instances.append(self)
            if gate is not None:
                await gate.wait()
            if delay:
                await asyncio.sleep(delay)
            if error is not None:
                raise error
            return dst if dst is not None else f"https://archive.test/{slot.value}/{self.target}"

        attrs: dict[str, Any] = {
            "slot": slot,
            "name": f"scripted {slot.value}",
            "uses_bundle": True,
            "instances": instances,
            "_archive": _archive,
        }
        cls = type(f"Scripted{slot.name}Archiver", (ArchiveBackend,), attrs)
        archive[slot] = cls
        return cls

    return make


@pytest.fixture
def playback_factory(fake_registry: tuple[dict, dict]) -> Callable[..., type[PlaybackBackend]]:  # type: ignore[type-arg]
    """Return ``make(slot, *, dst=None, error=None)`` registering a lookup backend."""
    _, playback = fake_registry

    def make(
        slot: Slot,
        *,
        dst: str | None = None,
        error: BaseException | None = None,
    ) -> type[PlaybackBackend]:
        async def _lookup(self: PlaybackBackend) -> str:
            if error is not None:
                raise error
            return dst if dst is not None else f"https://copy.test/{slot.value}/{self.target}"

        attrs: dict[str, Any] = {"slot": slot, "name": f"scripted {slot.value}", "_lookup": _lookup}
        cls = type(f"Scripted{slot.name}Playback", (PlaybackBackend,), attrs)
        playback[slot] = cls
        return cls

    return make
