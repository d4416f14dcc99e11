"""Application settings loaded from environment variables.

Uses Pydantic Settings v2 for validated, type-safe configuration.
Every tunable value the relay consumes (enabled backends, the batch
deadline, chat-platform tokens, publishing targets) lives here.  Settings
are read once by :func:`get_settings` and then passed explicitly to the
dispatcher, the backends and the ingestion loops; no module reads the
environment on its own.

Usage::

    from wayback_relay.config.settings import get_settings

    settings = get_settings()
    slots = settings.enabled_slots()
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

from wayback_relay.core.models import Slot


class Settings(BaseSettings):
    """Relay configuration backed by ``WAYBACK_*`` environment variables and an optional .env file.

    Only the archive.org and archive.today backends are enabled out of the
    box because they need no local infrastructure.  Chat and publishing
    integrations activate themselves when their credentials are present.
    """

    model_config = SettingsConfigDict(
        env_prefix="WAYBACK_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ------------------------------------------------------------------
    # Backend slots
    # ------------------------------------------------------------------

    enable_ia: bool = True
    """Archive to the Internet Archive Wayback Machine (Save Page Now)."""

    enable_is: bool = True
    """Archive to archive.today (archive.ph)."""

    enable_ip: bool = False
    """Archive to IPFS.  Requires a reachable IPFS HTTP API (``ipfs_api``)."""

    enable_ph: bool = False
    """Publish a Telegraph page with the captured content."""

    # ------------------------------------------------------------------
    # Dispatch
    # ------------------------------------------------------------------

    wayback_timeout: float = 300.0
    """Deadline in seconds shared by every backend call of one batch."""

    max_concurrent_per_backend: int = 4
    """Maximum simultaneous outbound calls per backend slot.

    Keeps a large batch from hammering a single third-party service.
    ``0`` disables the bound.
    """

    user_agent: str = (
        "Mozilla/5.0 (X11; Linux x86_64) AppleWebKit/537.36 "
        "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
    )
    """User-Agent sent to the archival services."""

    # ------------------------------------------------------------------
    # IPFS
    # ------------------------------------------------------------------

    ipfs_api: str = "http://127.0.0.1:5001"
    """Base URL of the IPFS node HTTP API (``/api/v0/add`` is appended)."""

    ipfs_gateway: str = "https://ipfs.io"
    """Public gateway used to build the returned ``/ipfs/<cid>`` link."""

    # ------------------------------------------------------------------
    # Telegraph
    # ------------------------------------------------------------------

    telegraph_token: Optional[str] = None
    """Telegraph access token.  When ``None`` an account is created per page."""

    telegraph_author: str = "Wayback Relay"
    """Author name shown on created Telegraph pages."""

    # ------------------------------------------------------------------
    # Bundle capture
    # ------------------------------------------------------------------

    enable_bundle: bool = False
    """Capture a screenshot/PDF/HTML/HAR bundle with Playwright before archiving."""

    bundle_concurrency: int = 2
    """Number of pages captured in parallel by the bundle provider."""

    bundle_timeout: float = 60.0
    """Navigation timeout in seconds for a single bundle capture."""

    storage_dir: Path = Path("/tmp/wayback-relay")
    """Directory receiving captured bundle assets."""

    mirror_assets: bool = False
    """Upload captured assets to catbox.moe and record the remote link."""

    # ------------------------------------------------------------------
    # Telegram
    # ------------------------------------------------------------------

    telegram_token: Optional[str] = None
    """Bot API token.  Required by the Telegram daemon and channel sink."""

    telegram_channel: Optional[str] = None
    """Channel (``@name`` or numeric id) that receives published results."""

    telegram_poll_timeout: int = 60
    """Long-polling timeout in seconds for ``getUpdates``."""

    # ------------------------------------------------------------------
    # Mastodon
    # ------------------------------------------------------------------

    mastodon_server: Optional[str] = None
    """Mastodon instance base URL, e.g. ``https://mastodon.social``."""

    mastodon_access_token: Optional[str] = None
    """OAuth access token of the relay account."""

    mastodon_publish: bool = False
    """Post every result as a public status in addition to the direct reply."""

    # ------------------------------------------------------------------
    # GitHub issues
    # ------------------------------------------------------------------

    github_token: Optional[str] = None
    """Personal access token used to open result issues."""

    github_owner: Optional[str] = None
    """Owner of the repository receiving result issues."""

    github_repo: Optional[str] = None
    """Repository receiving result issues."""

    # ------------------------------------------------------------------
    # Ingestion
    # ------------------------------------------------------------------

    poll_interval: float = 5.0
    """Seconds between polls (and before restarting a failed poll)."""

    release_grace: float = 1.0
    """Seconds a finished conversation stays claimed to absorb duplicate notifications."""

    redis_url: Optional[str] = None
    """When set, conversation claims are kept in Redis instead of process memory."""

    # ------------------------------------------------------------------
    # Application behaviour
    # ------------------------------------------------------------------

    log_level: str = "INFO"
    """Logging verbosity.  One of: DEBUG, INFO, WARNING, ERROR, CRITICAL."""

    def enabled_slots(self) -> dict[Slot, bool]:
        """Return the point-in-time ``{slot: enabled}`` mapping for a batch."""
        return {
            Slot.IA: self.enable_ia,
            Slot.IS: self.enable_is,
            Slot.IP: self.enable_ip,
            Slot.PH: self.enable_ph,
        }

    def publish_to_channel(self) -> bool:
        return bool(self.telegram_token and self.telegram_channel)

    def publish_to_issues(self) -> bool:
        return bool(self.github_token and self.github_owner and self.github_repo)

    def publish_to_mastodon(self) -> bool:
        return bool(
            self.mastodon_publish and self.mastodon_server and self.mastodon_access_token
        )


@lru_cache
def get_settings() -> Settings:
    """Return the cached application settings singleton.

    Uses ``functools.lru_cache`` so that Pydantic Settings reads the environment
    and .env file exactly once per process lifetime.  In tests, call
    ``get_settings.cache_clear()`` after patching environment variables.

    Returns:
        Settings: The validated settings object.
    """
    return Settings()
