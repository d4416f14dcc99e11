"""Bundle providers.

A provider captures every URL of a batch once, before any backend runs, so
that backends which build on page content (IPFS, Telegraph) share a single
capture.  Providers never raise for a single URL: a page that cannot be
captured simply has no entry in the returned :class:`Bundles`.
"""

from __future__ import annotations

import asyncio
import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path

import httpx

from wayback_relay.bundle.capture import capture_page, launch_browser
from wayback_relay.bundle.mirror import mirror_bundle
from wayback_relay.config.settings import Settings
from wayback_relay.core.models import Bundle, Bundles

logger = logging.getLogger(__name__)


class BundleProvider(ABC):
    """Captures page assets for a batch of URLs."""

    @abstractmethod
    async def produce(self, urls: list[str]) -> Bundles:
        """Capture *urls* and return the bundles that succeeded."""


class NullBundleProvider(BundleProvider):
    """Provider used when bundling is disabled; always returns no bundles."""

    async def produce(self, urls: list[str]) -> Bundles:
        return Bundles()


class PlaywrightBundleProvider(BundleProvider):
    """Captures pages with headless Chromium.

    Assets are written to ``<storage_dir>/batch-*/<n>/``.  The batch
    directory is owned by the returned :class:`Bundles` and removed by
    :meth:`Bundles.release`.

    Args:
        settings: Application settings (storage, concurrency, timeout,
            mirroring).
        http_client: Optional client used for asset mirroring.
    """

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        self.settings = settings
        self._http_client = http_client

    async def produce(self, urls: list[str]) -> Bundles:
        storage = Path(self.settings.storage_dir)
        storage.mkdir(parents=True, exist_ok=True)
        root = Path(tempfile.mkdtemp(prefix="batch-", dir=storage))
        bundles = Bundles(root=str(root))
        semaphore = asyncio.Semaphore(max(1, self.settings.bundle_concurrency))
        unique = list(dict.fromkeys(urls))

        async def _capture(browser: object, index: int, url: str) -> None:
            async with semaphore:
                try:
                    bundle = await capture_page(
                        browser,
                        url,
                        root / str(index),
                        timeout=self.settings.bundle_timeout,
                        user_agent=self.settings.user_agent,
                    )
                except Exception as exc:  # noqa: BLE001
                    logger.warning("bundle: capture of %s failed: %s", url, exc)
                    return
                bundles[url] = await self._mirror(bundle)

        try:
            async with launch_browser() as browser:
                await asyncio.gather(*(_capture(browser, i, url) for i, url in enumerate(unique)))
        except BaseException:
            bundles.release()
            raise

        logger.info("bundle: captured %d of %d url(s)", len(bundles), len(unique))
        return bundles

    async def _mirror(self, bundle: Bundle) -> Bundle:
        if not self.settings.mirror_assets:
            return bundle
        if self._http_client is not None:
            return await mirror_bundle(bundle, self._http_client)
        async with httpx.AsyncClient(timeout=120.0) as client:
            return await mirror_bundle(bundle, client)


def build_bundle_provider(settings: Settings, http_client: httpx.AsyncClient | None = None) -> BundleProvider:
    """Return the provider matching ``settings.enable_bundle``."""
    if settings.enable_bundle:
        return PlaywrightBundleProvider(settings, http_client=http_client)
    return NullBundleProvider()
