"""Playwright-based page capture.

Playwright is an optional dependency, only needed when
``Settings.enable_bundle`` is set.  If Playwright is not installed,
:func:`launch_browser` raises ``ImportError`` with installation
instructions, and the dispatcher carries on without bundles.

Install Playwright and download the Chromium browser binary::

    pip install "wayback-relay[bundle]"
    playwright install chromium
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator

from wayback_relay.bundle.content_extractor import extract_from_html
from wayback_relay.core.exceptions import BundleError
from wayback_relay.core.models import Asset, Bundle

logger = logging.getLogger(__name__)

# Guard import: playwright is an optional dependency
try:
    from playwright.async_api import async_playwright as _async_playwright

    _PLAYWRIGHT_AVAILABLE = True
except ImportError:
    _PLAYWRIGHT_AVAILABLE = False


@asynccontextmanager
async def launch_browser() -> AsyncIterator[Any]:
    """Start Playwright and yield a headless Chromium browser.

    The browser and the Playwright driver are always shut down on exit.

    Raises:
        ImportError: If ``playwright`` is not installed.
    """
    if not _PLAYWRIGHT_AVAILABLE:
        raise ImportError(
            "Playwright is not installed. "
            'Install it with: pip install "wayback-relay[bundle]" && playwright install chromium'
        )
    async with _async_playwright() as p:
        browser = await p.chromium.launch(headless=True)
        try:
            yield browser
        finally:
            await browser.close()


async def capture_page(
    browser: Any,
    url: str,
    directory: Path,
    *,
    timeout: float,
    user_agent: str,
) -> Bundle:
    """Capture one page into *directory* and describe it as a :class:`Bundle`.

    Writes ``page.png`` (full-page screenshot), ``page.pdf``, ``page.html``
    (rendered DOM), ``page.txt`` (extracted text) and ``page.har``.

    Args:
        browser: A Playwright ``Browser`` from :func:`launch_browser`.
        url: Page to capture.
        directory: Destination directory (created if missing).
        timeout: Navigation timeout in seconds.
        user_agent: User-Agent of the browsing context.

    Returns:
        The captured :class:`Bundle`.

    Raises:
        BundleError: If navigation fails or yields no document.
    """
    directory.mkdir(parents=True, exist_ok=True)
    png = directory / "page.png"
    pdf = directory / "page.pdf"
    htm = directory / "page.html"
    txt = directory / "page.txt"
    har = directory / "page.har"

    context = await browser.new_context(user_agent=user_agent, record_har_path=str(har))
    try:
        page = await context.new_page()
        try:
            response = await page.goto(url, timeout=timeout * 1000, wait_until="networkidle")
            if response is None:
                raise BundleError("navigation returned no document", url=url)
            title = await page.title()
            html = await page.content()
            await page.screenshot(path=str(png), full_page=True)
            await page.pdf(path=str(pdf))
        finally:
            await page.close()
    finally:
        # The HAR file is only flushed when the context closes.
        await context.close()

    htm.write_text(html, encoding="utf-8")
    extracted = extract_from_html(html, url=url)
    text_asset = Asset()
    if extracted.text:
        txt.write_text(extracted.text, encoding="utf-8")
        text_asset = Asset(local=str(txt))

    logger.debug("bundle: captured %s into %s", url, directory)
    return Bundle(
        url=url,
        title=title or extracted.title or "",
        html=html,
        image=Asset(local=str(png)),
        pdf=Asset(local=str(pdf)),
        raw_html=Asset(local=str(htm)),
        text=text_asset,
        har=Asset(local=str(har)) if har.exists() else Asset(),
        directory=str(directory),
    )
