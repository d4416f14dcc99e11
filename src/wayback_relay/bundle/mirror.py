"""Mirror captured assets to a public file host.

Telegraph pages can only embed images that are reachable over HTTP, so when
``Settings.mirror_assets`` is on the screenshot (and the other local assets)
are uploaded to catbox.moe and the returned link is stored in
:attr:`Asset.remote`.
"""

from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import httpx

from wayback_relay.core.models import Asset, Bundle

logger = logging.getLogger(__name__)

CATBOX_API_URL: str = "https://catbox.moe/user/api.php"

_MIRRORED_ASSETS: tuple[str, ...] = ("image", "pdf", "raw_html", "har")


async def upload_file(client: httpx.AsyncClient, path: str) -> str:
    """Upload one file and return its public URL.

    Raises:
        httpx.HTTPStatusError: On a non-2xx response.
        ValueError: If the host did not answer with a URL.
    """
    payload = Path(path).read_bytes()
    response = await client.post(
        CATBOX_API_URL,
        data={"reqtype": "fileupload"},
        files={"fileToUpload": (Path(path).name, payload)},
    )
    response.raise_for_status()
    link = response.text.strip()
    if not link.startswith("http"):
        raise ValueError(f"unexpected upload response: {link[:120]!r}")
    return link


async def mirror_bundle(bundle: Bundle, client: httpx.AsyncClient) -> Bundle:
    """Return a copy of *bundle* with remote links filled in.

    An asset whose upload fails keeps its local path only.
    """
    changes: dict[str, Asset] = {}
    for name, asset in bundle.assets().items():
        if name not in _MIRRORED_ASSETS or not asset.local or asset.remote:
            continue
        try:
            remote = await upload_file(client, asset.local)
        except (httpx.HTTPError, OSError, ValueError) as exc:
            logger.warning("bundle: mirroring %s of %s failed: %s", name, bundle.url, exc)
            continue
        changes[name] = Asset(local=asset.local, remote=remote)
    if not changes:
        return bundle
    return dataclasses.replace(bundle, **changes)
