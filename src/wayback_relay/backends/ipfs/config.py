"""Configuration for the IPFS backend.

Pages are added through a local (or remote) IPFS node's HTTP API; the node
address and the public gateway come from
:class:`~wayback_relay.config.settings.Settings` (``ipfs_api``,
``ipfs_gateway``).
"""

from __future__ import annotations

IPFS_ADD_PATH: str = "/api/v0/add"
"""Path of the ``add`` RPC, appended to ``Settings.ipfs_api``."""

IPFS_ADD_PARAMS: dict[str, str] = {"pin": "true", "cid-version": "1"}
"""Query parameters for ``add``: pin the content, use CIDv1."""

IPFS_FILENAME: str = "index.html"
"""Name given to the uploaded page."""
