"""Per-batch page capture shared by content-based backends."""

from wayback_relay.bundle.provider import (
    BundleProvider,
    NullBundleProvider,
    PlaywrightBundleProvider,
    build_bundle_provider,
)

__all__ = [
    "BundleProvider",
    "NullBundleProvider",
    "PlaywrightBundleProvider",
    "build_bundle_provider",
]
