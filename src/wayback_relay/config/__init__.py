"""Configuration package for Wayback Relay.

Re-exports the settings symbols so that callers can write::

    from wayback_relay.config import Settings, get_settings
"""

from __future__ import annotations

from wayback_relay.config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
]
