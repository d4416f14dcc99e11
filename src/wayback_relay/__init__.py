"""Wayback Relay: archive URLs to several archival services at once."""

__version__ = "0.4.0"
