"""Mastodon direct-conversation message source."""
