"""Message-driven ingestion.

Sub-packages:

- ``telegram``: Telegram Bot API source
- ``mastodon``: Mastodon direct-conversation source

Import :class:`~wayback_relay.ingest.loop.IngestionLoop` from
``wayback_relay.ingest.loop``.
"""
