"""Archival and lookup backends.

Each sub-package integrates one external service and registers its
``archiver`` and/or ``playback`` module with
:mod:`wayback_relay.backends.registry`:

- ``internet_archive``: Wayback Machine (archive + playback)
- ``archive_today``:    archive.today (archive + playback)
- ``ipfs``:             IPFS node HTTP API (archive; playback always misses)
- ``telegraph``:        Telegraph pages (archive; playback always misses)
- ``timetravel``:       Time Travel memento aggregator (playback only)
- ``google_cache``:     Google cache (playback only)
"""
