"""Concurrent fan-out of URLs to archiving and lookup backends."""

from wayback_relay.dispatch.dispatcher import BatchResult, Dispatcher
from wayback_relay.dispatch.limiter import BackendLimiter
from wayback_relay.dispatch.playback import PlaybackDispatcher

__all__ = ["BackendLimiter", "BatchResult", "Dispatcher", "PlaybackDispatcher"]
