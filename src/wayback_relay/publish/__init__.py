"""Rendering of results and delivery to secondary targets."""

from wayback_relay.publish.render import Renderer
from wayback_relay.publish.sinks import (
    GitHubIssuesSink,
    MastodonSink,
    Sink,
    TelegramChannelSink,
    build_sinks,
)

__all__ = [
    "GitHubIssuesSink",
    "MastodonSink",
    "Renderer",
    "Sink",
    "TelegramChannelSink",
    "build_sinks",
]
