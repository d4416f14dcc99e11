"""Abstract message source for chat platforms.

A source turns a platform's inbox into a stream of :class:`InboundMessage`
units and knows how to answer one.  The ingestion loop owns everything
else: URL extraction, deduplication, dispatch and publishing.

Example usage::

    from wayback_relay.ingest.base import InboundMessage, MessageSource

    class MySource(MessageSource):
        name = "my-platform"

        async def poll(self):
            while True:
                for item in await self._fetch():
                    yield InboundMessage(conversation_id=item["id"], text=item["text"])

        async def reply(self, message, text): ...
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, AsyncIterator


@dataclass
class InboundMessage:
    """One unit of work received from a chat platform.

    Attributes:
        conversation_id: Key used to deduplicate concurrent processing.
        text: Plain-text body of the message.
        sender_id: Platform identifier of the author, if known.
        reply_to: Platform identifier to reply to (message or status id).
        is_command: ``True`` for bot commands such as ``/start``.
        raw: The platform payload the message was built from.
    """

    conversation_id: str
    text: str
    sender_id: str | None = None
    reply_to: str | None = None
    is_command: bool = False
    raw: dict[str, Any] = field(default_factory=dict)


class MessageSource(ABC):
    """Abstract base class for chat platform integrations.

    Class Attributes:
        name: Short platform name used in logs (e.g. ``"telegram"``).
        reply_style: Renderer style of replies (``"html"``, ``"markdown"``
            or ``"text"``).
    """

    name: str = "source"
    reply_style: str = "text"

    @abstractmethod
    def poll(self) -> AsyncIterator[InboundMessage]:
        """Yield inbound messages indefinitely.

        Implementations are async generators.  A transport failure is
        raised as :class:`~wayback_relay.core.exceptions.IngestionError`;
        the loop then calls :meth:`poll` again after a pause.
        """

    @abstractmethod
    async def reply(self, message: InboundMessage, text: str) -> None:
        """Send *text* back to the origin of *message*.

        Raises:
            IngestionError: If the platform rejected the reply.
        """

    async def acknowledge(self, message: InboundMessage) -> None:
        """Mark *message* as handled once its reply has been sent."""

    async def aclose(self) -> None:
        """Release network resources held by the source."""
