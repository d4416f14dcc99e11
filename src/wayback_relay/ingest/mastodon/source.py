"""Mastodon message source over the REST API.

Polls the relay account's direct conversations.  A conversation is handed
to the ingestion loop as one message built from its last status; once the
loop has replied, :meth:`MastodonSource.acknowledge` deletes the
conversation so the next poll does not return it again.

Notifications pile up for every mention the relay receives, so they are
cleared every ten minutes.
"""

from __future__ import annotations

import asyncio
import html as html_module
import logging
import re
import time
from typing import Any, AsyncIterator, Callable

import httpx

from wayback_relay.config.settings import Settings
from wayback_relay.core.exceptions import IngestionError
from wayback_relay.ingest.base import InboundMessage, MessageSource
from wayback_relay.ingest.mastodon.config import (
    MASTODON_CLEAR_INTERVAL,
    MASTODON_CLEAR_NOTIFICATIONS_PATH,
    MASTODON_CONVERSATION_PATH,
    MASTODON_CONVERSATIONS_PATH,
    MASTODON_MAX_RESULTS_PER_PAGE,
    MASTODON_MAX_STATUS_CHARS,
    MASTODON_STATUSES_PATH,
)

logger = logging.getLogger(__name__)

_HTTP_TIMEOUT: float = 30.0


def text_content(html: str) -> str:
    """Convert Mastodon status HTML to plain text.

    ``<br>`` and paragraph ends become newlines; every other tag is dropped
    and entities are unescaped.
    """
    if not html:
        return ""
    text = re.sub(r"<br\s*/?>", "\n", html, flags=re.IGNORECASE)
    text = re.sub(r"</p>", "\n", text, flags=re.IGNORECASE)
    text = re.sub(r"<[^>]+>", "", text)
    text = html_module.unescape(text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()


def to_message(conversation: dict[str, Any]) -> InboundMessage | None:
    """Convert a Mastodon ``Conversation`` into an :class:`InboundMessage`.

    Returns:
        ``None`` when the conversation has no last status.
    """
    status = conversation.get("last_status")
    if not status:
        return None
    account = status.get("account") or {}
    return InboundMessage(
        conversation_id=str(conversation["id"]),
        text=text_content(status.get("content", "") or ""),
        sender_id=account.get("acct"),
        reply_to=str(status["id"]),
        raw=conversation,
    )


class MastodonSource(MessageSource):
    """Receives direct messages sent to a Mastodon account and replies to them.

    Args:
        settings: Application settings; ``mastodon_server`` and
            ``mastodon_access_token`` are required.
        http_client: Optional injected client (a mock in tests).
        clock: Monotonic clock, injectable for tests.

    Raises:
        IngestionError: If the server or token is missing.
    """

    name = "mastodon"
    reply_style = "text"

    def __init__(
        self,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if not settings.mastodon_server or not settings.mastodon_access_token:
            raise IngestionError(
                "WAYBACK_MASTODON_SERVER and WAYBACK_MASTODON_ACCESS_TOKEN must be set",
                source=self.name,
            )
        self.server = settings.mastodon_server.rstrip("/")
        self.poll_interval = settings.poll_interval
        self._token = settings.mastodon_access_token
        self._clock = clock
        self._last_clear = clock()
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=_HTTP_TIMEOUT)

    async def poll(self) -> AsyncIterator[InboundMessage]:
        while True:
            await self._maybe_clear_notifications()
            conversations: list[dict[str, Any]] = await self._request(
                "GET",
                MASTODON_CONVERSATIONS_PATH,
                params={"limit": MASTODON_MAX_RESULTS_PER_PAGE},
            )
            logger.debug("mastodon: %d conversation(s)", len(conversations))
            for conversation in conversations:
                message = to_message(conversation)
                if message is not None:
                    yield message
            await asyncio.sleep(self.poll_interval)

    async def reply(self, message: InboundMessage, text: str) -> None:
        status = f"@{message.sender_id} {text}" if message.sender_id else text
        data: dict[str, Any] = {
            "status": status[:MASTODON_MAX_STATUS_CHARS],
            "visibility": "direct",
        }
        if message.reply_to:
            data["in_reply_to_id"] = message.reply_to
        await self._request("POST", MASTODON_STATUSES_PATH, data=data)

    async def acknowledge(self, message: InboundMessage) -> None:
        """Delete the conversation of *message*."""
        await self._request(
            "DELETE",
            MASTODON_CONVERSATION_PATH.format(conversation_id=message.conversation_id),
        )

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _maybe_clear_notifications(self) -> None:
        now = self._clock()
        if now - self._last_clear < MASTODON_CLEAR_INTERVAL:
            return
        self._last_clear = now
        try:
            await self._request("POST", MASTODON_CLEAR_NOTIFICATIONS_PATH)
            logger.debug("mastodon: notifications cleared")
        except IngestionError as exc:
            logger.warning("mastodon: clearing notifications failed: %s", exc)

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send an authenticated request and return the decoded JSON body.

        Raises:
            IngestionError: On transport errors and non-2xx responses.
        """
        try:
            response = await self._client.request(
                method,
                f"{self.server}{path}",
                headers={"Authorization": f"Bearer {self._token}"},
                **kwargs,
            )
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            if exc.response.status_code == 401:
                raise IngestionError(
                    "mastodon: 401 unauthorized, check the access token", source=self.name
                ) from exc
            raise IngestionError(
                f"mastodon: HTTP {exc.response.status_code} from {method} {path}",
                source=self.name,
            ) from exc
        except httpx.RequestError as exc:
            raise IngestionError(f"mastodon: connection error: {exc}", source=self.name) from exc
        if not response.content:
            return None
        return response.json()
