"""Telegram message source over the Bot API.

Updates are fetched with ``getUpdates`` long polling.  The ``offset``
cursor advances past every update seen, so an update is delivered once per
process even when it carries no URL.

Each message is its own conversation: the conversation id is
``"<chat_id>:<message_id>"``.  A message whose first entity is a
``bot_command`` (``/start``, ``/help``) is flagged as a command and ignored by
the ingestion loop.  Links hidden behind ``text_link`` entities are appended
to the message text so they are archived too.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

import httpx

from wayback_relay.config.settings import Settings
from wayback_relay.core.exceptions import IngestionError
from wayback_relay.ingest.base import InboundMessage, MessageSource
from wayback_relay.ingest.telegram.config import (
    TELEGRAM_ALLOWED_UPDATES,
    TELEGRAM_HTTP_MARGIN,
    TELEGRAM_MAX_MESSAGE_CHARS,
    telegram_method_url,
)

logger = logging.getLogger(__name__)


def to_message(update: dict[str, Any]) -> InboundMessage | None:
    """Convert a Bot API ``Update`` into an :class:`InboundMessage`.

    Returns:
        ``None`` for updates that carry no message (edits, callbacks, ...).
    """
    msg = update.get("message") or update.get("channel_post")
    if not msg or "chat" not in msg:
        return None

    text: str = msg.get("text") or msg.get("caption") or ""
    entities: list[dict[str, Any]] = msg.get("entities") or msg.get("caption_entities") or []
    is_command = any(e.get("type") == "bot_command" and e.get("offset") == 0 for e in entities)
    links = [e["url"] for e in entities if e.get("type") == "text_link" and e.get("url")]
    if links:
        text = "\n".join([text, *links])

    chat_id = msg["chat"]["id"]
    message_id = msg["message_id"]
    sender = msg.get("from") or {}
    return InboundMessage(
        conversation_id=f"{chat_id}:{message_id}",
        text=text,
        sender_id=str(sender["id"]) if "id" in sender else None,
        reply_to=str(message_id),
        is_command=is_command,
        raw=update,
    )


class TelegramSource(MessageSource):
    """Receives messages sent to a Telegram bot and replies to them.

    Args:
        settings: Application settings; ``telegram_token`` is required.
        http_client: Optional injected client (a mock in tests).

    Raises:
        IngestionError: If no bot token is configured.
    """

    name = "telegram"
    reply_style = "html"

    def __init__(self, settings: Settings, http_client: httpx.AsyncClient | None = None) -> None:
        if not settings.telegram_token:
            raise IngestionError("WAYBACK_TELEGRAM_TOKEN is not set", source=self.name)
        self.token = settings.telegram_token
        self.poll_timeout = settings.telegram_poll_timeout
        self._offset: int | None = None
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(
            timeout=self.poll_timeout + TELEGRAM_HTTP_MARGIN
        )

    async def poll(self) -> AsyncIterator[InboundMessage]:
        while True:
            payload: dict[str, Any] = {
                "timeout": self.poll_timeout,
                "allowed_updates": TELEGRAM_ALLOWED_UPDATES,
            }
            if self._offset is not None:
                payload["offset"] = self._offset
            updates: list[dict[str, Any]] = await self._call("getUpdates", payload)
            for update in updates:
                self._offset = update["update_id"] + 1
                message = to_message(update)
                if message is not None:
                    logger.debug("telegram: update %s in %s", update["update_id"], message.conversation_id)
                    yield message

    async def reply(self, message: InboundMessage, text: str) -> None:
        chat_id, _, _ = message.conversation_id.rpartition(":")
        payload: dict[str, Any] = {
            "chat_id": chat_id,
            "text": text[:TELEGRAM_MAX_MESSAGE_CHARS],
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        if message.reply_to:
            payload["reply_to_message_id"] = int(message.reply_to)
        await self._call("sendMessage", payload)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _call(self, method: str, payload: dict[str, Any]) -> Any:
        """Invoke a Bot API method and return its ``result``.

        Raises:
            IngestionError: On transport errors, non-2xx responses or
                ``ok: false`` replies.
        """
        try:
            response = await self._client.post(telegram_method_url(self.token, method), json=payload)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise IngestionError(
                f"telegram: HTTP {exc.response.status_code} from {method}", source=self.name
            ) from exc
        except httpx.RequestError as exc:
            raise IngestionError(f"telegram: connection error: {exc}", source=self.name) from exc

        body: dict[str, Any] = response.json()
        if not body.get("ok"):
            raise IngestionError(
                f"telegram: {method} rejected: {body.get('description', 'unknown error')}",
                source=self.name,
            )
        return body.get("result")
