"""Message-driven ingestion loop.

:class:`IngestionLoop` consumes a :class:`~wayback_relay.ingest.base.MessageSource`
one message at a time.  Each message carrying URLs is claimed in the
in-flight tracker and processed in its own task:

    dispatch → render → reply to origin → secondary sinks → acknowledge → release

A second notification for a conversation that is still being processed is
dropped, so the dispatcher runs at most once per conversation at a time.
Every accepted message gets either a rendered result or a short notice.
"""

from __future__ import annotations

import asyncio
import contextlib
import html
import logging
from typing import Protocol, Sequence

from wayback_relay.config.settings import Settings
from wayback_relay.core.exceptions import (
    ArchiveFailureError,
    IngestionError,
    InvalidURLError,
    PublishError,
)
from wayback_relay.core.logging_config import conversation_id_var
from wayback_relay.core.models import Collect
from wayback_relay.dispatch.dispatcher import Dispatcher
from wayback_relay.ingest.base import InboundMessage, MessageSource
from wayback_relay.ingest.urls import extract_urls
from wayback_relay.publish.render import Renderer
from wayback_relay.publish.sinks import Sink

logger = logging.getLogger(__name__)

NO_URL_NOTICE: str = "URL no found."
FAILURE_NOTICE: str = "Archives failure."
INVALID_URL_NOTICE: str = "Invalid URL: {url}"


class Tracker(Protocol):
    """Claim/release contract shared by the in-flight trackers."""

    async def try_claim(self, conversation_id: str) -> bool: ...

    async def release(self, conversation_id: str, *, delay: float | None = None) -> None: ...


class IngestionLoop:
    """Polls a message source and archives the URLs it receives.

    Args:
        source: Chat platform integration.
        dispatcher: Dispatcher used for every accepted message.
        tracker: In-flight tracker deduplicating conversations.
        renderer: Renders collects for the origin reply and the sinks.
        sinks: Secondary publish targets.
        settings: Explicit configuration (poll interval).
    """

    def __init__(
        self,
        source: MessageSource,
        dispatcher: Dispatcher,
        tracker: Tracker,
        renderer: Renderer,
        sinks: Sequence[Sink] = (),
        *,
        settings: Settings,
    ) -> None:
        self.source = source
        self.dispatcher = dispatcher
        self.tracker = tracker
        self.renderer = renderer
        self.sinks = list(sinks)
        self.settings = settings
        self._tasks: set[asyncio.Task[None]] = set()
        self._stopping = asyncio.Event()

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def run(self) -> None:
        """Poll until :meth:`stop` is called or the task is cancelled.

        Poll failures are logged and the poll restarts after
        ``settings.poll_interval`` seconds.  Processing tasks still running
        on exit are awaited.
        """
        logger.info("ingestion: %s loop started", self.source.name)
        try:
            while not self._stopping.is_set():
                try:
                    async with contextlib.aclosing(self.source.poll()) as messages:
                        async for message in messages:
                            await self.handle(message)
                            if self._stopping.is_set():
                                break
                except asyncio.CancelledError:
                    raise
                except Exception as exc:  # noqa: BLE001
                    logger.error("ingestion: polling %s failed: %s", self.source.name, exc)
                await self._pause()
        finally:
            await self.drain()
            logger.info("ingestion: %s loop stopped", self.source.name)

    def stop(self) -> None:
        """Ask :meth:`run` to return after the current message."""
        self._stopping.set()

    async def drain(self) -> None:
        """Wait for every in-flight processing task to finish."""
        if self._tasks:
            await asyncio.gather(*self._tasks, return_exceptions=True)

    async def _pause(self) -> None:
        with contextlib.suppress(TimeoutError):
            await asyncio.wait_for(self._stopping.wait(), timeout=self.settings.poll_interval)

    # ------------------------------------------------------------------
    # Per-message handling
    # ------------------------------------------------------------------

    async def handle(self, message: InboundMessage) -> asyncio.Task[None] | None:
        """Accept or drop one inbound message.

        Returns:
            The processing task when the message was accepted, else ``None``.
        """
        if message.is_command:
            logger.debug("ingestion: ignoring command in %s", message.conversation_id)
            return None

        urls = extract_urls(message.text)
        if not urls:
            await self._reply(message, NO_URL_NOTICE)
            await self._acknowledge(message)
            return None

        if not await self.tracker.try_claim(message.conversation_id):
            logger.debug("ingestion: conversation %s already in flight", message.conversation_id)
            return None

        task = asyncio.create_task(
            self._process(message, urls), name=f"wayback-{message.conversation_id}"
        )
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return task

    async def _process(self, message: InboundMessage, urls: list[str]) -> None:
        token = conversation_id_var.set(message.conversation_id)
        logger.info("ingestion: archiving %d url(s)", len(urls))
        try:
            try:
                result = await self.dispatcher.dispatch(urls)
            except ArchiveFailureError:
                await self._reply(message, FAILURE_NOTICE)
            except InvalidURLError as exc:
                if exc.collects:
                    await self._publish(message, exc.collects)
                else:
                    await self._reply(message, self._invalid_url_notice(exc.url))
            else:
                async with result:
                    await self._publish(message, result.collects)
        except Exception as exc:  # noqa: BLE001
            logger.error("ingestion: processing failed: %s", exc, exc_info=True)
            await self._reply(message, FAILURE_NOTICE)
        finally:
            try:
                await self._acknowledge(message)
            finally:
                try:
                    await self.tracker.release(message.conversation_id)
                finally:
                    conversation_id_var.reset(token)

    def _invalid_url_notice(self, url: str) -> str:
        if self.source.reply_style == "html":
            url = html.escape(url)
        return INVALID_URL_NOTICE.format(url=url)

    async def _publish(self, message: InboundMessage, collects: list[Collect]) -> None:
        await self._reply(message, self.renderer.render(collects, self.source.reply_style))
        for sink in self.sinks:
            try:
                await sink.deliver(self.renderer.render(collects, sink.style))
            except PublishError as exc:
                logger.warning("publish: %s delivery failed: %s", sink.name, exc)

    async def _acknowledge(self, message: InboundMessage) -> None:
        try:
            await self.source.acknowledge(message)
        except IngestionError as exc:
            logger.warning("ingestion: acknowledge of %s failed: %s", message.conversation_id, exc)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "ingestion: acknowledge of %s failed: %s", message.conversation_id, exc, exc_info=True
            )

    async def _reply(self, message: InboundMessage, text: str) -> None:
        try:
            await self.source.reply(message, text)
        except IngestionError as exc:
            logger.error("ingestion: reply to %s failed: %s", message.conversation_id, exc)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "ingestion: reply to %s failed: %s", message.conversation_id, exc, exc_info=True
            )
