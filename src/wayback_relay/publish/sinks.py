"""Secondary publish targets.

After replying to the origin conversation, the ingestion loop hands the
rendered result to every configured sink.  A sink raises
:class:`~wayback_relay.core.exceptions.PublishError` on failure; the loop
logs it and carries on with the next sink.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any

import httpx

from wayback_relay.config.settings import Settings
from wayback_relay.core.exceptions import PublishError
from wayback_relay.ingest.mastodon.config import MASTODON_MAX_STATUS_CHARS
from wayback_relay.ingest.telegram.config import TELEGRAM_MAX_MESSAGE_CHARS, telegram_method_url

logger = logging.getLogger(__name__)

GITHUB_API_BASE: str = "https://api.github.com"
_HTTP_TIMEOUT: float = 30.0


class Sink(ABC):
    """A publish target.

    Class Attributes:
        name: Short sink name used in logs.
        style: Renderer style the sink expects.
    """

    name: str = "sink"
    style: str = "text"

    def __init__(self, http_client: httpx.AsyncClient | None = None) -> None:
        self._http_client = http_client

    @abstractmethod
    async def deliver(self, text: str) -> None:
        """Publish *text*.

        Raises:
            PublishError: If the target rejected the message.
        """

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        """POST to *url*, converting transport and HTTP errors to :class:`PublishError`."""
        try:
            if self._http_client is not None:
                response = await self._http_client.post(url, **kwargs)
            else:
                async with httpx.AsyncClient(timeout=_HTTP_TIMEOUT) as client:
                    response = await client.post(url, **kwargs)
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise PublishError(
                f"{self.name}: HTTP {exc.response.status_code}", sink=self.name
            ) from exc
        except httpx.RequestError as exc:
            raise PublishError(f"{self.name}: connection error: {exc}", sink=self.name) from exc
        return response


class TelegramChannelSink(Sink):
    """Posts results to a Telegram channel through the Bot API."""

    name = "telegram"
    style = "html"

    def __init__(self, token: str, channel: str, http_client: httpx.AsyncClient | None = None) -> None:
        super().__init__(http_client)
        self.token = token
        self.channel = channel

    async def deliver(self, text: str) -> None:
        response = await self._post(
            telegram_method_url(self.token, "sendMessage"),
            json={
                "chat_id": self.channel,
                "text": text[:TELEGRAM_MAX_MESSAGE_CHARS],
                "parse_mode": "HTML",
                "disable_web_page_preview": True,
            },
        )
        if not response.json().get("ok", False):
            raise PublishError(
                f"telegram: {response.json().get('description', 'sendMessage rejected')}",
                sink=self.name,
            )
        logger.debug("publish: posted result to channel %s", self.channel)


class GitHubIssuesSink(Sink):
    """Opens one GitHub issue per result."""

    name = "github"
    style = "markdown"

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(http_client)
        self.token = token
        self.owner = owner
        self.repo = repo

    async def deliver(self, text: str) -> None:
        title = "Published at " + datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")
        response = await self._post(
            f"{GITHUB_API_BASE}/repos/{self.owner}/{self.repo}/issues",
            json={"title": title, "body": text},
            headers={
                "Authorization": f"Bearer {self.token}",
                "Accept": "application/vnd.github+json",
            },
        )
        logger.debug("publish: opened issue %s", response.json().get("html_url"))


class MastodonSink(Sink):
    """Posts results as public statuses on a Mastodon instance."""

    name = "mastodon"
    style = "text"

    def __init__(
        self,
        server: str,
        access_token: str,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        super().__init__(http_client)
        self.server = server.rstrip("/")
        self.access_token = access_token

    async def deliver(self, text: str) -> None:
        await self._post(
            f"{self.server}/api/v1/statuses",
            data={"status": text[:MASTODON_MAX_STATUS_CHARS], "visibility": "public"},
            headers={"Authorization": f"Bearer {self.access_token}"},
        )
        logger.debug("publish: posted status on %s", self.server)


def build_sinks(
    settings: Settings,
    *,
    skip: tuple[str, ...] = (),
    http_client: httpx.AsyncClient | None = None,
) -> list[Sink]:
    """Return the sinks whose configuration is present in *settings*.

    Args:
        settings: Application settings.
        skip: Sink names to leave out (e.g. the origin platform).
        http_client: Optional client shared by every sink.
    """
    sinks: list[Sink] = []
    if settings.publish_to_channel() and "telegram" not in skip:
        sinks.append(
            TelegramChannelSink(
                settings.telegram_token,  # type: ignore[arg-type]
                settings.telegram_channel,  # type: ignore[arg-type]
                http_client=http_client,
            )
        )
    if settings.publish_to_issues() and "github" not in skip:
        sinks.append(
            GitHubIssuesSink(
                settings.github_token,  # type: ignore[arg-type]
                settings.github_owner,  # type: ignore[arg-type]
                settings.github_repo,  # type: ignore[arg-type]
                http_client=http_client,
            )
        )
    if settings.publish_to_mastodon() and "mastodon" not in skip:
        sinks.append(
            MastodonSink(
                settings.mastodon_server,  # type: ignore[arg-type]
                settings.mastodon_access_token,  # type: ignore[arg-type]
                http_client=http_client,
            )
        )
    logger.debug("publish: %d sink(s) configured", len(sinks))
    return sinks
