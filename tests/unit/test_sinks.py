"""Tests for the publish sinks.

Covers:
- build_sinks() returns only configured sinks and honours ``skip``
- TelegramChannelSink posts sendMessage with HTML parse mode
- GitHubIssuesSink opens an issue with a bearer token
- MastodonSink posts a public status truncated to 500 chars
- HTTP and transport errors become PublishError
"""

from __future__ import annotations

import json
from urllib.parse import parse_qs

import httpx
import pytest
import respx

from wayback_relay.core.exceptions import PublishError
from wayback_relay.publish.sinks import (
    GitHubIssuesSink,
    MastodonSink,
    TelegramChannelSink,
    build_sinks,
)


class TestBuildSinks:
    def test_no_configuration_no_sinks(self, settings) -> None:
        assert build_sinks(settings) == []

    def test_configured_sinks(self, settings) -> None:
        settings.telegram_token = "bot-token"
        settings.telegram_channel = "@archive"
        settings.github_token = "gh-token"
        settings.github_owner = "owner"
        settings.github_repo = "repo"
        settings.mastodon_server = "https://mastodon.test"
        settings.mastodon_access_token = "m-token"
        settings.mastodon_publish = True

        names = [sink.name for sink in build_sinks(settings)]
        assert names == ["telegram", "github", "mastodon"]
        assert [s.name for s in build_sinks(settings, skip=("mastodon",))] == ["telegram", "github"]

    def test_mastodon_requires_publish_flag(self, settings) -> None:
        settings.mastodon_server = "https://mastodon.test"
        settings.mastodon_access_token = "m-token"
        assert build_sinks(settings) == []


class TestTelegramChannelSink:
    @pytest.mark.asyncio
    async def test_deliver_posts_send_message(self) -> None:
        with respx.mock:
            route = respx.post("https://api.telegram.org/botbot-token/sendMessage").mock(
                return_value=httpx.Response(200, json={"ok": True, "result": {}})
            )
            await TelegramChannelSink("bot-token", "@archive").deliver("<b>hi</b>")

        payload = json.loads(route.calls.last.request.content)
        assert payload["chat_id"] == "@archive"
        assert payload["parse_mode"] == "HTML"
        assert payload["text"] == "<b>hi</b>"

    @pytest.mark.asyncio
    async def test_not_ok_raises_publish_error(self) -> None:
        with respx.mock:
            respx.post("https://api.telegram.org/botbot-token/sendMessage").mock(
                return_value=httpx.Response(200, json={"ok": False, "description": "chat not found"})
            )
            with pytest.raises(PublishError, match="chat not found"):
                await TelegramChannelSink("bot-token", "@archive").deliver("x")


class TestGitHubIssuesSink:
    @pytest.mark.asyncio
    async def test_deliver_opens_issue(self) -> None:
        with respx.mock:
            route = respx.post("https://api.github.com/repos/owner/repo/issues").mock(
                return_value=httpx.Response(201, json={"html_url": "https://github.com/owner/repo/issues/1"})
            )
            await GitHubIssuesSink("gh-token", "owner", "repo").deliver("**body**")

        request = route.calls.last.request
        assert request.headers["Authorization"] == "Bearer gh-token"
        payload = json.loads(request.content)
        assert payload["body"] == "**body**"
        assert payload["title"].startswith("Published at ")

    @pytest.mark.asyncio
    async def test_http_error_raises_publish_error(self) -> None:
        with respx.mock:
            respx.post("https://api.github.com/repos/owner/repo/issues").mock(
                return_value=httpx.Response(401)
            )
            with pytest.raises(PublishError) as excinfo:
                await GitHubIssuesSink("gh-token", "owner", "repo").deliver("x")
        assert excinfo.value.sink == "github"


class TestMastodonSink:
    @pytest.mark.asyncio
    async def test_deliver_posts_public_status(self) -> None:
        with respx.mock:
            route = respx.post("https://mastodon.test/api/v1/statuses").mock(
                return_value=httpx.Response(200, json={"id": "1"})
            )
            await MastodonSink("https://mastodon.test/", "m-token").deliver("x" * 600)

        form = parse_qs(route.calls.last.request.content.decode())
        assert form["visibility"] == ["public"]
        assert len(form["status"][0]) == 500

    @pytest.mark.asyncio
    async def test_connection_error_raises_publish_error(self) -> None:
        with respx.mock:
            respx.post("https://mastodon.test/api/v1/statuses").mock(
                side_effect=httpx.ConnectError("refused")
            )
            with pytest.raises(PublishError, match="connection error"):
                await MastodonSink("https://mastodon.test", "m-token").deliver("x")
