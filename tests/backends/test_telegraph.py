"""Tests for the Telegraph archiving and lookup backends.

Covers:
- build_nodes(): paragraphs, optional screenshot figure, trailing source link
- page created from a bundle (text asset and mirrored screenshot)
- anonymous account created when no token is configured
- configured token skips account creation
- API error payload → ArchiveFailure
- playback always misses
"""

from __future__ import annotations

import json
from pathlib import Path

import httpx
import pytest
import respx

from wayback_relay.backends.telegraph.archiver import TelegraphArchiver, build_nodes
from wayback_relay.backends.telegraph.config import TELEGRAPH_API_URL
from wayback_relay.backends.telegraph.playback import TelegraphPlayback
from wayback_relay.core.exceptions import PlaybackNotFoundError
from wayback_relay.core.models import ArchiveFailure, ArchiveSuccess, Asset, Bundle, parse_url

URL = "https://example.com/article"
PAGE = "https://telegra.ph/Example-Article-01-01"


def _bundle(tmp_path: Path) -> Bundle:
    text = tmp_path / "page.txt"
    text.write_text("First paragraph.\n\nSecond paragraph.", encoding="utf-8")
    return Bundle(
        url=URL,
        title="Example Article",
        text=Asset(local=str(text)),
        image=Asset(remote="https://files.catbox.moe/abc.png"),
    )


class TestBuildNodes:
    def test_paragraphs_and_source_link(self) -> None:
        nodes = build_nodes("one\n\n\n\ntwo", URL)
        assert [n["children"][0] for n in nodes[:2]] == ["one", "two"]
        assert nodes[-1]["children"][1]["attrs"]["href"] == URL

    def test_image_becomes_leading_figure(self) -> None:
        nodes = build_nodes("text", URL, image="https://img.test/a.png")
        assert nodes[0]["tag"] == "figure"
        assert nodes[0]["children"][0]["attrs"]["src"] == "https://img.test/a.png"


class TestTelegraphArchiver:
    @pytest.mark.asyncio
    async def test_page_from_bundle_with_anonymous_account(self, settings, tmp_path: Path) -> None:
        with respx.mock:
            account = respx.post(f"{TELEGRAPH_API_URL}/createAccount").mock(
                return_value=httpx.Response(200, json={"ok": True, "result": {"access_token": "anon"}})
            )
            create = respx.post(f"{TELEGRAPH_API_URL}/createPage").mock(
                return_value=httpx.Response(200, json={"ok": True, "result": {"url": PAGE}})
            )
            outcome = await TelegraphArchiver(parse_url(URL), settings, bundle=_bundle(tmp_path)).archive()

        assert outcome == ArchiveSuccess(PAGE)
        assert account.called
        payload = json.loads(create.calls.last.request.content)
        assert payload["access_token"] == "anon"
        assert payload["title"] == "Example Article"
        assert payload["content"][0]["tag"] == "figure"
        assert payload["content"][1]["children"] == ["First paragraph."]

    @pytest.mark.asyncio
    async def test_configured_token_and_live_page(self, settings) -> None:
        settings.telegraph_token = "configured"
        html = "<html><head><title>Live</title></head><body><p>Live body text.</p></body></html>"
        with respx.mock(assert_all_called=False) as mock:
            mock.get(URL).mock(return_value=httpx.Response(200, text=html))
            account = mock.post(f"{TELEGRAPH_API_URL}/createAccount")
            create = mock.post(f"{TELEGRAPH_API_URL}/createPage").mock(
                return_value=httpx.Response(200, json={"ok": True, "result": {"url": PAGE}})
            )
            outcome = await TelegraphArchiver(parse_url(URL), settings).archive()

        assert outcome == ArchiveSuccess(PAGE)
        assert not account.called
        assert json.loads(create.calls.last.request.content)["access_token"] == "configured"

    @pytest.mark.asyncio
    async def test_api_error_is_a_failure(self, settings, tmp_path: Path) -> None:
        settings.telegraph_token = "configured"
        with respx.mock:
            respx.post(f"{TELEGRAPH_API_URL}/createPage").mock(
                return_value=httpx.Response(200, json={"ok": False, "error": "CONTENT_TOO_BIG"})
            )
            outcome = await TelegraphArchiver(parse_url(URL), settings, bundle=_bundle(tmp_path)).archive()

        assert isinstance(outcome, ArchiveFailure)
        assert "CONTENT_TOO_BIG" in str(outcome)


class TestTelegraphPlayback:
    @pytest.mark.asyncio
    async def test_lookup_always_misses(self, settings) -> None:
        outcome = await TelegraphPlayback(parse_url(URL), settings).playback()
        assert isinstance(outcome, ArchiveFailure)
        assert isinstance(outcome.cause, PlaybackNotFoundError)
