"""Tests for the lookup-only backends: Time Travel and Google cache."""

from __future__ import annotations

import httpx
import pytest
import respx

from wayback_relay.backends.google_cache.config import GC_CACHE_URL
from wayback_relay.backends.google_cache.playback import GoogleCachePlayback
from wayback_relay.backends.timetravel.playback import TimeTravelPlayback
from wayback_relay.core.exceptions import PlaybackNotFoundError
from wayback_relay.core.models import ArchiveFailure, ArchiveSuccess, parse_url

URL = "https://example.com/page"
MEMENTO = "https://web.archive.org/web/20230101000000/https://example.com/page"
TT_PATTERN = r"^http://timetravel\.mementoweb\.org/api/json/\d{14}/"


class TestTimeTravelPlayback:
    @pytest.mark.asyncio
    async def test_closest_memento_is_returned(self, settings) -> None:
        body = {"mementos": {"closest": {"datetime": "2023-01-01T00:00:00Z", "uri": [MEMENTO]}}}
        with respx.mock:
            respx.get(url__regex=TT_PATTERN).mock(return_value=httpx.Response(200, json=body))
            outcome = await TimeTravelPlayback(parse_url(URL), settings).playback()

        assert outcome == ArchiveSuccess(MEMENTO)

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, settings) -> None:
        with respx.mock:
            respx.get(url__regex=TT_PATTERN).mock(return_value=httpx.Response(404))
            outcome = await TimeTravelPlayback(parse_url(URL), settings).playback()

        assert isinstance(outcome, ArchiveFailure)
        assert isinstance(outcome.cause, PlaybackNotFoundError)

    @pytest.mark.asyncio
    async def test_server_error_is_a_failure(self, settings) -> None:
        with respx.mock:
            respx.get(url__regex=TT_PATTERN).mock(return_value=httpx.Response(503))
            outcome = await TimeTravelPlayback(parse_url(URL), settings).playback()

        assert isinstance(outcome, ArchiveFailure)
        assert "HTTP 503" in str(outcome)


class TestGoogleCachePlayback:
    @pytest.mark.asyncio
    async def test_cache_page_url_is_returned(self, settings) -> None:
        with respx.mock:
            route = respx.get(GC_CACHE_URL).mock(return_value=httpx.Response(200, text="cached"))
            outcome = await GoogleCachePlayback(parse_url(URL), settings).playback()

        assert isinstance(outcome, ArchiveSuccess)
        assert outcome.destination.startswith(GC_CACHE_URL)
        assert route.calls.last.request.url.params["q"] == f"cache:{URL}"

    @pytest.mark.asyncio
    async def test_404_is_not_found(self, settings) -> None:
        with respx.mock:
            respx.get(GC_CACHE_URL).mock(return_value=httpx.Response(404))
            outcome = await GoogleCachePlayback(parse_url(URL), settings).playback()

        assert isinstance(outcome, ArchiveFailure)
        assert isinstance(outcome.cause, PlaybackNotFoundError)
