"""Tests for the Jinja2 result Renderer."""

from __future__ import annotations

import pytest

from wayback_relay.core.exceptions import BackendError
from wayback_relay.core.models import SLOT_EXTRAS, ArchiveFailure, ArchiveSuccess, Collect, Slot
from wayback_relay.publish.render import Renderer, group_collects

SRC = "https://example.com/a?x=1&y=2"


def _collects() -> list[Collect]:
    return [
        Collect(
            src=SRC,
            slot=Slot.IA,
            outcome=ArchiveSuccess("https://web.archive.org/web/20240101/" + SRC),
            ext=SLOT_EXTRAS[Slot.IA],
        ),
        Collect(
            src=SRC,
            slot=Slot.IS,
            outcome=ArchiveFailure(Slot.IS, BackendError("archive.today returned HTTP 429")),
            ext=SLOT_EXTRAS[Slot.IS],
        ),
    ]


class TestGroupCollects:
    def test_groups_keep_first_appearance_order(self) -> None:
        collects = _collects()
        collects.append(
            Collect(src="https://other.example/", slot=Slot.IA, outcome=ArchiveSuccess("https://x.test/"))
        )
        groups = group_collects(collects)
        assert [g.slot for g in groups] == [Slot.IA, Slot.IS]
        assert len(groups[0].collects) == 2


class TestRenderer:
    def test_html_links_success_and_escapes(self) -> None:
        text = Renderer().render(_collects(), "html")
        assert '<b><a href="https://web.archive.org/">Internet Archive</a></b>:' in text
        assert "archive.today returned HTTP 429" in text
        assert "&amp;y=2" in text
        assert "&y=2" not in text.replace("&amp;", "")

    def test_markdown_for_issues(self) -> None:
        text = Renderer().render(_collects(), "markdown")
        assert "**[Internet Archive](https://web.archive.org/)**:" in text
        assert f"> origin: [{SRC}]({SRC})" in text
        assert "> archived: archive.today returned HTTP 429" in text

    def test_text_lists_destinations_and_sources(self) -> None:
        text = Renderer().render(_collects(), "text")
        assert text.startswith("Internet Archive:")
        assert "• https://web.archive.org/web/20240101/" + SRC in text
        assert text.endswith("• " + SRC)

    def test_text_is_not_escaped(self) -> None:
        assert "&amp;" not in Renderer().render(_collects(), "text")

    def test_unknown_style_raises(self) -> None:
        with pytest.raises(ValueError, match="unknown render style"):
            Renderer().render(_collects(), "rtf")

    def test_empty_collects_render(self) -> None:
        assert Renderer().render([], "text") == "source:"
