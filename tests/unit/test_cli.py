"""Tests for the wayback-relay command-line interface."""

from __future__ import annotations

import pytest

from wayback_relay import cli
from wayback_relay.core.models import Slot

URL = "https://example.com/"


@pytest.fixture(autouse=True)
def _settings(monkeypatch: pytest.MonkeyPatch, settings):  # type: ignore[no-untyped-def]
    monkeypatch.setattr(cli, "get_settings", lambda: settings)
    return settings


class TestParser:
    def test_slot_flags(self) -> None:
        args = cli.build_parser().parse_args(["archive", URL, "--is", "--ph"])
        assert args.slots == [Slot.IS, Slot.PH]

    def test_slot_flags_select_exactly_those_slots(self, settings) -> None:
        args = cli.build_parser().parse_args(["archive", URL, "--ip"])
        assert cli._slots_from_args(args, settings) == {
            Slot.IA: False,
            Slot.IS: False,
            Slot.IP: True,
            Slot.PH: False,
        }

    def test_no_slot_flag_uses_enabled_slots(self, settings) -> None:
        args = cli.build_parser().parse_args(["archive", URL])
        assert cli._slots_from_args(args, settings) == settings.enabled_slots()

    def test_lookup_only_slots_have_no_flag(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["archive", URL, "--tt"])
        assert "--tt" in capsys.readouterr().err

    def test_serve_requires_daemon(self) -> None:
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["serve"])

    def test_serve_accepts_repeated_daemons(self) -> None:
        args = cli.build_parser().parse_args(["serve", "--daemon", "telegram", "--daemon", "mastodon"])
        assert args.daemon == ["telegram", "mastodon"]


class TestArchiveCommand:
    def test_prints_results(self, archiver_factory, capsys: pytest.CaptureFixture[str]) -> None:
        archiver_factory(Slot.IA, dst="https://web.archive.org/web/1/https://example.com/")
        archiver_factory(Slot.IS, dst="https://archive.ph/abc")

        assert cli.main(["archive", URL, "--ia"]) == 0

        out = capsys.readouterr().out
        assert f"{URL} => https://web.archive.org/web/1/https://example.com/" in out
        assert "archive.ph" not in out

    def test_invalid_url_exits_1(self, archiver_factory, capsys: pytest.CaptureFixture[str]) -> None:
        archiver_factory(Slot.IA)

        assert cli.main(["archive", "ftp://example.com/file", "--ia"]) == 1
        assert "error:" in capsys.readouterr().err

    def test_no_enabled_backend_exits_1(self, settings, archiver_factory, capsys: pytest.CaptureFixture[str]) -> None:
        settings.enable_ia = False
        settings.enable_is = False

        assert cli.main(["archive", URL]) == 1
        assert "archives failure" in capsys.readouterr().err


class TestPlaybackCommand:
    def test_prints_every_lookup(self, playback_factory, capsys: pytest.CaptureFixture[str]) -> None:
        playback_factory(Slot.IA, dst="https://web.archive.org/web/2/https://example.com/")

        assert cli.main(["playback", URL]) == 0
        assert "https://web.archive.org/web/2/https://example.com/" in capsys.readouterr().out


class TestServeCommand:
    def test_missing_token_exits_2(self, capsys: pytest.CaptureFixture[str]) -> None:
        assert cli.main(["serve", "--daemon", "telegram"]) == 2
        assert "WAYBACK_TELEGRAM_TOKEN" in capsys.readouterr().err


class TestBackendsCommand:
    def test_lists_registered_backends(
        self, archiver_factory, playback_factory, capsys: pytest.CaptureFixture[str]
    ) -> None:
        archiver_factory(Slot.IA)
        playback_factory(Slot.IA)
        playback_factory(Slot.TT)

        assert cli.main(["backends"]) == 0

        lines = capsys.readouterr().out.splitlines()
        assert lines[0].split()[0] == "ia"
        assert lines[0].endswith("archive, playback, bundle")
        assert lines[1].split()[0] == "tt"
        assert lines[1].endswith("playback")
        assert len(lines) == 2
