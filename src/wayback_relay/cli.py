"""Command-line interface for Wayback Relay.

Usage:
    wayback-relay archive URL [URL ...] [--ia] [--is] [--ip] [--ph]
    wayback-relay playback URL [URL ...]
    wayback-relay backends
    wayback-relay serve --daemon telegram [--daemon mastodon]

``archive`` with no slot flag uses the slots enabled in the environment
(``WAYBACK_ENABLE_*``); with flags, exactly the given slots are used.

Exit codes:
    0  Success
    1  Invalid URL or no archive produced
    2  Usage or configuration error
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from wayback_relay import __version__
from wayback_relay.backends.registry import autodiscover, list_backends
from wayback_relay.config.settings import Settings, get_settings
from wayback_relay.core.exceptions import (
    ArchiveFailureError,
    IngestionError,
    InvalidURLError,
)
from wayback_relay.core.logging_config import configure_logging
from wayback_relay.core.models import SLOT_NAMES, WRITABLE_SLOTS, Collect, Slot
from wayback_relay.dispatch.dispatcher import Dispatcher
from wayback_relay.dispatch.playback import PlaybackDispatcher
from wayback_relay.ingest.base import MessageSource
from wayback_relay.ingest.loop import IngestionLoop
from wayback_relay.ingest.tracker import (
    InFlightTracker,
    RedisInFlightTracker,
    build_redis_client,
)
from wayback_relay.publish.render import Renderer
from wayback_relay.publish.sinks import build_sinks

logger = logging.getLogger(__name__)

DAEMONS: tuple[str, ...] = ("telegram", "mastodon")


# ---------------------------------------------------------------------------
# Argument parsing
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="wayback-relay",
        description="Archive web pages to several archival services at once.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--log-level",
        default=None,
        help="Override WAYBACK_LOG_LEVEL (DEBUG, INFO, WARNING, ERROR).",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    archive = commands.add_parser("archive", help="Archive URLs and print the results.")
    archive.add_argument("urls", nargs="+", metavar="URL")
    for slot in WRITABLE_SLOTS:
        archive.add_argument(
            f"--{slot.value}",
            dest="slots",
            action="append_const",
            const=slot,
            help=SLOT_NAMES[slot],
        )

    playback = commands.add_parser("playback", help="Look up existing archived copies.")
    playback.add_argument("urls", nargs="+", metavar="URL")

    commands.add_parser("backends", help="List the registered archive and lookup backends.")

    serve = commands.add_parser("serve", help="Run chat ingestion daemons.")
    serve.add_argument(
        "--daemon",
        action="append",
        choices=DAEMONS,
        required=True,
        help="Message source to run (repeatable).",
    )
    return parser


def _slots_from_args(args: argparse.Namespace, settings: Settings) -> dict[Slot, bool]:
    if not args.slots:
        return settings.enabled_slots()
    return {slot: slot in args.slots for slot in WRITABLE_SLOTS}


def _print_collects(collects: list[Collect]) -> None:
    for collect in sorted(collects, key=lambda c: (c.src, c.slot.value)):
        print(f"{collect.name:<17} {collect.src} => {collect.dst}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _archive(args: argparse.Namespace, settings: Settings) -> int:
    dispatcher = Dispatcher(settings)
    try:
        result = await dispatcher.dispatch(args.urls, _slots_from_args(args, settings))
    except InvalidURLError as exc:
        _print_collects(exc.collects)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except ArchiveFailureError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    async with result:
        _print_collects(result.collects)
    return 0


async def _playback(args: argparse.Namespace, settings: Settings) -> int:
    try:
        collects = await PlaybackDispatcher(settings).playback(args.urls)
    except InvalidURLError as exc:
        _print_collects(exc.collects)
        print(f"error: {exc}", file=sys.stderr)
        return 1
    _print_collects(collects)
    return 0


async def _backends(args: argparse.Namespace, settings: Settings) -> int:  # noqa: ARG001
    autodiscover()
    for row in list_backends():
        modes = [mode for mode in ("archive", "playback") if row[mode]]
        if row["uses_bundle"]:
            modes.append("bundle")
        print(f"{row['slot']:<3} {row['name']:<17} {', '.join(modes)}")
    return 0


def _build_source(name: str, settings: Settings) -> MessageSource:
    if name == "telegram":
        from wayback_relay.ingest.telegram.source import TelegramSource  # noqa: PLC0415

        return TelegramSource(settings)
    from wayback_relay.ingest.mastodon.source import MastodonSource  # noqa: PLC0415

    return MastodonSource(settings)


async def _serve(args: argparse.Namespace, settings: Settings) -> int:
    try:
        sources = [_build_source(name, settings) for name in dict.fromkeys(args.daemon)]
    except IngestionError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2

    redis_client = build_redis_client(settings.redis_url) if settings.redis_url else None
    if redis_client is not None:
        tracker = RedisInFlightTracker(redis_client, grace=settings.release_grace)
    else:
        tracker = InFlightTracker(grace=settings.release_grace)

    dispatcher = Dispatcher(settings)
    renderer = Renderer()
    loops = [
        IngestionLoop(
            source,
            dispatcher,
            tracker,
            renderer,
            build_sinks(settings, skip=("mastodon",) if source.name == "mastodon" else ()),
            settings=settings,
        )
        for source in sources
    ]
    try:
        await asyncio.gather(*(loop.run() for loop in loops))
    finally:
        for source in sources:
            await source.aclose()
        if redis_client is not None:
            await redis_client.aclose()
    return 0


_COMMANDS = {
    "archive": _archive,
    "playback": _playback,
    "backends": _backends,
    "serve": _serve,
}


def main(argv: list[str] | None = None) -> int:
    """Parse *argv*, run the command and return its exit code."""
    args = build_parser().parse_args(argv)
    settings = get_settings()
    configure_logging(args.log_level or settings.log_level)
    try:
        return asyncio.run(_COMMANDS[args.command](args, settings))
    except KeyboardInterrupt:
        logger.info("interrupted")
        return 130


if __name__ == "__main__":
    sys.exit(main())
