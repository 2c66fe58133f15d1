"""Command-line entry point: run the monitor or inspect the imaging API."""

from __future__ import annotations

import argparse
import json
import math
from pathlib import Path
from collections.abc import Sequence

from rich.console import Console
from rich.table import Table

from .api.client import SpaceCatClient
from .api.models import AutofocusResult, Event, FilterWheelChange, ImageMetadata, TargetStart
from .chat.base import ChatChannel
from .chat.dispatcher import NotificationDispatcher
from .chat.factory import build_channels
from .config import Settings, load_settings
from .exceptions import ChannelConstructionError, ConfigError, SpaceCatAPIError
from .log_setup import setup_logger
from .monitor.loop import MonitorLoop
from .monitor.meridian import format_with_clock
from .monitor.target import extract_meridian_flip_hours, resolve_current_target
from .redaction import sanitize_for_logging

EXIT_OK = 0
EXIT_CONFIG = 2
EXIT_CHANNELS = 3
EXIT_BASELINE = 4
EXIT_API = 5
EXIT_OUTPUT = 6


def parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    """Parse monitor CLI arguments."""
    parser = argparse.ArgumentParser(
        prog="spacecat-monitor",
        description="Poll an imaging control endpoint and forward notifications to chat.",
    )
    subparsers = parser.add_subparsers(dest="command")

    run_parser = subparsers.add_parser("run", help="Run the monitor loop (default).")
    run_parser.add_argument(
        "--interval",
        type=float,
        default=None,
        help="Poll interval in seconds (overrides POLL_INTERVAL_SECONDS).",
    )
    run_parser.add_argument(
        "--max-cycles",
        type=int,
        default=None,
        help="Stop after this many ticks instead of running forever.",
    )

    events_parser = subparsers.add_parser("events", help="Show recent event history.")
    events_parser.add_argument("--count", type=int, default=20, help="Number of events to show.")

    images_parser = subparsers.add_parser("images", help="Show recent image history.")
    images_parser.add_argument("--count", type=int, default=10, help="Number of images to show.")

    subparsers.add_parser("sequence", help="Show current target and meridian flip countdown.")
    subparsers.add_parser("last-af", help="Show the most recent autofocus result.")

    thumbnail_parser = subparsers.add_parser(
        "thumbnail", help="Save the thumbnail of one image from image history."
    )
    thumbnail_parser.add_argument(
        "index", type=int, nargs="?", default=0, help="Image index in history (default 0)."
    )
    thumbnail_parser.add_argument(
        "-o", "--output", default="thumbnail.jpg", help="File to write the thumbnail to."
    )
    thumbnail_parser.add_argument(
        "--image-type",
        default=None,
        help="Only index images of this type (LIGHT, FLAT, DARK, BIAS, SNAPSHOT).",
    )

    args = parser.parse_args(argv)
    if args.command is None:
        args = parser.parse_args(["run"])
    return args


def _event_details(event: Event) -> str:
    details = event.details
    if isinstance(details, FilterWheelChange):
        return f"{details.previous.name} → {details.new.name}"
    if isinstance(details, TargetStart):
        project = f" ({details.project_name})" if details.project_name else ""
        return f"{details.target_name}{project}"
    return "-"


def _print_events(console: Console, events: list[Event], count: int) -> None:
    table = Table(title=f"Last {min(count, len(events))} of {len(events)} events")
    table.add_column("Time")
    table.add_column("Event")
    table.add_column("Details", overflow="fold")
    for event in events[-count:]:
        table.add_row(event.time, event.kind, _event_details(event))
    console.print(table)


def _fmt(value: float, digits: int) -> str:
    return "-" if math.isnan(value) else f"{value:.{digits}f}"


def _print_images(console: Console, images: list[ImageMetadata], count: int) -> None:
    table = Table(title=f"Last {min(count, len(images))} of {len(images)} images")
    table.add_column("#", justify="right")
    table.add_column("Date")
    table.add_column("Type")
    table.add_column("Filter")
    table.add_column("Exposure", justify="right")
    table.add_column("Stars", justify="right")
    table.add_column("HFR", justify="right")
    table.add_column("RMS", overflow="fold")
    start = max(0, len(images) - count)
    for index, image in enumerate(images[start:], start=start):
        table.add_row(
            str(index),
            image.timestamp,
            image.image_type,
            image.filter or "-",
            f"{image.exposure_time:g}s",
            str(image.stars),
            _fmt(image.hfr, 2),
            image.rms_text or "-",
        )
    console.print(table)


def _print_autofocus(console: Console, result: AutofocusResult) -> None:
    status = "[green]successful[/green]" if result.is_successful() else "[yellow]questionable[/yellow]"
    table = Table(title=f"Last autofocus ({status})")
    table.add_column("Field")
    table.add_column("Value")
    table.add_row("Filter", result.filter or "-")
    table.add_row("Method", result.method or "-")
    table.add_row("Fitting", result.fitting or "-")
    table.add_row("Duration", result.duration or "-")
    table.add_row("Temperature", f"{_fmt(result.temperature, 1)}°C")
    table.add_row("Focus position", f"{result.calculated_focus_point.position:g}")
    table.add_row("Position change", f"{result.position_change():+d}")
    table.add_row("Best R²", f"{result.best_r_squared():.4f}")
    table.add_row("Measurements", str(len(result.measure_points)))
    console.print(table)


def _image_format(data: bytes) -> str:
    if data.startswith(b"\xff\xd8\xff"):
        return "JPEG"
    if data.startswith(b"\x89PNG"):
        return "PNG"
    return f"unknown (header: {data[:4].hex()})"


def _save_thumbnail(console: Console, args: argparse.Namespace, data: bytes) -> None:
    output = Path(args.output)
    output.write_bytes(data)
    console.print(f"Thumbnail {args.index}: {len(data)} bytes, {_image_format(data)}")
    console.print(f"Saved to {output}")


def _run_monitor(
    args: argparse.Namespace,
    settings: Settings,
    console: Console,
) -> int:
    logger = setup_logger(level=settings.log_level)
    if args.interval is not None:
        if args.interval <= 0:
            logger.error("--interval must be > 0.")
            return EXIT_CONFIG
        settings = settings.model_copy(update={"poll_interval_seconds": args.interval})
    if args.max_cycles is not None and args.max_cycles <= 0:
        logger.error("--max-cycles must be > 0 when provided.")
        return EXIT_CONFIG

    logger.info("Starting monitor: %s", json.dumps(sanitize_for_logging(settings.safe_summary())))

    channels: list[ChatChannel] = []
    try:
        channels = build_channels(settings, logger)
    except ChannelConstructionError as exc:
        logger.error("Chat channel setup failed (%s): %s", exc.channel, exc)
        return EXIT_CHANNELS

    dispatcher = NotificationDispatcher(channels, logger)
    exit_code = EXIT_OK
    try:
        with SpaceCatClient(settings=settings, logger=logger) as client:
            loop = MonitorLoop(settings=settings, client=client, dispatcher=dispatcher, logger=logger)
            try:
                ticks = loop.run_forever(max_ticks=args.max_cycles)
            except SpaceCatAPIError as exc:
                logger.error("Failed to initialize baseline: %s", exc)
                exit_code = EXIT_BASELINE
            else:
                console.print(
                    f"Completed {ticks} tick(s); notifications sent={loop.notifications_sent}"
                )
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down monitor")
    finally:
        dispatcher.close()
    return exit_code


def _run_query(args: argparse.Namespace, settings: Settings, console: Console) -> int:
    logger = setup_logger(level=settings.log_level)
    if getattr(args, "count", 1) <= 0:
        logger.error("--count must be > 0.")
        return EXIT_CONFIG
    if getattr(args, "index", 0) < 0:
        logger.error("Image index must be >= 0.")
        return EXIT_CONFIG

    try:
        with SpaceCatClient(settings=settings, logger=logger) as client:
            if args.command == "events":
                _print_events(console, client.fetch_event_history(), args.count)
            elif args.command == "images":
                _print_images(console, client.fetch_all_image_history(), args.count)
            elif args.command == "sequence":
                tree = client.fetch_sequence()
                target = resolve_current_target(tree)
                hours = extract_meridian_flip_hours(tree)
                console.print(f"Current target: {target or 'none'}")
                console.print(
                    "Meridian flip in: "
                    + (format_with_clock(hours) if hours is not None else "unknown")
                )
            elif args.command == "last-af":
                _print_autofocus(console, client.fetch_last_autofocus())
            elif args.command == "thumbnail":
                data = client.fetch_thumbnail(args.index, image_type=args.image_type)
                _save_thumbnail(console, args, data)
    except SpaceCatAPIError as exc:
        logger.error("Imaging API failure: %s", exc)
        return EXIT_API
    except OSError as exc:
        logger.error("Could not write output file: %s", exc)
        return EXIT_OUTPUT
    return EXIT_OK


def main(argv: Sequence[str] | None = None) -> int:
    """Run the selected subcommand and return its exit code."""
    args = parse_args(argv)
    console = Console()

    try:
        settings = load_settings()
    except ConfigError as exc:
        setup_logger().error("Configuration failure: %s", exc)
        return EXIT_CONFIG

    if args.command == "run":
        return _run_monitor(args, settings, console)
    return _run_query(args, settings, console)


if __name__ == "__main__":
    raise SystemExit(main())
