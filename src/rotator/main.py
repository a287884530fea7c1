"""CLI entry point for the link rotator.

Usage:
    # Generate and shorten a batch of rotated links
    python -m src.rotator.main --mode rotate --link "https://www.aviasales.ru/search" \
        --config config/markers.yaml --batch-size 10 --subid spring

    # Markers inline instead of a config file
    python -m src.rotator.main --mode rotate --link "https://www.aviasales.ru/" \
        --marker 12345:50 --marker 67890:30 --marker 11111:20 --batch-size 20

    # Show the allocation only (nothing is shortened)
    python -m src.rotator.main --mode plan --link "https://www.aviasales.ru/" \
        --config config/markers.yaml --batch-size 10 --no-performance

    # List recent short links with per-marker counts
    python -m src.rotator.main --mode recent --limit 250 --output recent.json

    # Mirror YOURLS clicks into SQLite / report statistics
    python -m src.rotator.main --mode sync --limit 500
    python -m src.rotator.main --mode stats --start 2024-05-01 --end 2024-12-31
"""

from __future__ import annotations

import argparse
import json
import logging
from collections import Counter
from pathlib import Path

from src.common.config import CONFIG_DIR, settings
from src.common.logging import setup_logging
from src.common.models import Marker

from .aggregator import summarize_recent
from .distributor import allocate
from .engine import RotationEngine
from .errors import BackendUnavailable, ValidationError
from .marker_config import load_marker_config, parse_marker_spec, save_marker_config
from .models import RotationRequest
from .validation import validate_request

# One handler on the package logger; module loggers propagate to it
setup_logging(module_name="src")
logger = logging.getLogger(__name__)

DEFAULT_MARKERS_PATH = CONFIG_DIR / "markers.yaml"

EXIT_OK = 0
EXIT_BACKEND = 1
EXIT_VALIDATION = 2


def _resolve_markers(args: argparse.Namespace) -> list[Marker]:
    if args.marker:
        markers = [parse_marker_spec(spec) for spec in args.marker]
        if args.save_config:
            save_marker_config(Path(args.config or DEFAULT_MARKERS_PATH), markers)
        return markers
    return load_marker_config(Path(args.config or DEFAULT_MARKERS_PATH))


def _build_request(args: argparse.Namespace) -> RotationRequest:
    return RotationRequest(
        original_link=args.link or "",
        markers=tuple(_resolve_markers(args)),
        batch_size=args.batch_size,
        subid=args.subid or None,
    )


def _write_output(path: str | None, data: dict) -> None:
    if not path:
        return
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)
    logger.info("Output written to %s", path)


def _run_rotate(args: argparse.Namespace) -> None:
    from src.yourls.client import YourlsClient

    request = _build_request(args)
    with YourlsClient() as client:
        engine = RotationEngine(shortener=client, performance_source=client)
        result = engine.rotate(request)

        if args.record:
            from src.analytics.store import LinkAnalytics

            LinkAnalytics(client).add_links(result.links)

    logger.info("=== Generated %d links ===", result.total_generated)
    for link in result.links:
        logger.info("  %s  marker=%s  %s", link.short_url, link.marker_id, link.original_url)
    for usage in result.marker_usage():
        logger.info(
            "  %s: %d links — clicks %.1f%% / target %.1f%% (deficit %.1f)",
            usage.id,
            usage.count,
            usage.current_click_percentage,
            usage.target_percentage,
            usage.deficit,
        )

    _write_output(args.output, result.to_dict())


def _run_plan(args: argparse.Namespace) -> None:
    request = _build_request(args)

    if args.no_performance:
        validate_request(request)
        allocation = allocate(list(request.markers), request.batch_size, {})
    else:
        from src.yourls.client import YourlsClient

        with YourlsClient() as client:
            engine = RotationEngine(shortener=client, performance_source=client)
            allocation = engine.plan(request)

    counts = Counter(allocation.sequence)
    logger.info("=== Allocation for %d slots ===", request.batch_size)
    logger.info("Sequence: %s", ", ".join(allocation.sequence))
    for marker in request.markers:
        logger.info(
            "  %s: %d slots (target %.1f%%, clicks %.1f%%, deficit %.1f)",
            marker.id,
            counts.get(marker.id, 0),
            marker.target_percentage,
            allocation.report.click_percentage_by_marker.get(marker.id, 0),
            allocation.report.deficit_by_marker.get(marker.id, 0),
        )

    _write_output(
        args.output,
        {**allocation.report.to_dict(), "sequence": list(allocation.sequence)},
    )


def _run_sync(args: argparse.Namespace) -> None:
    from src.analytics.store import LinkAnalytics
    from src.yourls.client import YourlsClient

    with YourlsClient() as client:
        result = LinkAnalytics(client).sync_from_yourls(limit=args.limit)
    if not result.success:
        raise BackendUnavailable(result.message)
    logger.info(result.message)


def _run_recent(args: argparse.Namespace) -> None:
    from src.yourls.client import YourlsClient

    with YourlsClient() as client:
        summary = summarize_recent(client.fetch_recent(args.limit))

    logger.info("=== %d recent links ===", summary["total_links"])
    for marker, count in sorted(summary["stats"].items(), key=lambda item: -item[1]):
        logger.info("  %s: %d links", marker, count)
    _write_output(args.output, summary)


def _run_stats(args: argparse.Namespace) -> None:
    from src.analytics.store import LinkAnalytics

    stats = LinkAnalytics().get_stats(start_date=args.start, end_date=args.end)
    logger.info(
        "=== %d links, %d clicks (avg %.2f) ===",
        stats.total_links,
        stats.total_clicks,
        stats.average_clicks_per_link,
    )
    for marker in stats.top_markers:
        logger.info("  %s: %d clicks over %d links", marker.marker, marker.clicks, marker.links)
    _write_output(args.output, stats.to_dict())


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Affiliate link rotator — marker allocation, shortening, analytics"
    )
    parser.add_argument(
        "--mode",
        type=str,
        choices=["rotate", "plan", "recent", "sync", "stats"],
        default="rotate",
        help="'rotate' (generate links), 'plan' (allocation only), 'recent', 'sync' or 'stats'",
    )
    parser.add_argument("--link", type=str, help="[rotate/plan] Base affiliate URL")
    parser.add_argument(
        "--config",
        type=str,
        help="[rotate/plan] Marker config YAML (default: config/markers.yaml)",
    )
    parser.add_argument(
        "--marker",
        action="append",
        metavar="ID:PERCENT",
        help="[rotate/plan] Marker and target percentage; repeatable, overrides --config",
    )
    parser.add_argument(
        "--save-config",
        action="store_true",
        help="[rotate/plan] Save --marker values to the config file",
    )
    parser.add_argument(
        "--batch-size",
        type=int,
        default=10,
        help=f"[rotate/plan] Links to generate (1-{settings.rotation.max_batch_size}, default: 10)",
    )
    parser.add_argument("--subid", type=str, help="[rotate/plan] Optional sub-identifier")
    parser.add_argument(
        "--no-performance",
        action="store_true",
        help="[plan] Ignore recent click data and use target quotas only",
    )
    parser.add_argument(
        "--record",
        action="store_true",
        help="[rotate] Record generated links in the analytics database",
    )
    parser.add_argument("--limit", type=int, default=500, help="[recent/sync] Recent links to fetch (1-1000)")
    parser.add_argument("--start", type=str, default="2024-05-01", help="[stats] Start date")
    parser.add_argument("--end", type=str, help="[stats] End date (default: today)")
    parser.add_argument("--output", type=str, help="Output JSON file path")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    runners = {
        "rotate": _run_rotate,
        "plan": _run_plan,
        "recent": _run_recent,
        "sync": _run_sync,
        "stats": _run_stats,
    }
    try:
        runners[args.mode](args)
    except ValidationError as exc:
        logger.error("Invalid input: %s", exc)
        return EXIT_VALIDATION
    except BackendUnavailable as exc:
        logger.error("Backend unavailable: %s", exc)
        return EXIT_BACKEND
    except ValueError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_VALIDATION
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
