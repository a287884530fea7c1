"""Performance aggregation over recent short links.

Turns raw link records from the performance data source into per-marker
click shares. Only links in the governed family (a domain substring match
on the original URL) are counted, and sub-identifiers are stripped so that
``m1.campaign`` and ``m1`` count toward the same marker.
"""

from __future__ import annotations

import logging
from typing import Iterable
from urllib.parse import parse_qs, urlsplit

from src.common.config import settings
from src.common.models import NO_MARKER, PerformanceRecord, RawLinkRecord

from .link_builder import MARKER_PARAM

logger = logging.getLogger(__name__)


def parse_marker(raw_marker: str) -> tuple[str, str | None]:
    """Split a stored marker into ``(base_id, subid)``.

    Only the first dot separates; everything after it is the subid.

    >>> parse_marker("m1.spring.sale")
    ('m1', 'spring.sale')
    """
    base, sep, subid = raw_marker.partition(".")
    return base, (subid or None) if sep else None


def strip_subid(raw_marker: str) -> str:
    """Return the base marker id of ``base[.subid]``."""
    return parse_marker(raw_marker)[0]


def extract_marker(url: str) -> str:
    """Read the raw ``marker`` query parameter from a URL.

    Returns ``"none"`` when the parameter is missing or the URL can't be parsed.
    """
    try:
        query = urlsplit(url).query
    except ValueError:
        return NO_MARKER
    values = parse_qs(query).get(MARKER_PARAM)
    if not values or not values[0]:
        return NO_MARKER
    return values[0]


def filter_family(
    raw_links: Iterable[RawLinkRecord],
    link_domain: str | None = None,
) -> list[RawLinkRecord]:
    """Keep only links whose original URL belongs to the governed family."""
    domain = link_domain or settings.rotation.link_domain
    return [link for link in raw_links if domain in link.original_url]


def aggregate_performance(
    raw_links: Iterable[RawLinkRecord],
    link_domain: str | None = None,
) -> list[PerformanceRecord]:
    """Sum clicks per base marker id, in first-seen order."""
    totals: dict[str, int] = {}
    for link in filter_family(raw_links, link_domain):
        marker_id = strip_subid(link.raw_marker)
        totals[marker_id] = totals.get(marker_id, 0) + link.clicks
    return [PerformanceRecord(marker_id=m, clicks=c) for m, c in totals.items()]


def aggregate_click_percentages(
    raw_links: Iterable[RawLinkRecord],
    marker_ids: Iterable[str],
    link_domain: str | None = None,
) -> dict[str, float]:
    """Compute each marker's share (0-100) of total observed clicks.

    Args:
        raw_links: Recent link records from the performance data source.
        marker_ids: Markers to report on. Markers with no records get 0.
        link_domain: Family domain substring. Defaults to settings.

    Returns:
        ``{marker_id: percentage}``, or an empty dict when the family has
        no clicks at all (no performance signal).
    """
    performance = aggregate_performance(raw_links, link_domain)
    total_clicks = sum(record.clicks for record in performance)
    if total_clicks == 0:
        logger.info("No click data in recent history, falling back to quotas")
        return {}

    clicks_by_marker = {record.marker_id: record.clicks for record in performance}
    percentages = {
        marker_id: clicks_by_marker.get(marker_id, 0) / total_clicks * 100
        for marker_id in marker_ids
    }
    logger.debug("Click percentages over %d clicks: %s", total_clicks, percentages)
    return percentages


def count_raw_markers(raw_links: Iterable[RawLinkRecord]) -> dict[str, int]:
    """Count links per raw marker string, subid included, across all domains.

    Links without a marker are counted under ``"none"``.
    """
    counts: dict[str, int] = {}
    for link in raw_links:
        marker = link.raw_marker or NO_MARKER
        counts[marker] = counts.get(marker, 0) + 1
    return counts


def summarize_recent(raw_links: Iterable[RawLinkRecord]) -> dict:
    """Recent links with their raw marker, plus per-marker link counts.

    Returns:
        ``{"links": [...], "stats": {marker: count}, "total_links": n}``
    """
    records = list(raw_links)
    return {
        "links": [
            {
                "short_url": link.short_url,
                "original_url": link.original_url,
                "title": link.title,
                "timestamp": link.timestamp,
                "clicks": link.clicks,
                "marker": link.raw_marker or NO_MARKER,
            }
            for link in records
        ],
        "stats": count_raw_markers(records),
        "total_links": len(records),
    }
