"""Link analytics store — local SQLite mirror of YOURLS click counts.

Syncs recent family links from YOURLS into the ``link_analytics`` table
and answers aggregate queries (totals, top markers, top links, monthly).

Usage:
    analytics = LinkAnalytics(yourls_client)
    analytics.sync_from_yourls(limit=500)
    stats = analytics.get_stats("2024-05-01", "2024-12-31")
"""

from __future__ import annotations

import logging
import sqlite3
from datetime import date
from typing import Iterable

from src.common.config import settings
from src.common.database import get_connection, init_db
from src.common.models import NO_MARKER, GeneratedLink
from src.rotator.aggregator import filter_family, parse_marker
from src.rotator.errors import BackendUnavailable
from src.yourls.client import YourlsClient

from .models import AnalyticsStats, LinkRecord, MarkerStat, MonthlyStat, SyncResult, TopLink

logger = logging.getLogger(__name__)

DEFAULT_START_DATE = "2024-05-01"
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

_UPSERT_SQL = """
INSERT INTO link_analytics
    (short_url, original_url, title, marker, subid, created_at, clicks, last_updated)
VALUES (?, ?, ?, ?, ?, ?, ?, datetime('now'))
ON CONFLICT(short_url) DO UPDATE SET
    original_url = excluded.original_url,
    title = excluded.title,
    marker = excluded.marker,
    subid = excluded.subid,
    created_at = excluded.created_at,
    clicks = excluded.clicks,
    last_updated = excluded.last_updated
"""

# created_at may carry a time; compare on the date part so end dates are inclusive
_RANGE_SQL = "date(created_at) >= date(?) AND date(created_at) <= date(?)"


class LinkAnalytics:
    """SQLite-backed analytics over generated and synced short links."""

    def __init__(
        self,
        client: YourlsClient | None = None,
        db_path: str | None = None,
        link_domain: str | None = None,
    ):
        self.client = client
        self.db_path = db_path or settings.database.db_path
        self.link_domain = link_domain or settings.rotation.link_domain
        init_db(self.db_path)

    def _connect(self) -> sqlite3.Connection:
        return get_connection(self.db_path)

    # --- Writes ---

    def sync_from_yourls(self, limit: int = 500) -> SyncResult:
        """Mirror the ``limit`` most recent family links from YOURLS.

        A backend failure is reported in the result rather than raised.
        """
        if self.client is None:
            raise ValueError("LinkAnalytics needs a YourlsClient to sync")

        logger.info("Starting sync of %d links from YOURLS...", limit)
        try:
            raw_links = self.client.fetch_recent(limit)
        except BackendUnavailable as exc:
            logger.error("Sync failed: %s", exc)
            return SyncResult(success=False, message=str(exc))

        family = filter_family(raw_links, self.link_domain)
        new_count = 0
        updated_count = 0

        conn = self._connect()
        try:
            for link in family:
                marker, subid = parse_marker(link.raw_marker)
                exists = conn.execute(
                    "SELECT 1 FROM link_analytics WHERE short_url = ?",
                    (link.short_url,),
                ).fetchone()
                conn.execute(
                    _UPSERT_SQL,
                    (
                        link.short_url,
                        link.original_url,
                        link.title,
                        marker or NO_MARKER,
                        subid,
                        link.timestamp,
                        link.clicks,
                    ),
                )
                if exists:
                    updated_count += 1
                else:
                    new_count += 1
            conn.commit()
        finally:
            conn.close()

        synced = new_count + updated_count
        message = f"Successfully synced {synced} links ({new_count} new, {updated_count} updated)"
        logger.info("%s out of %d fetched", message, len(raw_links))
        return SyncResult(
            success=True,
            message=message,
            synced=synced,
            total=len(raw_links),
            updated=updated_count,
            new=new_count,
        )

    def add_links(self, links: Iterable[GeneratedLink], title: str = "") -> int:
        """Record freshly generated links with zero clicks. Returns rows written."""
        rows = [
            (
                link.short_url,
                link.original_url,
                title,
                link.marker_id,
                link.subid,
                link.created_at.strftime(TIMESTAMP_FORMAT),
                0,
            )
            for link in links
        ]
        conn = self._connect()
        try:
            conn.executemany(_UPSERT_SQL, rows)
            conn.commit()
        finally:
            conn.close()
        logger.info("Recorded %d generated links", len(rows))
        return len(rows)

    # --- Queries ---

    def get_stats(
        self,
        start_date: str = DEFAULT_START_DATE,
        end_date: str | None = None,
    ) -> AnalyticsStats:
        """Aggregate statistics for links created in ``[start_date, end_date]``."""
        end_date = end_date or date.today().isoformat()
        params = (start_date, end_date)

        conn = self._connect()
        try:
            totals = conn.execute(
                f"""
                SELECT COUNT(*) AS total_links,
                       SUM(clicks) AS total_clicks,
                       AVG(clicks) AS avg_clicks
                FROM link_analytics WHERE {_RANGE_SQL}
                """,
                params,
            ).fetchone()

            top_markers = conn.execute(
                f"""
                SELECT marker, SUM(clicks) AS total_clicks, COUNT(*) AS link_count
                FROM link_analytics
                WHERE {_RANGE_SQL} AND marker != '{NO_MARKER}'
                GROUP BY marker
                ORDER BY total_clicks DESC
                LIMIT 10
                """,
                params,
            ).fetchall()

            top_links = conn.execute(
                f"""
                SELECT title, clicks, marker FROM link_analytics
                WHERE {_RANGE_SQL} AND clicks > 0
                ORDER BY clicks DESC
                LIMIT 20
                """,
                params,
            ).fetchall()

            monthly = conn.execute(
                f"""
                SELECT strftime('%Y-%m', created_at) AS month,
                       COUNT(*) AS link_count,
                       SUM(clicks) AS total_clicks
                FROM link_analytics WHERE {_RANGE_SQL}
                GROUP BY month
                ORDER BY month
                """,
                params,
            ).fetchall()
        finally:
            conn.close()

        return AnalyticsStats(
            total_links=totals["total_links"] or 0,
            total_clicks=totals["total_clicks"] or 0,
            average_clicks_per_link=round(totals["avg_clicks"] or 0, 2),
            top_markers=[
                MarkerStat(marker=r["marker"], clicks=r["total_clicks"], links=r["link_count"])
                for r in top_markers
            ],
            top_links=[
                TopLink(title=r["title"], clicks=r["clicks"], marker=r["marker"])
                for r in top_links
            ],
            monthly_stats=[
                MonthlyStat(month=r["month"], links=r["link_count"], clicks=r["total_clicks"])
                for r in monthly
            ],
        )

    def get_links(self, start_date: str, end_date: str, limit: int = 1000) -> list[LinkRecord]:
        """Stored links created in the range, newest first."""
        conn = self._connect()
        try:
            rows = conn.execute(
                f"""
                SELECT * FROM link_analytics WHERE {_RANGE_SQL}
                ORDER BY created_at DESC
                LIMIT ?
                """,
                (start_date, end_date, limit),
            ).fetchall()
        finally:
            conn.close()
        return [LinkRecord(**dict(row)) for row in rows]
