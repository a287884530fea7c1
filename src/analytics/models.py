"""Data models for link analytics."""

from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Optional


@dataclass
class SyncResult:
    """Outcome of a YOURLS → SQLite sync."""
    success: bool
    message: str
    synced: int = 0
    total: int = 0
    updated: int = 0
    new: int = 0


@dataclass
class MarkerStat:
    marker: str
    clicks: int
    links: int


@dataclass
class TopLink:
    title: str
    clicks: int
    marker: str


@dataclass
class MonthlyStat:
    month: str  # YYYY-MM
    links: int
    clicks: int


@dataclass
class AnalyticsStats:
    """Aggregate statistics over a date range."""
    total_links: int = 0
    total_clicks: int = 0
    average_clicks_per_link: float = 0.0
    top_markers: list[MarkerStat] = field(default_factory=list)
    top_links: list[TopLink] = field(default_factory=list)
    monthly_stats: list[MonthlyStat] = field(default_factory=list)

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass
class LinkRecord:
    """A stored row of the link_analytics table."""
    id: int
    short_url: str
    original_url: str
    title: str
    marker: str
    subid: Optional[str]
    created_at: str
    clicks: int
    last_updated: str
