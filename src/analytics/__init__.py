# Analytics — local click statistics for rotated links
"""
Mirrors YOURLS click counts into SQLite and reports per-marker,
per-link and monthly statistics.
"""

from .models import AnalyticsStats, LinkRecord, MarkerStat, MonthlyStat, SyncResult, TopLink
from .store import LinkAnalytics

__all__ = [
    "LinkAnalytics",
    "AnalyticsStats",
    "LinkRecord",
    "MarkerStat",
    "MonthlyStat",
    "SyncResult",
    "TopLink",
]
