# YOURLS — Shortening backend and recent-links performance source
"""
YOURLS API client used by the rotation engine and the analytics sync.
"""

from .client import ShortenResult, YourlsClient
from .rate_limiter import RateLimiter

__all__ = ["RateLimiter", "ShortenResult", "YourlsClient"]
