"""Rotation Engine — one batch of rotated, shortened affiliate links.

Orchestrates the flow for a batch:
validate → fetch recent links (once) → click percentages → allocation
→ per slot: build affiliate link → shorten

Usage:
    engine = RotationEngine(shortener=client, performance_source=client)
    result = engine.rotate(RotationRequest(link, markers, batch_size=10))
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Callable, Protocol

from src.common.config import RotationSettings, settings
from src.common.models import GeneratedLink, RawLinkRecord

from .aggregator import aggregate_click_percentages
from .distributor import allocate
from .errors import BackendUnavailable
from .link_builder import build_affiliate_link
from .models import AllocationResult, RotationRequest, RotationResult
from .validation import validate_request

if TYPE_CHECKING:
    from src.yourls.client import ShortenResult

logger = logging.getLogger(__name__)


class ShorteningBackend(Protocol):
    def shorten(self, long_url: str, title: str | None = None) -> ShortenResult: ...


class PerformanceSource(Protocol):
    def fetch_recent(self, limit: int) -> list[RawLinkRecord]: ...


class RotationEngine:
    """Generates a batch of shortened links steered toward marker targets.

    Holds no per-request state; a single engine can serve many requests.
    Backend calls are sequential. Any shortening failure aborts the batch
    and nothing partial is returned.
    """

    def __init__(
        self,
        shortener: ShorteningBackend,
        performance_source: PerformanceSource,
        config: RotationSettings | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.shortener = shortener
        self.performance_source = performance_source
        self.config = config or settings.rotation
        self._clock = clock

    def click_percentages(self, request: RotationRequest) -> dict[str, float]:
        """Fetch the recent-history window once and aggregate it."""
        raw_links = self.performance_source.fetch_recent(self.config.history_window)
        return aggregate_click_percentages(
            raw_links,
            [m.id for m in request.markers],
            link_domain=self.config.link_domain,
        )

    def plan(self, request: RotationRequest, use_performance: bool = True) -> AllocationResult:
        """Validate and allocate without shortening anything.

        Raises:
            ValidationError: If the request is invalid.
            BackendUnavailable: If the performance source fails.
        """
        validate_request(request, self.config)
        percentages = self.click_percentages(request) if use_performance else {}
        return allocate(list(request.markers), request.batch_size, percentages)

    def rotate(self, request: RotationRequest) -> RotationResult:
        """Generate ``request.batch_size`` shortened links.

        Raises:
            ValidationError: If the request is invalid (no backend call made).
            BackendUnavailable: If either backend fails.
        """
        allocation = self.plan(request)
        logger.info(
            "Rotating %d links across %d markers (performance data: %s)",
            request.batch_size,
            len(request.markers),
            "yes" if allocation.report.has_performance_data else "no",
        )

        links: list[GeneratedLink] = []
        for slot, marker_id in enumerate(allocation.sequence, start=1):
            affiliate_link = build_affiliate_link(
                request.original_link, marker_id, request.subid
            )
            result = self.shortener.shorten(affiliate_link)
            if not result.ok:
                logger.warning(
                    "Shortening failed at slot %d/%d: %s",
                    slot,
                    request.batch_size,
                    result.message,
                )
                raise BackendUnavailable(f"Failed to shorten link: {result.message}")

            links.append(
                GeneratedLink(
                    original_url=affiliate_link,
                    short_url=result.short_url,
                    marker_id=marker_id,
                    subid=request.subid,
                    created_at=self._clock(),
                )
            )

        logger.info("Generated %d links", len(links))
        return RotationResult(
            links=tuple(links),
            allocation=allocation,
            markers=request.markers,
        )
