"""Data models for the rotation engine."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from src.common.models import GeneratedLink, Marker


def _freeze(mapping: Mapping[str, float]) -> Mapping[str, float]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class RotationRequest:
    """One batch of links to generate for a base URL."""
    original_link: str
    markers: tuple[Marker, ...]
    batch_size: int
    subid: Optional[str] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "markers", tuple(self.markers))

    @property
    def total_percentage(self) -> float:
        return sum(m.target_percentage for m in self.markers)


@dataclass(frozen=True)
class DistributionReport:
    """Diagnostics computed alongside an allocation."""
    click_percentage_by_marker: Mapping[str, float] = field(default_factory=dict)
    deficit_by_marker: Mapping[str, float] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(
            self, "click_percentage_by_marker", _freeze(self.click_percentage_by_marker)
        )
        object.__setattr__(self, "deficit_by_marker", _freeze(self.deficit_by_marker))

    @property
    def has_performance_data(self) -> bool:
        return bool(self.click_percentage_by_marker)

    def to_dict(self) -> dict:
        return {
            "click_percentages": dict(self.click_percentage_by_marker),
            "deficits": dict(self.deficit_by_marker),
        }


@dataclass(frozen=True)
class AllocationResult:
    """Ordered marker id per batch slot, plus the report."""
    sequence: tuple[str, ...]
    report: DistributionReport

    def __post_init__(self) -> None:
        object.__setattr__(self, "sequence", tuple(self.sequence))

    def count(self, marker_id: str) -> int:
        """Number of slots assigned to ``marker_id``."""
        return self.sequence.count(marker_id)


@dataclass(frozen=True)
class MarkerUsage:
    """Per-marker line of a rotation summary."""
    id: str
    count: int
    current_click_percentage: float
    target_percentage: float
    deficit: float


@dataclass(frozen=True)
class RotationResult:
    """Generated links in slot order with the distribution report."""
    links: tuple[GeneratedLink, ...]
    allocation: AllocationResult
    markers: tuple[Marker, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "links", tuple(self.links))
        object.__setattr__(self, "markers", tuple(self.markers))

    @property
    def report(self) -> DistributionReport:
        return self.allocation.report

    @property
    def total_generated(self) -> int:
        return len(self.links)

    def marker_usage(self) -> list[MarkerUsage]:
        """Per configured marker: links generated, click share, target, deficit."""
        clicks = self.report.click_percentage_by_marker
        deficits = self.report.deficit_by_marker
        return [
            MarkerUsage(
                id=m.id,
                count=sum(1 for link in self.links if link.marker_id == m.id),
                current_click_percentage=clicks.get(m.id, 0),
                target_percentage=m.target_percentage,
                deficit=deficits.get(m.id, 0),
            )
            for m in self.markers
        ]

    def to_dict(self) -> dict:
        """Serialize for JSON output."""
        return {
            "links": [link.to_dict() for link in self.links],
            "distribution": {
                **self.report.to_dict(),
                "sequence": list(self.allocation.sequence),
            },
            "summary": {
                "total_generated": self.total_generated,
                "markers_used": [
                    {
                        "id": u.id,
                        "count": u.count,
                        "current_click_percentage": u.current_click_percentage,
                        "target_percentage": u.target_percentage,
                        "deficit": u.deficit,
                    }
                    for u in self.marker_usage()
                ],
            },
        }
