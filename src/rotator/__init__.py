# Rotator — marker allocation and batch link generation
"""
Rotation engine for affiliate links.

Steers each batch toward per-marker target percentages using recent
click shares, then builds and shortens one link per slot.
"""

from .aggregator import (
    aggregate_click_percentages,
    aggregate_performance,
    count_raw_markers,
    parse_marker,
    summarize_recent,
)
from .distributor import allocate, compute_deficits, deficit_pass, distribute
from .engine import RotationEngine
from .errors import BackendUnavailable, RotationError, ValidationError
from .link_builder import build_affiliate_link
from .models import AllocationResult, DistributionReport, RotationRequest, RotationResult
from .quota import allocate_quotas, drift_marker, sequence_quotas

__all__ = [
    "RotationEngine",
    "RotationRequest",
    "RotationResult",
    "AllocationResult",
    "DistributionReport",
    "RotationError",
    "ValidationError",
    "BackendUnavailable",
    "build_affiliate_link",
    "aggregate_click_percentages",
    "aggregate_performance",
    "parse_marker",
    "count_raw_markers",
    "summarize_recent",
    "allocate_quotas",
    "drift_marker",
    "sequence_quotas",
    "compute_deficits",
    "deficit_pass",
    "distribute",
    "allocate",
]
