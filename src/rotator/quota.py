"""Quota allocation: target percentages to integer per-batch slot counts.

Used both as the baseline distributor and as the fill stage after the
deficit pass.

Algorithm:
1. raw quota = round-half-away-from-zero(pct / sum(pct) * batch_size)
2. rounding drift (batch_size - sum of raw quotas) goes entirely to the
   marker with the highest target percentage (first on ties)
3. sequencing emits the marker with the largest remaining quota each step
   (ties by input order); round-robin by position if quotas run out
"""

from __future__ import annotations

import logging
import math
from typing import Sequence

from src.common.models import Marker

from .errors import ValidationError

logger = logging.getLogger(__name__)


def round_half_away_from_zero(value: float) -> int:
    """Round to the nearest integer, halves away from zero (2.5 -> 3, -2.5 -> -3)."""
    return int(math.copysign(math.floor(abs(value) + 0.5), value))


def drift_marker(markers: Sequence[Marker]) -> Marker:
    """Marker that absorbs rounding drift: highest target, first on ties."""
    if not markers:
        raise ValidationError("At least one marker is required")
    best = markers[0]
    for marker in markers[1:]:
        if marker.target_percentage > best.target_percentage:
            best = marker
    return best


def allocate_quotas(markers: Sequence[Marker], batch_size: int) -> dict[str, int]:
    """Convert target percentages into integer quotas summing to ``batch_size``.

    Args:
        markers: Markers in input order.
        batch_size: Number of slots to fill.

    Returns:
        ``{marker_id: quota}`` in input order.

    Raises:
        ValidationError: If markers are empty or their percentages sum to 0.
    """
    if not markers:
        raise ValidationError("At least one marker is required")
    total_percentage = sum(m.target_percentage for m in markers)
    if total_percentage <= 0:
        raise ValidationError("Marker percentages must sum to more than 0")

    quotas = {
        m.id: round_half_away_from_zero(m.target_percentage / total_percentage * batch_size)
        for m in markers
    }

    drift = batch_size - sum(quotas.values())
    if drift:
        absorber = drift_marker(markers)
        quotas[absorber.id] += drift
        logger.debug("Rounding drift %+d assigned to %s", drift, absorber.id)

    return quotas


def sequence_quotas(markers: Sequence[Marker], batch_size: int) -> list[str]:
    """Order a batch by largest remaining quota.

    Returns:
        ``batch_size`` marker ids.
    """
    if batch_size <= 0:
        return []

    remaining = {
        marker_id: max(0, quota)
        for marker_id, quota in allocate_quotas(markers, batch_size).items()
    }
    marker_ids = [m.id for m in markers]
    sequence: list[str] = []

    while len(sequence) < batch_size:
        selected = marker_ids[0]
        max_remaining = 0
        for marker_id in marker_ids:
            if remaining[marker_id] > max_remaining:
                max_remaining = remaining[marker_id]
                selected = marker_id

        if max_remaining > 0:
            sequence.append(selected)
            remaining[selected] -= 1
        else:
            # Quotas exhausted early: round-robin by slot position
            sequence.append(marker_ids[len(sequence) % len(marker_ids)])

    return sequence
