"""Deficit-weighted distribution.

Biases a batch toward markers whose observed click share lags their
target. Two stages, each a pure function:

1. ``deficit_pass``: markers in descending deficit order receive
   ``round(deficit / total_deficit * batch_size)`` consecutive slots,
   capped at what is left.
2. ``sequence_quotas``: whatever the first stage left unassigned is filled
   by plain quota sequencing over the remaining count.

Without click data, or when no marker is below target, the whole batch
comes from quota sequencing.
"""

from __future__ import annotations

import logging
from typing import Mapping, Sequence

from src.common.models import Marker

from .models import AllocationResult, DistributionReport
from .quota import round_half_away_from_zero, sequence_quotas

logger = logging.getLogger(__name__)


def compute_deficits(
    markers: Sequence[Marker],
    click_percentages: Mapping[str, float],
) -> dict[str, float]:
    """Gap between target and observed click share, floored at 0."""
    return {
        m.id: max(0.0, m.target_percentage - click_percentages.get(m.id, 0))
        for m in markers
    }


def deficit_pass(
    markers: Sequence[Marker],
    batch_size: int,
    deficits: Mapping[str, float],
) -> list[str]:
    """First stage: consecutive slots per underperforming marker.

    A marker with a small positive deficit can round to zero slots; the
    leftover goes to the fill stage.
    """
    total_deficit = sum(deficits.values())
    if total_deficit <= 0:
        return []

    # sorted() is stable, so equal deficits keep input order
    ordered = sorted(markers, key=lambda m: deficits.get(m.id, 0), reverse=True)

    sequence: list[str] = []
    remaining = batch_size
    for marker in ordered:
        if remaining <= 0:
            break
        deficit = deficits.get(marker.id, 0)
        if deficit <= 0:
            continue
        slots = min(round_half_away_from_zero(deficit / total_deficit * batch_size), remaining)
        sequence.extend([marker.id] * slots)
        remaining -= slots

    return sequence


def distribute(
    markers: Sequence[Marker],
    batch_size: int,
    click_percentages: Mapping[str, float],
) -> list[str]:
    """Ordered marker id per slot, ``batch_size`` long. Deterministic."""
    if not click_percentages:
        return sequence_quotas(markers, batch_size)

    deficits = compute_deficits(markers, click_percentages)
    if sum(deficits.values()) == 0:
        logger.info("All markers at or above target, using quota sequencing")
        return sequence_quotas(markers, batch_size)

    sequence = deficit_pass(markers, batch_size, deficits)
    leftover = batch_size - len(sequence)
    if leftover > 0:
        sequence.extend(sequence_quotas(markers, leftover))

    logger.debug(
        "Deficit pass assigned %d/%d slots, quota fill %d",
        batch_size - leftover,
        batch_size,
        leftover,
    )
    return sequence


def allocate(
    markers: Sequence[Marker],
    batch_size: int,
    click_percentages: Mapping[str, float],
) -> AllocationResult:
    """Compute the slot sequence and its distribution report together."""
    sequence = distribute(markers, batch_size, click_percentages)
    report = DistributionReport(
        click_percentage_by_marker=dict(click_percentages),
        deficit_by_marker=compute_deficits(markers, click_percentages),
    )
    return AllocationResult(sequence=tuple(sequence), report=report)
