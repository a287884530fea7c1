"""Tests for quota allocation and sequencing.

Tests cover:
- Round-half-away-from-zero rounding
- Quotas always summing to the batch size
- Rounding drift assigned to the highest-target marker (first on ties)
- Largest-remaining sequencing order and the round-robin guard
"""

import pytest

from src.common.models import Marker
from src.rotator import quota
from src.rotator.errors import ValidationError
from src.rotator.quota import (
    allocate_quotas,
    drift_marker,
    round_half_away_from_zero,
    sequence_quotas,
)


def _markers(*pairs) -> list[Marker]:
    return [Marker(id=marker_id, target_percentage=pct) for marker_id, pct in pairs]


MARKER_SETS = [
    _markers(("A", 50), ("B", 30), ("C", 20)),
    _markers(("A", 33.4), ("B", 33.3), ("C", 33.3)),
    _markers(("A", 25), ("B", 25), ("C", 25), ("D", 25)),
    _markers(("A", 100)),
    _markers(("A", 10), ("B", 15), ("C", 15), ("D", 60)),
    _markers(("A", 1), ("B", 1), ("C", 98)),
    _markers(("A", 49.5), ("B", 30), ("C", 20)),
]


class TestRounding:
    @pytest.mark.parametrize(
        "value,expected",
        [(0.5, 1), (1.5, 2), (2.5, 3), (2.4, 2), (2.6, 3), (0.0, 0), (-0.5, -1), (-2.5, -3)],
    )
    def test_half_away_from_zero(self, value, expected):
        assert round_half_away_from_zero(value) == expected


class TestAllocateQuotas:
    def test_simple_split(self, markers):
        assert allocate_quotas(markers, 10) == {"A": 5, "B": 3, "C": 2}

    def test_positive_drift_goes_to_highest(self):
        markers = _markers(("A", 33.4), ("B", 33.3), ("C", 33.3))
        assert allocate_quotas(markers, 1) == {"A": 1, "B": 0, "C": 0}

    def test_drift_tie_goes_to_first(self):
        markers = _markers(("A", 20), ("B", 40), ("C", 40))
        assert allocate_quotas(markers, 1) == {"A": 0, "B": 1, "C": 0}

    def test_negative_drift_can_push_quota_below_zero(self):
        # Each 0.5 rounds up to 1; the -2 drift lands on the first 25% marker
        markers = _markers(("A", 25), ("B", 25), ("C", 25), ("D", 25))
        assert allocate_quotas(markers, 2) == {"A": -1, "B": 1, "C": 1, "D": 1}

    def test_percentages_normalized_by_their_sum(self):
        markers = _markers(("A", 49.5), ("B", 30), ("C", 20))
        quotas = allocate_quotas(markers, 100)
        assert sum(quotas.values()) == 100
        assert quotas["A"] == 50

    @pytest.mark.parametrize("markers", MARKER_SETS)
    def test_sum_equals_batch_size(self, markers):
        for batch_size in range(1, 101):
            assert sum(allocate_quotas(markers, batch_size).values()) == batch_size

    @pytest.mark.parametrize("markers", MARKER_SETS)
    def test_only_drift_marker_deviates_from_rounded_share(self, markers):
        total = sum(m.target_percentage for m in markers)
        absorber = drift_marker(markers)
        for batch_size in range(1, 101):
            quotas = allocate_quotas(markers, batch_size)
            for m in markers:
                if m.id == absorber.id:
                    continue
                assert quotas[m.id] == round_half_away_from_zero(
                    m.target_percentage / total * batch_size
                )

    def test_empty_markers_rejected(self):
        with pytest.raises(ValidationError):
            allocate_quotas([], 10)

    def test_zero_total_rejected(self):
        with pytest.raises(ValidationError):
            allocate_quotas(_markers(("A", 0), ("B", 0)), 10)


class TestDriftMarker:
    def test_highest_target(self, markers):
        assert drift_marker(markers).id == "A"

    def test_first_on_ties(self):
        assert drift_marker(_markers(("A", 10), ("B", 45), ("C", 45))).id == "B"


class TestSequenceQuotas:
    def test_largest_remaining_order(self, markers):
        assert sequence_quotas(markers, 10) == [
            "A", "A", "A", "B", "A", "B", "C", "A", "B", "C",
        ]

    def test_counts_match_quotas(self, markers):
        sequence = sequence_quotas(markers, 10)
        assert sequence.count("A") == 5
        assert sequence.count("B") == 3
        assert sequence.count("C") == 2

    def test_single_slot(self, markers):
        assert sequence_quotas(markers, 1) == ["A"]

    def test_negative_quota_skipped(self):
        markers = _markers(("A", 25), ("B", 25), ("C", 25), ("D", 25))
        assert sequence_quotas(markers, 2) == ["B", "C"]

    @pytest.mark.parametrize("markers", MARKER_SETS)
    def test_length_equals_batch_size(self, markers):
        for batch_size in range(1, 101):
            assert len(sequence_quotas(markers, batch_size)) == batch_size

    def test_zero_batch(self, markers):
        assert sequence_quotas(markers, 0) == []

    def test_round_robin_when_quotas_exhausted(self, markers, monkeypatch):
        monkeypatch.setattr(quota, "allocate_quotas", lambda m, n: {"A": 1, "B": 0, "C": 0})
        assert sequence_quotas(markers, 5) == ["A", "B", "C", "A", "B"]

    def test_deterministic(self, markers):
        assert sequence_quotas(markers, 37) == sequence_quotas(markers, 37)
