# SPDX-License-Identifier: Apache-2.0

"""
Tests for manpower urgency scoring and dashboard statistics.
"""

import pytest

from reliefgrid.domain.urgency import (
    classify_shortage,
    donation_statistics,
    grid_statistics,
    rank_by_need,
    registration_statistics,
    shortage_ratio,
    urgency_bucket,
    urgent_grids,
)
from reliefgrid.models.entities import SupplyDonation, VolunteerRegistration
from reliefgrid.models.enums import UrgencyBucket


class TestShortage:
    """Test shortage ratio and bucket boundaries."""

    @pytest.mark.parametrize("registered,expected_ratio,bucket", [
        (4, 0.6, UrgencyBucket.CRITICAL),
        (6, 0.4, UrgencyBucket.ELEVATED),
        (9, 0.1, UrgencyBucket.MILD),
        (10, 0.0, UrgencyBucket.SATISFIED),
    ])
    def test_bucket_boundaries(self, make_grid, registered, expected_ratio, bucket):
        grid = make_grid(volunteer_needed=10, volunteer_registered=registered)

        assert shortage_ratio(grid) == pytest.approx(expected_ratio)
        assert urgency_bucket(grid) == bucket

    def test_nothing_needed(self, make_grid):
        grid = make_grid(volunteer_needed=0, volunteer_registered=3)
        assert shortage_ratio(grid) == 0.0
        assert urgency_bucket(grid) == UrgencyBucket.SATISFIED

    def test_oversubscribed_is_satisfied(self, make_grid):
        grid = make_grid(volunteer_needed=5, volunteer_registered=8)
        assert shortage_ratio(grid) < 0
        assert urgency_bucket(grid) == UrgencyBucket.SATISFIED

    def test_classify_exact_thresholds(self):
        assert classify_shortage(0.6) == UrgencyBucket.CRITICAL
        assert classify_shortage(0.5999) == UrgencyBucket.ELEVATED
        assert classify_shortage(0.4) == UrgencyBucket.ELEVATED
        assert classify_shortage(0.0001) == UrgencyBucket.MILD


class TestRanking:
    """Test ordering by need."""

    def test_descending_shortage(self, make_grid):
        low = make_grid(code="low", volunteer_registered=9)
        high = make_grid(code="high", volunteer_registered=0)
        mid = make_grid(code="mid", volunteer_registered=5)

        assert [grid.code for grid in rank_by_need([low, high, mid])] == ["high", "mid", "low"]

    def test_ties_keep_input_order(self, make_grid):
        first = make_grid(code="first", volunteer_registered=5)
        second = make_grid(code="second", volunteer_registered=5)

        assert [grid.code for grid in rank_by_need([first, second])] == ["first", "second"]

    def test_non_manpower_scores_zero(self, make_grid):
        storage = make_grid(code="storage", grid_type="supply_storage", volunteer_registered=0)
        manpower = make_grid(code="manpower", volunteer_registered=8)

        assert [grid.code for grid in rank_by_need([storage, manpower])] == ["manpower", "storage"]


class TestUrgentGrids:
    """Test the urgent feed."""

    def test_only_open_manpower_over_threshold(self, make_grid):
        grids = [
            make_grid(code="urgent", volunteer_registered=2),
            make_grid(code="closed", volunteer_registered=0, status="closed"),
            make_grid(code="storage", grid_type="supply_storage", volunteer_registered=0),
            make_grid(code="fine", volunteer_registered=8),
            make_grid(code="worst", volunteer_registered=0),
        ]

        feed = urgent_grids(grids)

        assert [entry.grid_code for entry in feed] == ["worst", "urgent"]
        assert feed[0].bucket == "critical"
        assert feed[1].shortage == pytest.approx(0.8)


class TestStatistics:
    """Test dashboard aggregates."""

    def test_grid_statistics(self, make_grid):
        grids = [
            make_grid(code="a", volunteer_needed=10, volunteer_registered=2),
            make_grid(code="b", volunteer_needed=4, volunteer_registered=4, status="completed"),
            make_grid(code="c", grid_type="food_area", volunteer_needed=0),
        ]

        stats = grid_statistics(grids)

        assert stats.total_grids == 3
        assert stats.open_grids == 2
        assert stats.completed_grids == 1
        assert stats.urgent_grids == 1
        assert stats.volunteers_needed == 14
        assert stats.volunteers_registered == 6
        assert stats.by_type["manpower"] == 2
        assert stats.by_type["food_area"] == 1
        assert stats.by_type["accommodation"] == 0

    def test_status_counts_include_every_status(self):
        registrations = [
            VolunteerRegistration(grid_id="g", volunteer_name="a", status="confirmed"),
            VolunteerRegistration(grid_id="g", volunteer_name="b", status="confirmed"),
        ]
        donations = [SupplyDonation(grid_id="g", donor_name="c", supply_name="water", quantity=1)]

        assert registration_statistics(registrations) == {
            "pending": 0, "confirmed": 2, "arrived": 0, "completed": 0, "cancelled": 0
        }
        assert donation_statistics(donations)["pledged"] == 1
        assert donation_statistics([])["delivered"] == 0
