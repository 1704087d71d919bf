# SPDX-License-Identifier: Apache-2.0

"""
Tests for supply line reconciliation.
"""

import pytest

from reliefgrid.domain.errors import UnknownSupplyLine, ValidationError
from reliefgrid.domain.reconciliation import (
    apply_receipt,
    find_line,
    fulfillment_ratio,
    is_fulfilled,
    merge_supply_request,
    remaining,
    unfulfilled_supplies,
)
from reliefgrid.models.requests import SupplyItemRequest


class TestFulfillment:
    """Test derived fulfillment figures."""

    def test_partial(self, supply):
        line = supply(quantity=100, received=40)

        assert remaining(line) == 60
        assert fulfillment_ratio(line) == pytest.approx(0.4)
        assert not is_fulfilled(line)

    def test_over_delivery_is_clamped(self, supply):
        line = supply(quantity=100, received=110)

        assert remaining(line) == 0
        assert fulfillment_ratio(line) == 1.0
        assert is_fulfilled(line)

    def test_zero_quantity(self, supply):
        line = supply(quantity=0, received=5)

        assert remaining(line) == 0
        assert fulfillment_ratio(line) == 0.0
        assert not is_fulfilled(line)


class TestMergeSupplyRequest:
    """Test demand merging."""

    def test_existing_line_accumulates(self, supply):
        lines = [supply("water", 100, received=30, unit="bottle")]

        merged = merge_supply_request(lines, [SupplyItemRequest(name="water", quantity=50)])

        assert len(merged) == 1
        assert merged[0].quantity == 150
        assert merged[0].received == 30
        assert merged[0].unit == "bottle"

    def test_new_lines_appended_in_order(self, supply):
        lines = [supply("water", 100)]

        merged = merge_supply_request(lines, [
            SupplyItemRequest(name="gloves", quantity=10, unit="pair"),
            SupplyItemRequest(name="boots", quantity=5),
            SupplyItemRequest(name="gloves", quantity=5),
        ])

        assert [line.name for line in merged] == ["water", "gloves", "boots"]
        assert merged[1].quantity == 15
        assert merged[1].received == 0

    def test_input_not_modified(self, supply):
        lines = [supply("water", 100)]
        merge_supply_request(lines, [SupplyItemRequest(name="water", quantity=1)])
        assert lines[0].quantity == 100

    def test_missing_unit_filled_from_request(self, supply):
        merged = merge_supply_request([supply("water", 1)], [
            SupplyItemRequest(name="water", quantity=1, unit="bottle")
        ])
        assert merged[0].unit == "bottle"

    def test_non_positive_quantity_rejected(self, supply):
        item = SupplyItemRequest.model_construct(name="water", quantity=0, unit="")
        with pytest.raises(ValidationError):
            merge_supply_request([supply()], [item])


class TestApplyReceipt:
    """Test receipt application."""

    def test_water_example(self, supply):
        lines = [supply("water", 100)]

        lines = apply_receipt(lines, "g1", "water", 40)
        assert lines[0].received == 40
        assert remaining(lines[0]) == 60

        lines = apply_receipt(lines, "g1", "water", 70)
        assert lines[0].received == 110
        assert remaining(lines[0]) == 0

    def test_unknown_line(self, supply):
        with pytest.raises(UnknownSupplyLine) as exc_info:
            apply_receipt([supply("water")], "g1", "Water", 1)
        assert exc_info.value.supply_name == "Water"

    def test_non_positive_quantity(self, supply):
        with pytest.raises(ValidationError):
            apply_receipt([supply("water")], "g1", "water", 0)

    def test_find_line_exact_match(self, supply):
        lines = [supply("water"), supply("rice")]
        assert find_line(lines, "rice").name == "rice"
        assert find_line(lines, "RICE") is None


class TestUnfulfilledSupplies:
    """Test the donor-facing feed."""

    def test_only_open_grids_with_remaining_demand(self, make_grid, supply):
        open_grid = make_grid(code="A", supplies_needed=[
            supply("water", 100, 100), supply("rice", 10, 4, "kg")
        ])
        closed_grid = make_grid(code="B", status="closed", supplies_needed=[supply("water", 5)])

        feed = unfulfilled_supplies([open_grid, closed_grid])

        assert len(feed) == 1
        assert feed[0].grid_code == "A"
        assert feed[0].supply_name == "rice"
        assert feed[0].remaining == 6
        assert feed[0].fulfillment_ratio == pytest.approx(0.4)

    def test_order_follows_grids_then_lines(self, make_grid, supply):
        first = make_grid(code="A", supplies_needed=[supply("b"), supply("a")])
        second = make_grid(code="B", supplies_needed=[supply("c")])

        feed = unfulfilled_supplies([first, second])

        assert [(entry.grid_code, entry.supply_name) for entry in feed] == [
            ("A", "b"), ("A", "a"), ("B", "c")
        ]
