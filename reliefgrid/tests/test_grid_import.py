# SPDX-License-Identifier: Apache-2.0

"""
Tests for CSV grid import/export parsing.
"""

import pytest

from reliefgrid.domain.errors import ValidationError
from reliefgrid.domain.geo import grid_bounds
from reliefgrid.domain.grid_import import (
    GRID_COLUMNS,
    export_csv,
    format_supplies,
    normalize_code,
    normalize_row,
    parse_grid_row,
    parse_supplies,
    read_csv,
    template_csv,
)

HEADER = "code,grid_type,center_lat,center_lng,volunteer_needed,supplies_needed\n"


class TestNormalization:
    """Test code and row normalization."""

    def test_normalize_code(self):
        assert normalize_code("  A-1 ") == normalize_code("a-1")

    def test_normalize_row(self):
        row = normalize_row({" Code ": " A-1 ", "GRID_TYPE": "manpower", None: ["extra"], "": "x"})
        assert row == {"code": "A-1", "grid_type": "manpower"}


class TestReadCsv:
    """Test CSV splitting and header checks."""

    def test_rows_are_normalized(self):
        rows = read_csv("Code,Grid_Type,Center_Lat,Center_Lng\n A-1 ,manpower,23.6,121.4\n")
        assert rows == [{"code": "A-1", "grid_type": "manpower", "center_lat": "23.6", "center_lng": "121.4"}]

    def test_missing_required_column(self):
        with pytest.raises(ValidationError) as exc_info:
            read_csv("code,grid_type,center_lat\nA-1,manpower,23\n")
        assert "center_lng" in exc_info.value.message

    def test_empty_content(self):
        with pytest.raises(ValidationError):
            read_csv("")

    def test_byte_order_mark_in_header(self):
        rows = read_csv("\ufeffcode,grid_type,center_lat,center_lng\nA-1,manpower,1,2\n")
        assert rows[0]["code"] == "A-1"


class TestParseSupplies:
    """Test the flattened supply column."""

    def test_full_entries(self):
        lines = parse_supplies("water:100:bottle:40|rice:10")

        assert [(line.name, line.quantity, line.unit, line.received) for line in lines] == [
            ("water", 100, "bottle", 40), ("rice", 10, "", 0)
        ]

    def test_empty(self):
        assert parse_supplies("") == []
        assert parse_supplies(" | ") == []

    def test_missing_quantity(self):
        with pytest.raises(ValueError):
            parse_supplies("water")

    def test_non_numeric_quantity(self):
        with pytest.raises(ValueError):
            parse_supplies("water:lots")

    def test_format_supplies(self):
        lines = parse_supplies("water:100:bottle:40.5")
        assert format_supplies(lines) == "water:100:bottle:40.5"


class TestParseGridRow:
    """Test row validation."""

    def test_valid_row(self):
        grid = parse_grid_row({
            "code": "A-1", "grid_type": "manpower", "center_lat": "23.67", "center_lng": "121.43",
            "volunteer_needed": "12", "supplies_needed": "shovel:20:pcs"
        }, 1, created_by="admin-1")

        assert grid.code == "A-1"
        assert grid.status == "open"
        assert grid.volunteer_needed == 12
        assert grid.bounds == grid_bounds(23.67, 121.43)
        assert grid.supplies_needed[0].name == "shovel"
        assert grid.created_by == "admin-1"

    def test_all_problems_reported_with_row(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_grid_row({"code": "", "grid_type": "bakery", "center_lat": "north",
                            "center_lng": "121"}, 7)

        error = exc_info.value
        assert error.row == 7
        assert "Missing required field: code" in error.message
        assert "Unknown grid_type: bakery" in error.message
        assert "center_lat must be a number" in error.message

    def test_unknown_status(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_grid_row({"code": "A", "grid_type": "manpower", "center_lat": "1",
                            "center_lng": "2", "status": "paused"}, 1)
        assert "Unknown status" in exc_info.value.message

    def test_fractional_volunteer_count(self):
        with pytest.raises(ValidationError):
            parse_grid_row({"code": "A", "grid_type": "manpower", "center_lat": "1",
                            "center_lng": "2", "volunteer_needed": "2.5"}, 1)

    def test_out_of_range_latitude(self):
        with pytest.raises(ValidationError) as exc_info:
            parse_grid_row({"code": "A", "grid_type": "manpower", "center_lat": "95",
                            "center_lng": "2"}, 3)
        assert exc_info.value.row == 3
        assert "center_lat" in exc_info.value.message

    def test_duplicate_supply_names(self):
        with pytest.raises(ValidationError):
            parse_grid_row({"code": "A", "grid_type": "manpower", "center_lat": "1",
                            "center_lng": "2", "supplies_needed": "water:1|water:2"}, 1)


class TestExport:
    """Test export and template rendering."""

    def test_export_reimports(self):
        grid = parse_grid_row({
            "code": "A-1", "grid_type": "manpower", "center_lat": "23.67", "center_lng": "121.43",
            "volunteer_needed": "12", "supplies_needed": "water:100:bottle:40"
        }, 1)

        rows = read_csv(export_csv([grid]))
        again = parse_grid_row(rows[0], 1)

        assert again.code == grid.code
        assert again.center_lat == grid.center_lat
        assert again.supplies_needed == grid.supplies_needed

    def test_export_header(self):
        assert export_csv([]).strip() == ",".join(GRID_COLUMNS)

    def test_template_row_is_valid(self):
        rows = read_csv(template_csv())
        assert len(rows) == 1
        assert parse_grid_row(rows[0], 1).code == "A-1"
