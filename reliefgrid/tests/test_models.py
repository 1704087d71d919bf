# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Unit tests for Pydantic models.
"""

import pytest
from pydantic import ValidationError

from reliefgrid.models.entities import (
    Actor, Bounds, Grid, GridDiscussion, SupplyLine, VolunteerRegistration, GUEST
)
from reliefgrid.models.enums import ActorRole, GridStatus, GridType, RegistrationStatus
from reliefgrid.models.requests import (
    CreateGridRequest, PledgeDonationRequest, UpdateGridRequest
)


class TestBounds:
    """Test bounds validation."""

    def test_valid_bounds(self):
        bounds = Bounds(north=1.0, south=0.0, east=1.0, west=0.0)
        assert bounds.north == 1.0

    def test_north_below_south_rejected(self):
        with pytest.raises(ValidationError):
            Bounds(north=0.0, south=1.0, east=1.0, west=0.0)

    def test_east_west_of_west_rejected(self):
        with pytest.raises(ValidationError):
            Bounds(north=1.0, south=0.0, east=0.0, west=1.0)


class TestGridModel:
    """Test Grid model validation."""

    def test_defaults(self):
        grid = Grid(code="A-1", grid_type=GridType.MANPOWER, center_lat=23.0, center_lng=121.0)

        assert grid.status == GridStatus.OPEN.value
        assert grid.volunteer_needed == 0
        assert grid.volunteer_registered == 0
        assert grid.supplies_needed == []
        assert grid.id

    def test_code_is_stripped(self):
        grid = Grid(code="  A-1  ", grid_type="manpower", center_lat=23.0, center_lng=121.0)
        assert grid.code == "A-1"

    def test_blank_code_rejected(self):
        with pytest.raises(ValidationError):
            Grid(code="   ", grid_type="manpower", center_lat=23.0, center_lng=121.0)

    def test_unknown_grid_type_rejected(self):
        with pytest.raises(ValidationError):
            Grid(code="A-1", grid_type="bakery", center_lat=23.0, center_lng=121.0)

    def test_latitude_range(self):
        with pytest.raises(ValidationError):
            Grid(code="A-1", grid_type="manpower", center_lat=91.0, center_lng=121.0)

    def test_negative_registered_rejected(self):
        with pytest.raises(ValidationError):
            Grid(code="A-1", grid_type="manpower", center_lat=0, center_lng=0, volunteer_registered=-1)

    def test_duplicate_supply_names_rejected(self):
        with pytest.raises(ValidationError):
            Grid(
                code="A-1", grid_type="manpower", center_lat=0, center_lng=0,
                supplies_needed=[SupplyLine(name="water", quantity=1), SupplyLine(name="water", quantity=2)]
            )

    def test_stored_document_extra_keys_ignored(self):
        grid = Grid.model_validate({
            "code": "A-1", "grid_type": "manpower", "center_lat": 0, "center_lng": 0,
            "code_key": "a-1"
        })
        assert not hasattr(grid, "code_key")


class TestSupplyLine:
    """Test supply line validation."""

    def test_received_defaults_to_zero(self):
        assert SupplyLine(name="water", quantity=5).received == 0

    def test_negative_quantity_rejected(self):
        with pytest.raises(ValidationError):
            SupplyLine(name="water", quantity=-1)

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            SupplyLine(name="  ", quantity=1)


class TestVolunteerRegistration:
    """Test registration defaults and tag normalization."""

    def test_defaults_to_pending(self):
        registration = VolunteerRegistration(grid_id="g", volunteer_name="Lin")
        assert registration.status == RegistrationStatus.PENDING.value

    def test_tags_deduplicated_and_stripped(self):
        registration = VolunteerRegistration(
            grid_id="g", volunteer_name="Lin", skills=[" shovel ", "shovel", "", "driving"]
        )
        assert registration.skills == ["shovel", "driving"]


class TestGridDiscussion:
    """Test discussion message validation."""

    def test_blank_message_rejected(self):
        with pytest.raises(ValidationError):
            GridDiscussion(grid_id="g", author_name="Lin", message="   ")


class TestActor:
    """Test actor role helpers."""

    def test_guest_defaults(self):
        assert GUEST.is_guest
        assert not GUEST.is_admin
        assert GUEST.id is None

    def test_manages_own_grid_only(self):
        grid = Grid(code="A-1", grid_type="manpower", center_lat=0, center_lng=0, grid_manager_id="m1")
        manager = Actor(id="m1", role=ActorRole.GRID_MANAGER)
        stranger = Actor(id="m2", role=ActorRole.GRID_MANAGER)
        volunteer = Actor(id="m1", role=ActorRole.VOLUNTEER)

        assert manager.manages(grid)
        assert not stranger.manages(grid)
        assert not volunteer.manages(grid)

    def test_actor_is_frozen(self):
        actor = Actor(id="a", role=ActorRole.ADMIN)
        with pytest.raises(ValidationError):
            actor.role = ActorRole.GUEST


class TestRequestModels:
    """Test request payload validation."""

    def test_create_grid_requires_type(self):
        with pytest.raises(ValidationError):
            CreateGridRequest(code="A-1", center_lat=0, center_lng=0)

    def test_pledge_requires_positive_quantity(self):
        with pytest.raises(ValidationError):
            PledgeDonationRequest(
                grid_id="g", donor_name="Chen", donor_phone="0900", supply_name="water", quantity=0
            )

    def test_update_changes_only_sent_fields(self):
        update = UpdateGridRequest(meeting_point="Station exit 1")
        assert update.changes() == {"meeting_point": "Station exit 1"}
