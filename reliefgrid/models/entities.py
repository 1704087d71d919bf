# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the relief grid coordination platform.
"""

from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator, ConfigDict
from .base import BaseEntity, utcnow
from .enums import (
    ActorRole,
    AnnouncementCategory,
    AreaStatus,
    DeliveryMethod,
    DonationStatus,
    GridStatus,
    GridType,
    RegistrationStatus,
)


class Bounds(BaseModel):
    """Axis-aligned rectangle in degrees."""

    north: float
    south: float
    east: float
    west: float

    @model_validator(mode='after')
    def validate_orientation(self):
        """North must not lie below south, east must not lie west of west."""
        if self.north < self.south:
            raise ValueError('Bounds north must be greater than or equal to south')
        if self.east < self.west:
            raise ValueError('Bounds east must be greater than or equal to west')
        return self


class SupplyLine(BaseModel):
    """A named demand entry on a grid with target and received quantities."""

    model_config = ConfigDict(validate_assignment=True)

    name: str = Field(..., min_length=1, max_length=100, description="Supply name, unique within a grid")
    quantity: float = Field(..., ge=0, description="Target quantity")
    received: float = Field(default=0, ge=0, description="Cumulative received quantity")
    unit: str = Field(default="", max_length=20, description="Unit of measure")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate supply name."""
        if not v.strip():
            raise ValueError('Supply name cannot be empty')
        return v.strip()


class LocatedEntity(BaseEntity):
    """Entity positioned by a center coordinate with rectangular bounds."""

    center_lat: float = Field(..., ge=-90, le=90, description="Center latitude")
    center_lng: float = Field(..., ge=-180, le=180, description="Center longitude")
    bounds: Optional[Bounds] = Field(None, description="Derived rectangular bounds")


class DisasterArea(LocatedEntity):
    """A disaster zone that groups grids."""

    name: str = Field(..., min_length=1, max_length=200, description="Area name")
    county: Optional[str] = Field(None, max_length=100, description="County")
    township: Optional[str] = Field(None, max_length=100, description="Township")
    description: Optional[str] = Field(None, max_length=2000, description="Area description")
    status: AreaStatus = Field(default=AreaStatus.ACTIVE, description="Area status")

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate area name."""
        if not v.strip():
            raise ValueError('Area name cannot be empty')
        return v.strip()


class Grid(LocatedEntity):
    """Atomic unit of relief work within a disaster area."""

    code: str = Field(..., min_length=1, max_length=50, description="Human-assigned grid code")
    disaster_area_id: Optional[str] = Field(None, description="Owning disaster area")
    grid_type: GridType = Field(..., description="Kind of relief work")
    status: GridStatus = Field(default=GridStatus.OPEN, description="Grid status")
    volunteer_needed: int = Field(default=0, ge=0, description="Volunteers required")
    volunteer_registered: int = Field(default=0, ge=0, description="Volunteers confirmed")
    meeting_point: Optional[str] = Field(None, max_length=500, description="Meeting point")
    risk_notes: Optional[str] = Field(None, max_length=2000, description="Risk notes")
    contact_info: Optional[str] = Field(None, max_length=500, description="Sensitive contact text")
    grid_manager_id: Optional[str] = Field(None, description="Actor managing this grid")
    supplies_needed: List[SupplyLine] = Field(default_factory=list, description="Supply lines")

    @field_validator('code')
    @classmethod
    def validate_code(cls, v):
        """Validate grid code."""
        if not v.strip():
            raise ValueError('Grid code cannot be empty')
        return v.strip()

    @field_validator('supplies_needed')
    @classmethod
    def validate_unique_supply_names(cls, v):
        """Supply line names are unique within a grid."""
        names = [line.name for line in v]
        if len(names) != len(set(names)):
            raise ValueError('Supply line names must be unique within a grid')
        return v


class VolunteerRegistration(BaseEntity):
    """A prospective volunteer signing up for a grid."""

    grid_id: str = Field(..., description="Target grid")
    volunteer_name: str = Field(..., min_length=1, max_length=100, description="Volunteer name")
    volunteer_phone: Optional[str] = Field(None, max_length=50, description="Sensitive phone number")
    volunteer_email: Optional[str] = Field(None, max_length=200, description="Sensitive email")
    available_time: Optional[str] = Field(None, max_length=200, description="Availability")
    skills: List[str] = Field(default_factory=list, description="Skill tags")
    equipment: List[str] = Field(default_factory=list, description="Equipment tags")
    notes: Optional[str] = Field(None, max_length=1000, description="Free-form notes")
    status: RegistrationStatus = Field(default=RegistrationStatus.PENDING, description="Workflow status")

    @field_validator('skills', 'equipment')
    @classmethod
    def normalize_tags(cls, v):
        """Treat tag lists as ordered sets of non-empty strings."""
        seen = []
        for tag in v:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen


class SupplyDonation(BaseEntity):
    """A donor's pledge of goods against a grid supply line."""

    grid_id: str = Field(..., description="Target grid")
    donor_name: str = Field(..., min_length=1, max_length=100, description="Donor name")
    donor_phone: Optional[str] = Field(None, max_length=50, description="Sensitive phone number")
    donor_email: Optional[str] = Field(None, max_length=200, description="Sensitive email")
    supply_name: str = Field(..., min_length=1, max_length=100, description="Matching supply line name")
    quantity: float = Field(..., gt=0, description="Donated quantity")
    unit: str = Field(default="", max_length=20, description="Unit of measure")
    delivery_method: DeliveryMethod = Field(default=DeliveryMethod.DIRECT, description="Delivery method")
    delivery_address: Optional[str] = Field(None, max_length=500, description="Delivery address")
    delivery_time: Optional[str] = Field(None, max_length=200, description="Delivery time")
    status: DonationStatus = Field(default=DonationStatus.PLEDGED, description="Workflow status")
    receipt_applied: bool = Field(default=False, description="Quantity already added to the supply line")
    notes: Optional[str] = Field(None, max_length=1000, description="Free-form notes")


class GridDiscussion(BaseEntity):
    """Append-only message attached to a grid."""

    grid_id: str = Field(..., description="Grid discussed")
    author_name: str = Field(..., min_length=1, max_length=100, description="Author display name")
    author_role: ActorRole = Field(default=ActorRole.GUEST, description="Author role at post time")
    message: str = Field(..., min_length=1, max_length=2000, description="Message body")

    @field_validator('message')
    @classmethod
    def validate_message(cls, v):
        """Validate message body."""
        if not v.strip():
            raise ValueError('Message cannot be empty')
        return v.strip()


class Announcement(BaseEntity):
    """Admin notice displayed next to the map."""

    title: str = Field(..., min_length=1, max_length=200, description="Announcement title")
    content: str = Field(..., min_length=1, max_length=5000, description="Announcement body")
    category: AnnouncementCategory = Field(default=AnnouncementCategory.GENERAL, description="Category")
    is_pinned: bool = Field(default=False, description="Pinned to the top of its category")
    order: int = Field(default=0, description="Manual sort order")
    external_links: List[str] = Field(default_factory=list, description="Related links")
    status: AreaStatus = Field(default=AreaStatus.ACTIVE, description="Active or archived")


class Actor(BaseModel):
    """The current caller as reported by the identity provider."""

    model_config = ConfigDict(use_enum_values=True, frozen=True)

    id: Optional[str] = Field(None, description="Actor ID, absent for guests")
    role: ActorRole = Field(default=ActorRole.GUEST, description="Actor role")
    name: Optional[str] = Field(None, description="Display name")
    client_token: Optional[str] = Field(None, description="Opaque client token for throttling")
    authenticated_at: datetime = Field(default_factory=utcnow, description="Resolution time")

    @property
    def is_admin(self) -> bool:
        return self.role == ActorRole.ADMIN

    @property
    def is_guest(self) -> bool:
        return self.role == ActorRole.GUEST

    def manages(self, grid: Grid) -> bool:
        """True when this actor is the grid manager of the given grid."""
        return (
            self.role == ActorRole.GRID_MANAGER
            and self.id is not None
            and grid.grid_manager_id == self.id
        )


GUEST = Actor()
