# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Request models for API endpoints and service operations.
"""

from typing import List, Optional
from pydantic import BaseModel, Field, field_validator
from .base import BaseEntityCreate, BaseEntityUpdate
from .entities import Bounds, SupplyLine
from .enums import (
    AnnouncementCategory,
    AreaStatus,
    DeliveryMethod,
    DonationStatus,
    GridStatus,
    GridType,
    RegistrationStatus,
)


class CreateAreaRequest(BaseEntityCreate):
    """Request model for creating a disaster area."""

    name: str = Field(..., min_length=1, max_length=200, description="Area name")
    county: Optional[str] = Field(None, max_length=100, description="County")
    township: Optional[str] = Field(None, max_length=100, description="Township")
    description: Optional[str] = Field(None, max_length=2000, description="Area description")
    center_lat: float = Field(..., ge=-90, le=90, description="Center latitude")
    center_lng: float = Field(..., ge=-180, le=180, description="Center longitude")
    bounds: Optional[Bounds] = Field(None, description="Explicit bounds, derived when omitted")
    status: AreaStatus = Field(default=AreaStatus.ACTIVE, description="Area status")


class UpdateAreaRequest(BaseEntityUpdate):
    """Request model for editing a disaster area."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    county: Optional[str] = Field(None, max_length=100)
    township: Optional[str] = Field(None, max_length=100)
    description: Optional[str] = Field(None, max_length=2000)
    center_lat: Optional[float] = Field(None, ge=-90, le=90)
    center_lng: Optional[float] = Field(None, ge=-180, le=180)
    bounds: Optional[Bounds] = None
    status: Optional[AreaStatus] = None


class SupplyItemRequest(BaseModel):
    """A single requested supply item."""

    name: str = Field(..., min_length=1, max_length=100, description="Supply name")
    quantity: float = Field(..., gt=0, description="Requested quantity")
    unit: str = Field(default="", max_length=20, description="Unit of measure")

    @field_validator('name', 'unit')
    @classmethod
    def strip_text(cls, v):
        return v.strip()


class CreateGridRequest(BaseEntityCreate):
    """Request model for creating a grid."""

    code: str = Field(..., min_length=1, max_length=50, description="Grid code")
    disaster_area_id: Optional[str] = Field(None, description="Owning disaster area")
    grid_type: GridType = Field(..., description="Grid type")
    status: GridStatus = Field(default=GridStatus.OPEN, description="Initial status")
    center_lat: float = Field(..., ge=-90, le=90, description="Center latitude")
    center_lng: float = Field(..., ge=-180, le=180, description="Center longitude")
    bounds: Optional[Bounds] = Field(None, description="Explicit bounds, derived when omitted")
    volunteer_needed: int = Field(default=0, ge=0, description="Volunteers required")
    meeting_point: Optional[str] = Field(None, max_length=500)
    risk_notes: Optional[str] = Field(None, max_length=2000)
    contact_info: Optional[str] = Field(None, max_length=500)
    grid_manager_id: Optional[str] = Field(None, description="Managing actor")
    supplies_needed: List[SupplyItemRequest] = Field(default_factory=list, description="Initial demand")


class UpdateGridRequest(BaseEntityUpdate):
    """Full administrative edit of a grid, including counter corrections."""

    code: Optional[str] = Field(None, min_length=1, max_length=50)
    disaster_area_id: Optional[str] = None
    grid_type: Optional[GridType] = None
    status: Optional[GridStatus] = None
    center_lat: Optional[float] = Field(None, ge=-90, le=90)
    center_lng: Optional[float] = Field(None, ge=-180, le=180)
    volunteer_needed: Optional[int] = Field(None, ge=0)
    volunteer_registered: Optional[int] = Field(None, ge=0)
    meeting_point: Optional[str] = Field(None, max_length=500)
    risk_notes: Optional[str] = Field(None, max_length=2000)
    contact_info: Optional[str] = Field(None, max_length=500)
    grid_manager_id: Optional[str] = None
    supplies_needed: Optional[List[SupplyLine]] = None

    @field_validator('supplies_needed')
    @classmethod
    def validate_unique_supply_names(cls, v):
        """A corrected supply list may not repeat a line name."""
        if v is not None:
            names = [line.name for line in v]
            if len(names) != len(set(names)):
                raise ValueError('Supply line names must be unique within a grid')
        return v


class RelocateGridRequest(BaseModel):
    """Move a grid's center; bounds are always recomputed."""

    center_lat: float = Field(..., ge=-90, le=90)
    center_lng: float = Field(..., ge=-180, le=180)


class RequestSuppliesRequest(BaseModel):
    """Additional demand for one grid."""

    items: List[SupplyItemRequest] = Field(..., min_length=1, description="Requested items")


class RecordReceiptRequest(BaseModel):
    """Goods received directly against a supply line."""

    supply_name: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(..., gt=0)


class RegisterVolunteerRequest(BaseEntityCreate):
    """Request model for a volunteer sign-up."""

    grid_id: str = Field(..., min_length=1, description="Target grid")
    volunteer_name: str = Field(..., min_length=1, max_length=100)
    volunteer_phone: Optional[str] = Field(None, max_length=50)
    volunteer_email: Optional[str] = Field(None, max_length=200)
    available_time: Optional[str] = Field(None, max_length=200)
    skills: List[str] = Field(default_factory=list)
    equipment: List[str] = Field(default_factory=list)
    notes: Optional[str] = Field(None, max_length=1000)


class PledgeDonationRequest(BaseEntityCreate):
    """Request model for a supply donation."""

    grid_id: str = Field(..., min_length=1, description="Target grid")
    donor_name: str = Field(..., min_length=1, max_length=100)
    donor_phone: str = Field(..., min_length=1, max_length=50)
    donor_email: Optional[str] = Field(None, max_length=200)
    supply_name: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(..., gt=0)
    unit: str = Field(default="", max_length=20)
    delivery_method: DeliveryMethod = Field(default=DeliveryMethod.DIRECT)
    delivery_address: Optional[str] = Field(None, max_length=500)
    delivery_time: Optional[str] = Field(None, max_length=200)
    notes: Optional[str] = Field(None, max_length=1000)


class VolunteerStatusRequest(BaseModel):
    """Target status for a registration."""

    status: RegistrationStatus


class DonationStatusRequest(BaseModel):
    """Target status for a donation."""

    status: DonationStatus


class PostDiscussionRequest(BaseEntityCreate):
    """A new discussion message on a grid."""

    message: str = Field(..., min_length=1, max_length=2000)
    author_name: Optional[str] = Field(None, max_length=100)


class CreateAnnouncementRequest(BaseEntityCreate):
    """Request model for an announcement."""

    title: str = Field(..., min_length=1, max_length=200)
    content: str = Field(..., min_length=1, max_length=5000)
    category: AnnouncementCategory = Field(default=AnnouncementCategory.GENERAL)
    is_pinned: bool = False
    order: int = 0
    external_links: List[str] = Field(default_factory=list)


class UpdateAnnouncementRequest(BaseEntityUpdate):
    """Partial announcement edit."""

    title: Optional[str] = Field(None, min_length=1, max_length=200)
    content: Optional[str] = Field(None, min_length=1, max_length=5000)
    category: Optional[AnnouncementCategory] = None
    is_pinned: Optional[bool] = None
    order: Optional[int] = None
    external_links: Optional[List[str]] = None
    status: Optional[AreaStatus] = None


class ImportGridsRequest(BaseModel):
    """CSV payload for a bulk grid import."""

    csv_content: str = Field(..., min_length=1, description="CSV text including header row")


class GridFilters(BaseModel):
    """Filters for grid listings."""

    disaster_area_id: Optional[str] = None
    grid_type: Optional[GridType] = None
    status: Optional[GridStatus] = None
    grid_manager_id: Optional[str] = None


class RegistrationFilters(BaseModel):
    """Filters for volunteer registration listings."""

    grid_id: Optional[str] = None
    status: Optional[RegistrationStatus] = None


class DonationFilters(BaseModel):
    """Filters for donation listings."""

    grid_id: Optional[str] = None
    status: Optional[DonationStatus] = None
    supply_name: Optional[str] = None
