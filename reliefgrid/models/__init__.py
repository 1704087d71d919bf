# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the relief grid platform.
"""

# Base models
from .base import BaseEntity, BaseEntityCreate, BaseEntityUpdate

# Enumerations
from .enums import (
    ActorRole,
    AnnouncementCategory,
    AreaStatus,
    DeliveryMethod,
    DonationStatus,
    GridStatus,
    GridType,
    ReceiptPolicy,
    RegistrationStatus,
    UrgencyBucket
)

# Core entities
from .entities import (
    Actor,
    Announcement,
    Bounds,
    DisasterArea,
    Grid,
    GridDiscussion,
    GUEST,
    SupplyDonation,
    SupplyLine,
    VolunteerRegistration
)

# Request models
from .requests import (
    CreateAnnouncementRequest,
    CreateAreaRequest,
    CreateGridRequest,
    DonationFilters,
    DonationStatusRequest,
    GridFilters,
    ImportGridsRequest,
    PledgeDonationRequest,
    PostDiscussionRequest,
    RegisterVolunteerRequest,
    RegistrationFilters,
    RelocateGridRequest,
    RecordReceiptRequest,
    RequestSuppliesRequest,
    SupplyItemRequest,
    UpdateAnnouncementRequest,
    UpdateAreaRequest,
    UpdateGridRequest,
    VolunteerStatusRequest
)

# Response models
from .responses import (
    AreaDeleteResult,
    CascadeDeleteResult,
    GridStatistics,
    HalLink,
    ImportRowError,
    ImportSummary,
    UnfulfilledSupply,
    UrgentGridEntry
)

__all__ = [
    # Base
    "BaseEntity", "BaseEntityCreate", "BaseEntityUpdate",
    # Enums
    "ActorRole", "AnnouncementCategory", "AreaStatus", "DeliveryMethod",
    "DonationStatus", "GridStatus", "GridType", "ReceiptPolicy",
    "RegistrationStatus", "UrgencyBucket",
    # Entities
    "Actor", "Announcement", "Bounds", "DisasterArea", "Grid", "GridDiscussion",
    "GUEST", "SupplyDonation", "SupplyLine", "VolunteerRegistration",
    # Requests
    "CreateAnnouncementRequest", "CreateAreaRequest", "CreateGridRequest",
    "DonationFilters", "DonationStatusRequest", "GridFilters", "ImportGridsRequest",
    "PledgeDonationRequest", "PostDiscussionRequest", "RegisterVolunteerRequest",
    "RegistrationFilters", "RecordReceiptRequest", "RelocateGridRequest", "RequestSuppliesRequest",
    "SupplyItemRequest", "UpdateAnnouncementRequest", "UpdateAreaRequest",
    "UpdateGridRequest", "VolunteerStatusRequest",
    # Responses
    "AreaDeleteResult", "CascadeDeleteResult", "GridStatistics", "HalLink",
    "ImportRowError", "ImportSummary", "UnfulfilledSupply", "UrgentGridEntry",
]
