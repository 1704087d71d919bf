# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the relief grid coordination platform.
"""

from enum import Enum


class AreaStatus(str, Enum):
    """Disaster area lifecycle status."""
    ACTIVE = "active"
    ARCHIVED = "archived"


class GridType(str, Enum):
    """Kind of relief work a grid represents."""
    MANPOWER = "manpower"
    MUD_DISPOSAL = "mud_disposal"
    SUPPLY_STORAGE = "supply_storage"
    ACCOMMODATION = "accommodation"
    FOOD_AREA = "food_area"


class GridStatus(str, Enum):
    """Grid lifecycle status."""
    PREPARING = "preparing"
    OPEN = "open"
    CLOSED = "closed"
    COMPLETED = "completed"


class RegistrationStatus(str, Enum):
    """Volunteer registration workflow status."""
    PENDING = "pending"
    CONFIRMED = "confirmed"
    ARRIVED = "arrived"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class DonationStatus(str, Enum):
    """Supply donation workflow status."""
    PLEDGED = "pledged"
    CONFIRMED = "confirmed"
    IN_TRANSIT = "in_transit"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class DeliveryMethod(str, Enum):
    """How a donation reaches its grid."""
    DIRECT = "direct"
    PICKUP_POINT = "pickup_point"
    VOLUNTEER_PICKUP = "volunteer_pickup"


class ActorRole(str, Enum):
    """Roles supplied by the identity provider."""
    GUEST = "guest"
    VOLUNTEER = "volunteer"
    GRID_MANAGER = "grid_manager"
    ADMIN = "admin"


class UrgencyBucket(str, Enum):
    """Manpower shortage classification."""
    CRITICAL = "critical"
    ELEVATED = "elevated"
    MILD = "mild"
    SATISFIED = "satisfied"


class ReceiptPolicy(str, Enum):
    """When a donation's quantity is applied to its supply line."""
    CREATION = "creation"
    CONFIRMATION = "confirmation"
    DELIVERY = "delivery"


class AnnouncementCategory(str, Enum):
    """Announcement grouping shown next to the map."""
    SAFETY = "safety"
    MEDICAL = "medical"
    TRAFFIC = "traffic"
    SUPPLY = "supply"
    GENERAL = "general"
