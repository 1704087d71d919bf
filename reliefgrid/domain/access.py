# SPDX-License-Identifier: Apache-2.0

"""
Access policy for coordinator actions and sensitive contact fields.

This module contains pure functions that decide what the current actor may
see and do. Identity itself is resolved elsewhere; an unknown caller arrives
here as the guest actor.
"""

from dataclasses import dataclass
from typing import Optional, TypeVar

from pydantic import BaseModel

from ..models.entities import Actor, Grid, SupplyDonation, VolunteerRegistration
from .errors import PermissionDenied

REDACTED = "(hidden)"

GRID_CONTACT_FIELDS = ("contact_info",)
REGISTRATION_CONTACT_FIELDS = ("volunteer_phone", "volunteer_email")
DONATION_CONTACT_FIELDS = ("donor_phone", "donor_email")

ModelT = TypeVar("ModelT", bound=BaseModel)


@dataclass
class AuthorizationResult:
    """Result of an authorization check."""
    allowed: bool
    reason: Optional[str] = None


def can_view_contact(actor: Actor, grid: Optional[Grid]) -> bool:
    """
    Check whether the actor may see contact fields attached to a grid.

    Args:
        actor: Current actor
        grid: Grid owning the record, None when it no longer exists

    Returns:
        True for admins and for the grid's own manager
    """
    if actor.is_admin:
        return True
    return grid is not None and actor.manages(grid)


def check_coordinator(actor: Actor, grid: Grid) -> AuthorizationResult:
    """Admins and the grid's manager coordinate a grid."""
    if actor.is_admin or actor.manages(grid):
        return AuthorizationResult(allowed=True)
    return AuthorizationResult(
        allowed=False,
        reason=f"Only an admin or the manager of grid {grid.code} may do this"
    )


def check_admin(actor: Actor) -> AuthorizationResult:
    if actor.is_admin:
        return AuthorizationResult(allowed=True)
    return AuthorizationResult(allowed=False, reason="Admin role required")


def ensure_authenticated(actor: Actor) -> None:
    """
    Raises:
        PermissionDenied: if the actor is the guest
    """
    if actor.is_guest:
        raise PermissionDenied("Sign-in required")


def ensure_coordinator(actor: Actor, grid: Grid) -> None:
    """
    Raises:
        PermissionDenied: if the actor does not coordinate the grid
    """
    result = check_coordinator(actor, grid)
    if not result.allowed:
        raise PermissionDenied(result.reason)


def ensure_admin(actor: Actor) -> None:
    """
    Raises:
        PermissionDenied: if the actor is not an admin
    """
    result = check_admin(actor)
    if not result.allowed:
        raise PermissionDenied(result.reason)


def redact(record: ModelT, fields, visible: bool) -> ModelT:
    """
    Copy of the record with non-empty sensitive fields replaced.

    Empty values stay empty so callers can still tell that nothing was given.
    """
    if visible:
        return record
    hidden = {field: REDACTED for field in fields if getattr(record, field)}
    if not hidden:
        return record
    return record.model_copy(update=hidden)


def redact_grid(grid: Grid, actor: Actor) -> Grid:
    return redact(grid, GRID_CONTACT_FIELDS, can_view_contact(actor, grid))


def redact_registration(registration: VolunteerRegistration, grid: Optional[Grid],
                        actor: Actor) -> VolunteerRegistration:
    return redact(registration, REGISTRATION_CONTACT_FIELDS, can_view_contact(actor, grid))


def redact_donation(donation: SupplyDonation, grid: Optional[Grid],
                    actor: Actor) -> SupplyDonation:
    return redact(donation, DONATION_CONTACT_FIELDS, can_view_contact(actor, grid))
