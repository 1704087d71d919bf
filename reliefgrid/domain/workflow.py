# SPDX-License-Identifier: Apache-2.0

"""
Status workflow rules for volunteer registrations and supply donations.

Pure functions only: they decide whether a transition is legal and which
counter side effects it implies. Applying the plan atomically is the job of
the repository layer.
"""

from dataclasses import dataclass
from typing import Dict, FrozenSet

from ..models.enums import DonationStatus, ReceiptPolicy, RegistrationStatus
from .errors import InvalidTransition


VOLUNTEER_TRANSITIONS: Dict[RegistrationStatus, FrozenSet[RegistrationStatus]] = {
    RegistrationStatus.PENDING: frozenset({RegistrationStatus.CONFIRMED, RegistrationStatus.CANCELLED}),
    RegistrationStatus.CONFIRMED: frozenset({RegistrationStatus.ARRIVED, RegistrationStatus.CANCELLED}),
    RegistrationStatus.ARRIVED: frozenset({RegistrationStatus.COMPLETED}),
    RegistrationStatus.COMPLETED: frozenset(),  # Terminal state
    RegistrationStatus.CANCELLED: frozenset(),  # Terminal state
}

DONATION_TRANSITIONS: Dict[DonationStatus, FrozenSet[DonationStatus]] = {
    DonationStatus.PLEDGED: frozenset({DonationStatus.CONFIRMED, DonationStatus.CANCELLED}),
    DonationStatus.CONFIRMED: frozenset({DonationStatus.IN_TRANSIT}),
    DonationStatus.IN_TRANSIT: frozenset({DonationStatus.DELIVERED}),
    DonationStatus.DELIVERED: frozenset(),  # Terminal state
    DonationStatus.CANCELLED: frozenset(),  # Terminal state
}

# Donation status that triggers the receipt under each policy. CREATION is
# handled when the donation is recorded, not by a transition.
RECEIPT_TRIGGER: Dict[ReceiptPolicy, DonationStatus] = {
    ReceiptPolicy.CONFIRMATION: DonationStatus.CONFIRMED,
    ReceiptPolicy.DELIVERY: DonationStatus.DELIVERED,
}


@dataclass(frozen=True)
class VolunteerTransitionPlan:
    """Outcome of a legal registration transition."""
    current_status: RegistrationStatus
    new_status: RegistrationStatus
    registered_delta: int


@dataclass(frozen=True)
class DonationTransitionPlan:
    """Outcome of a legal donation transition."""
    current_status: DonationStatus
    new_status: DonationStatus
    apply_receipt: bool


def is_legal_volunteer_transition(current_status, new_status) -> bool:
    """Check a registration transition against the workflow table."""
    try:
        current = RegistrationStatus(current_status)
        target = RegistrationStatus(new_status)
    except ValueError:
        return False
    return target in VOLUNTEER_TRANSITIONS[current]


def is_legal_donation_transition(current_status, new_status) -> bool:
    """Check a donation transition against the workflow table."""
    try:
        current = DonationStatus(current_status)
        target = DonationStatus(new_status)
    except ValueError:
        return False
    return target in DONATION_TRANSITIONS[current]


def plan_volunteer_transition(current_status, new_status) -> VolunteerTransitionPlan:
    """
    Validate a registration transition and compute its counter effect.

    Only pending→confirmed (+1) and confirmed→cancelled (-1) move the grid's
    volunteer_registered counter.

    Raises:
        InvalidTransition: if the transition is not in the workflow table
    """
    if not is_legal_volunteer_transition(current_status, new_status):
        raise InvalidTransition("registration", str(_value(current_status)), str(_value(new_status)))

    current = RegistrationStatus(current_status)
    target = RegistrationStatus(new_status)

    delta = 0
    if current == RegistrationStatus.PENDING and target == RegistrationStatus.CONFIRMED:
        delta = 1
    elif current == RegistrationStatus.CONFIRMED and target == RegistrationStatus.CANCELLED:
        delta = -1

    return VolunteerTransitionPlan(current, target, delta)


def plan_donation_transition(current_status, new_status,
                             policy: ReceiptPolicy = ReceiptPolicy.CREATION,
                             receipt_applied: bool = False) -> DonationTransitionPlan:
    """
    Validate a donation transition and decide whether it records the receipt.

    Raises:
        InvalidTransition: if the transition is not in the workflow table
    """
    if not is_legal_donation_transition(current_status, new_status):
        raise InvalidTransition("donation", str(_value(current_status)), str(_value(new_status)))

    current = DonationStatus(current_status)
    target = DonationStatus(new_status)
    trigger = RECEIPT_TRIGGER.get(ReceiptPolicy(policy))

    return DonationTransitionPlan(
        current_status=current,
        new_status=target,
        apply_receipt=trigger is not None and target == trigger and not receipt_applied
    )


def _value(status):
    return getattr(status, "value", status)
