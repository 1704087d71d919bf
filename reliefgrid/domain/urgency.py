# SPDX-License-Identifier: Apache-2.0

"""
Urgency scoring for manpower grids.

The shortage ratio computed here is the only basis for ranking grids by need;
dashboards, map colouring and the urgent feed all go through these functions.
"""

from collections import Counter
from typing import Dict, Iterable, List, Sequence

from ..models.entities import Grid, SupplyDonation, VolunteerRegistration
from ..models.enums import (
    DonationStatus, GridStatus, GridType, RegistrationStatus, UrgencyBucket
)
from ..models.responses import GridStatistics, UrgentGridEntry

CRITICAL_THRESHOLD = 0.6
ELEVATED_THRESHOLD = 0.4


def shortage_ratio(grid: Grid) -> float:
    """(needed - registered) / needed, or 0 when nothing is needed."""
    needed = grid.volunteer_needed
    if needed <= 0:
        return 0.0
    return (needed - grid.volunteer_registered) / needed


def classify_shortage(shortage: float) -> UrgencyBucket:
    """Map a shortage ratio onto its urgency bucket."""
    if shortage >= CRITICAL_THRESHOLD:
        return UrgencyBucket.CRITICAL
    if shortage >= ELEVATED_THRESHOLD:
        return UrgencyBucket.ELEVATED
    if shortage > 0:
        return UrgencyBucket.MILD
    return UrgencyBucket.SATISFIED


def urgency_bucket(grid: Grid) -> UrgencyBucket:
    """Urgency bucket of a grid's manpower shortage."""
    return classify_shortage(shortage_ratio(grid))


def counts_as_urgent_candidate(grid: Grid) -> bool:
    """Only open manpower grids take part in urgent aggregates."""
    return grid.grid_type == GridType.MANPOWER and grid.status == GridStatus.OPEN


def is_urgent(grid: Grid) -> bool:
    return counts_as_urgent_candidate(grid) and shortage_ratio(grid) >= CRITICAL_THRESHOLD


def rank_by_need(grids: Sequence[Grid]) -> List[Grid]:
    """
    Order grids by descending shortage.

    Non-manpower grids score 0. Ties keep the input order, which callers
    supply in creation order; sorted() is stable so no extra key is needed.
    """
    def score(grid: Grid) -> float:
        return shortage_ratio(grid) if grid.grid_type == GridType.MANPOWER else 0.0

    return sorted(grids, key=score, reverse=True)


def urgent_grids(grids: Sequence[Grid]) -> List[UrgentGridEntry]:
    """Open manpower grids with shortage at or above the critical threshold."""
    ranked = rank_by_need([grid for grid in grids if is_urgent(grid)])
    return [
        UrgentGridEntry(
            grid_id=grid.id,
            grid_code=grid.code,
            volunteer_needed=grid.volunteer_needed,
            volunteer_registered=grid.volunteer_registered,
            shortage=shortage_ratio(grid),
            bucket=urgency_bucket(grid).value
        )
        for grid in ranked
    ]


def grid_statistics(grids: Iterable[Grid]) -> GridStatistics:
    """Dashboard summary: totals, urgent count and per-type breakdown."""
    stats = GridStatistics(by_type={grid_type.value: 0 for grid_type in GridType})
    for grid in grids:
        stats.total_grids += 1
        if grid.status == GridStatus.OPEN:
            stats.open_grids += 1
        if grid.status == GridStatus.COMPLETED:
            stats.completed_grids += 1
        if is_urgent(grid):
            stats.urgent_grids += 1
        stats.volunteers_needed += grid.volunteer_needed
        stats.volunteers_registered += grid.volunteer_registered
        stats.by_type[grid.grid_type] = stats.by_type.get(grid.grid_type, 0) + 1
    return stats


def registration_statistics(registrations: Iterable[VolunteerRegistration]) -> Dict[str, int]:
    counts = Counter(registration.status for registration in registrations)
    return {status.value: counts.get(status.value, 0) for status in RegistrationStatus}


def donation_statistics(donations: Iterable[SupplyDonation]) -> Dict[str, int]:
    counts = Counter(donation.status for donation in donations)
    return {status.value: counts.get(status.value, 0) for status in DonationStatus}
