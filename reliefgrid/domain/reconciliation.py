# SPDX-License-Identifier: Apache-2.0

"""
Quantity reconciliation for grid supply lines.

This module contains pure functions that merge new demand and donation
receipts into a grid's supply list without losing prior state, and derive
fulfillment figures from it.
"""

from typing import Iterable, List, Optional, Sequence

from ..models.entities import Grid, SupplyLine
from ..models.enums import GridStatus
from ..models.requests import SupplyItemRequest
from ..models.responses import UnfulfilledSupply
from .errors import UnknownSupplyLine, ValidationError


def fulfillment_ratio(line: SupplyLine) -> float:
    """
    Fraction of a supply line already received, within [0, 1].

    Lines with zero target quantity report 0. Over-delivery reports 1.
    """
    if line.quantity <= 0:
        return 0.0
    return min(max(line.received / line.quantity, 0.0), 1.0)


def remaining(line: SupplyLine) -> float:
    """Quantity still missing, never negative."""
    return max(line.quantity - line.received, 0)


def is_fulfilled(line: SupplyLine) -> bool:
    """A line is fulfilled once received reaches a positive target."""
    return line.quantity > 0 and line.received >= line.quantity


def merge_supply_request(lines: Sequence[SupplyLine],
                         items: Iterable[SupplyItemRequest]) -> List[SupplyLine]:
    """
    Merge requested items into an existing supply list.

    Demand for an existing name is added to its quantity; unknown names are
    appended with received=0, preserving order of first appearance.

    Args:
        lines: Current supply lines of the grid
        items: Requested items

    Returns:
        New list of supply lines (input is not modified)
    """
    merged = [line.model_copy() for line in lines]
    index = {line.name: position for position, line in enumerate(merged)}

    for item in items:
        if item.quantity <= 0:
            raise ValidationError(f'Requested quantity for "{item.name}" must be positive')
        position = index.get(item.name)
        if position is None:
            merged.append(SupplyLine(name=item.name, quantity=item.quantity, received=0, unit=item.unit))
            index[item.name] = len(merged) - 1
        else:
            existing = merged[position]
            existing.quantity = existing.quantity + item.quantity
            if not existing.unit and item.unit:
                existing.unit = item.unit

    return merged


def apply_receipt(lines: Sequence[SupplyLine], grid_id: str, supply_name: str,
                  quantity: float) -> List[SupplyLine]:
    """
    Add a donation receipt to the named supply line.

    Over-delivery is allowed; received is never clamped to quantity.

    Raises:
        UnknownSupplyLine: if no line has exactly this name
        ValidationError: if quantity is not positive
    """
    if quantity <= 0:
        raise ValidationError("Donation quantity must be positive")

    updated = [line.model_copy() for line in lines]
    for line in updated:
        if line.name == supply_name:
            line.received = line.received + quantity
            return updated

    raise UnknownSupplyLine(grid_id, supply_name)


def find_line(lines: Sequence[SupplyLine], supply_name: str) -> Optional[SupplyLine]:
    for line in lines:
        if line.name == supply_name:
            return line
    return None


def unfulfilled_supplies(grids: Iterable[Grid]) -> List[UnfulfilledSupply]:
    """
    Flatten every supply line with remaining demand across open grids.

    Grids keep their input order and lines keep their order within a grid.
    """
    feed = []
    for grid in grids:
        if grid.status != GridStatus.OPEN:
            continue
        for line in grid.supplies_needed:
            left = remaining(line)
            if left <= 0:
                continue
            feed.append(UnfulfilledSupply(
                grid_id=grid.id,
                grid_code=grid.code,
                grid_type=grid.grid_type,
                supply_name=line.name,
                unit=line.unit,
                quantity=line.quantity,
                received=line.received,
                remaining=left,
                fulfillment_ratio=fulfillment_ratio(line)
            ))
    return feed
