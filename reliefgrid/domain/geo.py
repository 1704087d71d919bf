# SPDX-License-Identifier: Apache-2.0

"""
Bounds derivation for areas and grids.

Rectangles are always derived from a center and a fixed half-width so that a
relocated grid never keeps a stale rectangle.
"""

import math
from typing import Optional, Tuple

from ..models.entities import Bounds

AREA_HALF_WIDTH = 0.01
GRID_HALF_WIDTH = 0.001

# Stored coordinates round-trip through floats, compare with a tolerance
BOUNDS_TOLERANCE = 1e-9


def derive_bounds(center_lat: float, center_lng: float, half_width: float) -> Bounds:
    """Rectangle of +/- half_width degrees around the center."""
    if half_width < 0:
        raise ValueError("half_width must not be negative")
    return Bounds(
        north=center_lat + half_width,
        south=center_lat - half_width,
        east=center_lng + half_width,
        west=center_lng - half_width,
    )


def grid_bounds(center_lat: float, center_lng: float) -> Bounds:
    return derive_bounds(center_lat, center_lng, GRID_HALF_WIDTH)


def area_bounds(center_lat: float, center_lng: float) -> Bounds:
    return derive_bounds(center_lat, center_lng, AREA_HALF_WIDTH)


def bounds_midpoint(bounds: Bounds) -> Tuple[float, float]:
    """Center (lat, lng) of a rectangle."""
    return (bounds.north + bounds.south) / 2, (bounds.east + bounds.west) / 2


def bounds_match(bounds: Optional[Bounds], expected: Bounds,
                 tolerance: float = BOUNDS_TOLERANCE) -> bool:
    """True when two rectangles agree on every edge within tolerance."""
    if bounds is None:
        return False
    return all(
        math.isclose(getattr(bounds, edge), getattr(expected, edge), abs_tol=tolerance)
        for edge in ("north", "south", "east", "west")
    )
