# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Response models for API endpoints with HAL support.
"""

from typing import Dict, List, Optional
from pydantic import BaseModel, Field


class HalLink(BaseModel):
    """HAL link representation."""

    href: str = Field(..., description="Link URL")
    method: Optional[str] = Field(None, description="HTTP method")
    type: Optional[str] = Field(None, description="Content type")
    title: Optional[str] = Field(None, description="Link title")
    templated: Optional[bool] = Field(None, description="Whether URL is templated")


class ImportRowError(BaseModel):
    """A rejected import row."""

    row: int = Field(..., description="1-based data row number")
    error: str = Field(..., description="Human readable reason")
    code: Optional[str] = Field(None, description="Grid code of the row, when readable")
    error_type: str = Field(..., description="ValidationError or DuplicateCode")


class ImportSummary(BaseModel):
    """Outcome of a bulk grid import."""

    success: bool
    created: int = 0
    errors: List[ImportRowError] = Field(default_factory=list)
    created_ids: List[str] = Field(default_factory=list)

    @property
    def message(self) -> str:
        return f"Imported {self.created} grid(s), {len(self.errors)} row(s) rejected"


class UnfulfilledSupply(BaseModel):
    """One open supply line in the donor-facing feed."""

    grid_id: str
    grid_code: str
    grid_type: str
    supply_name: str
    unit: str
    quantity: float
    received: float
    remaining: float
    fulfillment_ratio: float


class UrgentGridEntry(BaseModel):
    """A grid ranked by manpower shortage."""

    grid_id: str
    grid_code: str
    volunteer_needed: int
    volunteer_registered: int
    shortage: float
    bucket: str


class GridStatistics(BaseModel):
    """Dashboard summary over all grids."""

    total_grids: int = 0
    open_grids: int = 0
    completed_grids: int = 0
    urgent_grids: int = 0
    volunteers_needed: int = 0
    volunteers_registered: int = 0
    by_type: Dict[str, int] = Field(default_factory=dict)


class CascadeDeleteResult(BaseModel):
    """Records removed by a grid fan-out delete."""

    grid_id: str
    registrations: int = 0
    donations: int = 0
    discussions: int = 0


class AreaDeleteResult(BaseModel):
    """Outcome of deleting an area; its grids are kept."""

    area_id: str
    orphaned_grids: int = 0
