# SPDX-License-Identifier: Apache-2.0

"""
Derived read-only feeds for donors, coordinators and the dashboard.
"""

from flask import current_app, jsonify, request
from flask_openapi3 import APIBlueprint, Tag
from pydantic import BaseModel, Field
import logging

logger = logging.getLogger(__name__)

feeds_tag = Tag(name="Feeds", description="Unfulfilled supplies, urgent grids and statistics")
feeds_bp = APIBlueprint(
    'feeds',
    __name__,
    url_prefix='/api',
    abp_tags=[feeds_tag]
)


class GridPath(BaseModel):
    grid_id: str = Field(..., description="Grid ID")


@feeds_bp.get('/unfulfilled-supplies')
def unfulfilled_supplies():
    """Open supply lines across all grids."""
    hal = current_app.hal_formatter
    entries = current_app.coordination_service.unfulfilled_supplies()
    items = [entry.model_dump(mode="json") for entry in entries]
    return jsonify(hal.format_collection(items, request.path))


@feeds_bp.get('/urgent-grids')
def urgent_grids():
    """Grids short of volunteers, most urgent first."""
    hal = current_app.hal_formatter
    entries = current_app.coordination_service.urgent_grids()
    items = [entry.model_dump(mode="json") for entry in entries]
    return jsonify(hal.format_collection(items, request.path))


@feeds_bp.get('/grids/<grid_id>/urgency')
def grid_urgency(path: GridPath):
    return jsonify(current_app.coordination_service.grid_urgency(path.grid_id))


@feeds_bp.get('/statistics')
def statistics():
    """Dashboard counts. Visible to everyone, no contact data included."""
    return jsonify(current_app.coordination_service.statistics())
