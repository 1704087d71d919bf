# SPDX-License-Identifier: Apache-2.0

"""
Disaster area endpoints.
"""

from flask import current_app, jsonify, request
from flask_openapi3 import APIBlueprint, Tag
from pydantic import BaseModel, Field
import logging

from ..middleware.auth import current_actor
from ..models.requests import CreateAreaRequest, UpdateAreaRequest
from ..utils.request import RequestParser

logger = logging.getLogger(__name__)

areas_tag = Tag(name="Disaster Areas", description="Disaster area management")
areas_bp = APIBlueprint(
    'areas',
    __name__,
    url_prefix='/api/areas',
    abp_tags=[areas_tag]
)


class AreaPath(BaseModel):
    area_id: str = Field(..., description="Disaster area ID")


@areas_bp.get('')
def list_areas():
    """List disaster areas, optionally filtered by ``status``."""
    actor = current_actor()
    hal = current_app.hal_formatter
    areas = current_app.coordination_service.list_areas(request.args.get('status') or None)
    items = [hal.format_area(area, actor) for area in areas]
    return jsonify(hal.format_collection(items, request.full_path.rstrip('?')))


@areas_bp.post('')
def create_area():
    """Create a disaster area."""
    actor = current_actor()
    area_request = RequestParser.parse_body(CreateAreaRequest)
    area = current_app.coordination_service.create_area(area_request, actor)
    return jsonify(current_app.hal_formatter.format_area(area, actor)), 201


@areas_bp.get('/<area_id>')
def get_area(path: AreaPath):
    area = current_app.coordination_service.get_area(path.area_id)
    return jsonify(current_app.hal_formatter.format_area(area, current_actor()))


@areas_bp.put('/<area_id>')
def update_area(path: AreaPath):
    actor = current_actor()
    changes = RequestParser.parse_body(UpdateAreaRequest)
    area = current_app.coordination_service.update_area(path.area_id, changes, actor)
    return jsonify(current_app.hal_formatter.format_area(area, actor))


@areas_bp.delete('/<area_id>')
def delete_area(path: AreaPath):
    """Delete an area. Its grids are kept and reported as orphaned."""
    result = current_app.coordination_service.delete_area(path.area_id, current_actor())
    return jsonify(result.model_dump())
