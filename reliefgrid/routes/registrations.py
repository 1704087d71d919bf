# SPDX-License-Identifier: Apache-2.0

"""
Volunteer registration endpoints.

Status changes go through ``PUT /<id>/status`` so the grid's volunteer count
moves together with the registration.
"""

from flask import current_app, jsonify, request
from flask_openapi3 import APIBlueprint, Tag
from pydantic import BaseModel, Field
import logging

from ..middleware.auth import current_actor
from ..models.requests import RegisterVolunteerRequest, RegistrationFilters, VolunteerStatusRequest
from ..utils.request import RequestParser

logger = logging.getLogger(__name__)

registrations_tag = Tag(name="Volunteer Registrations", description="Volunteer sign-ups and their workflow")
registrations_bp = APIBlueprint(
    'registrations',
    __name__,
    url_prefix='/api/registrations',
    abp_tags=[registrations_tag]
)


class RegistrationPath(BaseModel):
    registration_id: str = Field(..., description="Volunteer registration ID")


def _format(registration, actor):
    service = current_app.coordination_service
    return current_app.hal_formatter.format_registration(
        registration, service.lookup_grid(registration.grid_id), actor
    )


@registrations_bp.get('')
def list_registrations():
    """List registrations filtered by ``grid_id`` and ``status``."""
    actor = current_actor()
    service = current_app.coordination_service
    hal = current_app.hal_formatter
    filters = RequestParser.get_filter_params(RegistrationFilters)

    grids = {}
    items = []
    for visible in service.list_registrations(filters, actor):
        grid_id = visible.record.grid_id
        if grid_id not in grids:
            grids[grid_id] = service.lookup_grid(grid_id)
        items.append(hal.format_registration(visible.record, grids[grid_id], actor))
    return jsonify(hal.format_collection(items, request.full_path.rstrip('?')))


@registrations_bp.post('')
def register_volunteer():
    """Register a volunteer for a grid. New registrations start pending."""
    actor = current_actor()
    registration_request = RequestParser.parse_body(RegisterVolunteerRequest)
    registration = current_app.coordination_service.register_volunteer(registration_request, actor)
    return jsonify(_format(registration, actor)), 201


@registrations_bp.get('/<registration_id>')
def get_registration(path: RegistrationPath):
    actor = current_actor()
    registration = current_app.coordination_service.get_registration(path.registration_id, actor)
    return jsonify(_format(registration, actor))


@registrations_bp.put('/<registration_id>/status')
def advance_registration(path: RegistrationPath):
    """Advance the registration workflow."""
    actor = current_actor()
    status_request = RequestParser.parse_body(VolunteerStatusRequest)
    registration = current_app.coordination_service.advance_volunteer(
        path.registration_id, status_request.status, actor
    )
    return jsonify(_format(registration, actor))


@registrations_bp.delete('/<registration_id>')
def delete_registration(path: RegistrationPath):
    current_app.coordination_service.delete_registration(path.registration_id, current_actor())
    return '', 204
