# SPDX-License-Identifier: Apache-2.0

"""
Supply donation endpoints.
"""

from flask import current_app, jsonify, request
from flask_openapi3 import APIBlueprint, Tag
from pydantic import BaseModel, Field
import logging

from ..middleware.auth import current_actor
from ..models.requests import DonationFilters, DonationStatusRequest, PledgeDonationRequest
from ..utils.request import RequestParser

logger = logging.getLogger(__name__)

donations_tag = Tag(name="Supply Donations", description="Donation pledges and delivery workflow")
donations_bp = APIBlueprint(
    'donations',
    __name__,
    url_prefix='/api/donations',
    abp_tags=[donations_tag]
)


class DonationPath(BaseModel):
    donation_id: str = Field(..., description="Supply donation ID")


def _format(donation, actor):
    service = current_app.coordination_service
    return current_app.hal_formatter.format_donation(
        donation, service.lookup_grid(donation.grid_id), actor
    )


@donations_bp.get('')
def list_donations():
    """List donations filtered by ``grid_id``, ``status`` and ``supply_name``."""
    actor = current_actor()
    service = current_app.coordination_service
    hal = current_app.hal_formatter
    filters = RequestParser.get_filter_params(DonationFilters)

    grids = {}
    items = []
    for visible in service.list_donations(filters, actor):
        grid_id = visible.record.grid_id
        if grid_id not in grids:
            grids[grid_id] = service.lookup_grid(grid_id)
        items.append(hal.format_donation(visible.record, grids[grid_id], actor))
    return jsonify(hal.format_collection(items, request.full_path.rstrip('?')))


@donations_bp.post('')
def pledge_donation():
    """
    Pledge a donation against one of the grid's supply lines.

    Depending on the configured receipt policy the quantity is counted as
    received immediately or on a later status change.
    """
    actor = current_actor()
    pledge = RequestParser.parse_body(PledgeDonationRequest)
    donation = current_app.coordination_service.pledge_donation(pledge, actor)
    return jsonify(_format(donation, actor)), 201


@donations_bp.get('/<donation_id>')
def get_donation(path: DonationPath):
    actor = current_actor()
    donation = current_app.coordination_service.get_donation(path.donation_id, actor)
    return jsonify(_format(donation, actor))


@donations_bp.put('/<donation_id>/status')
def advance_donation(path: DonationPath):
    """Advance the donation workflow."""
    actor = current_actor()
    status_request = RequestParser.parse_body(DonationStatusRequest)
    donation = current_app.coordination_service.advance_donation(
        path.donation_id, status_request.status, actor
    )
    return jsonify(_format(donation, actor))


@donations_bp.delete('/<donation_id>')
def delete_donation(path: DonationPath):
    current_app.coordination_service.delete_donation(path.donation_id, current_actor())
    return '', 204
