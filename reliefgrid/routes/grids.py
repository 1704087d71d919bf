# SPDX-License-Identifier: Apache-2.0

"""
Grid endpoints.

Covers grid CRUD, relocation, supply demand and receipts, discussions and the
CSV import/export surface.
"""

from flask import Response, current_app, jsonify, request
from flask_openapi3 import APIBlueprint, Tag
from pydantic import BaseModel, Field
import logging

from ..middleware.auth import current_actor
from ..models.requests import (
    CreateGridRequest,
    GridFilters,
    ImportGridsRequest,
    PostDiscussionRequest,
    RecordReceiptRequest,
    RelocateGridRequest,
    RequestSuppliesRequest,
    UpdateGridRequest,
)
from ..utils.request import RequestParser

logger = logging.getLogger(__name__)

grids_tag = Tag(name="Grids", description="Grid coordination, supplies and bulk import/export")
grids_bp = APIBlueprint(
    'grids',
    __name__,
    url_prefix='/api/grids',
    abp_tags=[grids_tag]
)


class GridPath(BaseModel):
    grid_id: str = Field(..., description="Grid ID")


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content,
        mimetype="text/csv",
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@grids_bp.get('')
def list_grids():
    """
    List grids.

    Supports equality filters and ``sort=need`` to order by manpower shortage.
    """
    actor = current_actor()
    service = current_app.coordination_service
    hal = current_app.hal_formatter

    filters = RequestParser.get_filter_params(GridFilters)
    if request.args.get('sort') == 'need':
        grids = service.grids_by_need(filters, actor)
    else:
        grids = [visible.record for visible in service.list_grids(filters, actor)]

    items = [hal.format_grid(grid, actor) for grid in grids]
    return jsonify(hal.format_collection(items, request.full_path.rstrip('?')))


@grids_bp.post('')
def create_grid():
    """Create a grid. Public submissions are throttled per client."""
    actor = current_actor()
    grid_request = RequestParser.parse_body(CreateGridRequest)

    client_id = None
    throttle = current_app.submission_throttle
    if throttle is not None and not actor.is_admin:
        client_id = throttle.get_client_identifier(actor.client_token)

    grid = current_app.coordination_service.create_grid(grid_request, actor, client_id=client_id)
    return jsonify(current_app.hal_formatter.format_grid(grid, actor)), 201


@grids_bp.get('/export')
def export_grids():
    """Export all grids as CSV."""
    content = current_app.coordination_service.export_grids(current_actor())
    return _csv_response(content, "grids.csv")


@grids_bp.get('/template')
def grid_template():
    """Download an import template."""
    return _csv_response(current_app.coordination_service.grid_template(), "grids_template.csv")


@grids_bp.post('/import')
def import_grids():
    """
    Import grids from CSV.

    Accepts either ``text/csv`` or a JSON body with ``csv_content``. The
    response lists every rejected row; accepted rows are kept even when
    others fail.
    """
    if request.mimetype == 'text/csv':
        csv_content = request.get_data(as_text=True)
    else:
        csv_content = RequestParser.parse_body(ImportGridsRequest).csv_content

    summary = current_app.coordination_service.import_grids(csv_content, current_actor())
    body = summary.model_dump()
    body['message'] = summary.message
    return jsonify(body), 200 if summary.success else 422


@grids_bp.post('/repair-bounds')
def repair_grid_bounds():
    """Recompute missing or stale grid bounds."""
    repaired = current_app.coordination_service.repair_grid_bounds(current_actor())
    return jsonify({'repaired': repaired})


@grids_bp.get('/<grid_id>')
def get_grid(path: GridPath):
    """Get a grid with fulfillment and urgency figures."""
    actor = current_actor()
    grid = current_app.coordination_service.get_grid(path.grid_id, actor)
    return jsonify(current_app.hal_formatter.format_grid(grid, actor))


@grids_bp.put('/<grid_id>')
def update_grid(path: GridPath):
    """Edit a grid. Counter corrections require an admin."""
    actor = current_actor()
    changes = RequestParser.parse_body(UpdateGridRequest)
    grid = current_app.coordination_service.update_grid(path.grid_id, changes, actor)
    return jsonify(current_app.hal_formatter.format_grid(grid, actor))


@grids_bp.delete('/<grid_id>')
def delete_grid(path: GridPath):
    """Delete a grid with its registrations, donations and discussions."""
    result = current_app.coordination_service.delete_grid(path.grid_id, current_actor())
    return jsonify(result.model_dump())


@grids_bp.post('/<grid_id>/relocate')
def relocate_grid(path: GridPath):
    """Move a grid's center; bounds are recomputed."""
    actor = current_actor()
    location = RequestParser.parse_body(RelocateGridRequest)
    grid = current_app.coordination_service.relocate_grid(
        path.grid_id, location.center_lat, location.center_lng, actor
    )
    return jsonify(current_app.hal_formatter.format_grid(grid, actor))


@grids_bp.post('/<grid_id>/supplies')
def request_supplies(path: GridPath):
    """Add demand to the grid's supply lines."""
    actor = current_actor()
    supplies = RequestParser.parse_body(RequestSuppliesRequest)
    grid = current_app.coordination_service.request_supplies(path.grid_id, supplies.items, actor)
    return jsonify(current_app.hal_formatter.format_grid(grid, actor))


@grids_bp.post('/<grid_id>/receipts')
def record_receipt(path: GridPath):
    """Record goods received against a supply line."""
    actor = current_actor()
    receipt = RequestParser.parse_body(RecordReceiptRequest)
    grid = current_app.coordination_service.record_donation(
        path.grid_id, receipt.supply_name, receipt.quantity, actor
    )
    return jsonify(current_app.hal_formatter.format_grid(grid, actor))


@grids_bp.get('/<grid_id>/discussions')
def list_discussions(path: GridPath):
    """Discussion messages, newest first."""
    hal = current_app.hal_formatter
    discussions = current_app.coordination_service.list_discussions(path.grid_id)
    items = [hal.format_discussion(discussion) for discussion in discussions]
    return jsonify(hal.format_collection(items, request.path))


@grids_bp.post('/<grid_id>/discussions')
def post_discussion(path: GridPath):
    """Post a discussion message."""
    message = RequestParser.parse_body(PostDiscussionRequest)
    discussion = current_app.coordination_service.post_discussion(path.grid_id, message, current_actor())
    return jsonify(current_app.hal_formatter.format_discussion(discussion)), 201
