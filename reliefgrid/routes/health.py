# SPDX-License-Identifier: Apache-2.0

"""
Health endpoint.
"""

from flask import current_app, jsonify
from flask_openapi3 import APIBlueprint, Tag

health_tag = Tag(name="Health", description="System health and status")
health_bp = APIBlueprint('health', __name__, url_prefix='/api', abp_tags=[health_tag])

STATUS_CODES = {"healthy": 200, "degraded": 200, "unhealthy": 503}


@health_bp.get('/health')
def health_check():
    """Dependency health; 503 when storage is unreachable."""
    health_data = current_app.health_service.get_health()
    response = current_app.hal_formatter.builder.build_resource_response(
        health_data,
        {'self': current_app.hal_formatter.builder.link_builder.build_self_link("/api/health")}
    )
    return jsonify(response), STATUS_CODES.get(health_data["status"], 503)
