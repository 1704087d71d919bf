# SPDX-License-Identifier: Apache-2.0

"""
Announcement endpoints. Reads are public, writes are admin only.
"""

from flask import current_app, jsonify, request
from flask_openapi3 import APIBlueprint, Tag
from pydantic import BaseModel, Field
import logging

from ..domain.announcements import group_by_category
from ..middleware.auth import current_actor
from ..models.requests import CreateAnnouncementRequest, UpdateAnnouncementRequest
from ..utils.request import RequestParser

logger = logging.getLogger(__name__)

announcements_tag = Tag(name="Announcements", description="Public notices for volunteers and donors")
announcements_bp = APIBlueprint(
    'announcements',
    __name__,
    url_prefix='/api/announcements',
    abp_tags=[announcements_tag]
)


class AnnouncementPath(BaseModel):
    announcement_id: str = Field(..., description="Announcement ID")


@announcements_bp.get('')
def list_announcements():
    """
    List announcements, pinned first.

    ``include_archived=true`` also returns archived notices and
    ``grouped=true`` adds a per-category breakdown of the returned ids.
    """
    actor = current_actor()
    hal = current_app.hal_formatter
    announcements = current_app.coordination_service.list_announcements(
        include_archived=RequestParser.get_flag('include_archived')
    )
    items = [hal.format_announcement(announcement, actor) for announcement in announcements]

    extra = None
    if RequestParser.get_flag('grouped'):
        extra = {
            'categories': {
                category: [announcement.id for announcement in group]
                for category, group in group_by_category(announcements).items()
            }
        }
    return jsonify(hal.format_collection(items, request.full_path.rstrip('?'), extra))


@announcements_bp.post('')
def create_announcement():
    actor = current_actor()
    announcement_request = RequestParser.parse_body(CreateAnnouncementRequest)
    announcement = current_app.coordination_service.create_announcement(announcement_request, actor)
    return jsonify(current_app.hal_formatter.format_announcement(announcement, actor)), 201


@announcements_bp.get('/<announcement_id>')
def get_announcement(path: AnnouncementPath):
    announcement = current_app.coordination_service.get_announcement(path.announcement_id)
    return jsonify(current_app.hal_formatter.format_announcement(announcement, current_actor()))


@announcements_bp.put('/<announcement_id>')
def update_announcement(path: AnnouncementPath):
    actor = current_actor()
    changes = RequestParser.parse_body(UpdateAnnouncementRequest)
    announcement = current_app.coordination_service.update_announcement(path.announcement_id, changes, actor)
    return jsonify(current_app.hal_formatter.format_announcement(announcement, actor))


@announcements_bp.delete('/<announcement_id>')
def delete_announcement(path: AnnouncementPath):
    current_app.coordination_service.delete_announcement(path.announcement_id, current_actor())
    return '', 204
