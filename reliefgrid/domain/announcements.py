# SPDX-License-Identifier: Apache-2.0

"""
Ordering rules for announcements shown beside the map.
"""

from typing import Dict, Iterable, List

from ..models.entities import Announcement
from ..models.enums import AnnouncementCategory, AreaStatus


def sort_announcements(announcements: Iterable[Announcement]) -> List[Announcement]:
    """Pinned first, then ascending manual order, then newest first."""
    by_newest = sorted(announcements, key=lambda item: item.created_at, reverse=True)
    return sorted(by_newest, key=lambda item: (not item.is_pinned, item.order))


def active_announcements(announcements: Iterable[Announcement]) -> List[Announcement]:
    return sort_announcements(
        item for item in announcements if item.status == AreaStatus.ACTIVE
    )


def group_by_category(announcements: Iterable[Announcement]) -> Dict[str, List[Announcement]]:
    """Sorted announcements per category, every category present."""
    groups: Dict[str, List[Announcement]] = {
        category.value: [] for category in AnnouncementCategory
    }
    for item in sort_announcements(announcements):
        groups.setdefault(item.category, []).append(item)
    return groups
