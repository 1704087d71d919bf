# SPDX-License-Identifier: Apache-2.0

"""
Tests for announcement ordering.
"""

from datetime import datetime, timedelta, timezone

from reliefgrid.domain.announcements import (
    active_announcements,
    group_by_category,
    sort_announcements,
)
from reliefgrid.models.entities import Announcement

NOW = datetime(2025, 10, 1, 12, 0, tzinfo=timezone.utc)


def announcement(title, minutes_ago=0, **fields):
    return Announcement(
        title=title, content="...", created_at=NOW - timedelta(minutes=minutes_ago), **fields
    )


class TestSortAnnouncements:
    """Test display ordering."""

    def test_pinned_then_order_then_newest(self):
        items = [
            announcement("old", minutes_ago=30),
            announcement("pinned-late", is_pinned=True, order=5),
            announcement("new", minutes_ago=1),
            announcement("ordered-first", order=-1, minutes_ago=60),
            announcement("pinned-early", is_pinned=True, order=1),
        ]

        titles = [item.title for item in sort_announcements(items)]

        assert titles == ["pinned-early", "pinned-late", "ordered-first", "new", "old"]

    def test_archived_excluded_from_active(self):
        items = [announcement("live"), announcement("gone", status="archived")]
        assert [item.title for item in active_announcements(items)] == ["live"]


class TestGroupByCategory:
    """Test category grouping."""

    def test_every_category_present(self):
        groups = group_by_category([
            announcement("road closed", category="traffic"),
            announcement("boil water", category="safety"),
        ])

        assert set(groups) == {"safety", "medical", "traffic", "supply", "general"}
        assert [item.title for item in groups["traffic"]] == ["road closed"]
        assert groups["medical"] == []
