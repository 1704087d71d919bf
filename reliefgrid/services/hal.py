# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
HAL (Hypertext Application Language) response formatting utilities.
Implements HATEOAS Level-3 API responses with conditional affordance links.
"""

from typing import Dict, List, Any, Optional
from urllib.parse import urljoin

from ..domain.access import can_view_contact
from ..domain.reconciliation import fulfillment_ratio, is_fulfilled, remaining
from ..domain.urgency import shortage_ratio, urgency_bucket
from ..domain.workflow import DONATION_TRANSITIONS, VOLUNTEER_TRANSITIONS
from ..models.entities import (
    Actor, Announcement, DisasterArea, Grid, GridDiscussion, SupplyDonation, VolunteerRegistration
)
from ..models.enums import DonationStatus, RegistrationStatus
from ..models.responses import HalLink

PROBLEM_BASE_URL = "https://api.reliefgrid.org/problems"


class HalLinkBuilder:
    """Builder for HAL links with proper URL construction."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/') + '/'

    def build_link(
        self,
        path: str,
        method: str = "GET",
        content_type: Optional[str] = None,
        title: Optional[str] = None,
        templated: bool = False
    ) -> HalLink:
        """Build a HAL link with proper URL construction."""
        href = urljoin(self.base_url, path.lstrip('/'))

        return HalLink(
            href=href,
            method=method,
            type=content_type,
            title=title,
            templated=templated or None
        )

    def build_self_link(self, resource_path: str) -> HalLink:
        """Build self link for a resource."""
        return self.build_link(resource_path, title="Self")

    def build_collection_link(self, collection_path: str) -> HalLink:
        """Build link to parent collection."""
        return self.build_link(collection_path, title="Collection")

    def build_action_link(
        self,
        resource_path: str,
        action: str,
        method: str = "POST",
        title: Optional[str] = None
    ) -> HalLink:
        """Build action link for a resource."""
        action_path = f"{resource_path}/{action}"
        return self.build_link(
            action_path,
            method=method,
            content_type="application/json",
            title=title or action.title()
        )


class AffordanceLinkBuilder:
    """Builder for conditional affordance links based on role and state."""

    def __init__(self, base_url: str):
        self.link_builder = HalLinkBuilder(base_url)

    def build_grid_affordances(self, grid: Grid, actor: Actor) -> Dict[str, HalLink]:
        """Build conditional affordance links for grids."""
        links = {}
        base_path = f"/api/grids/{grid.id}"

        links['self'] = self.link_builder.build_self_link(base_path)
        links['collection'] = self.link_builder.build_collection_link("/api/grids")
        links['discussions'] = self.link_builder.build_link(
            f"{base_path}/discussions", title="Grid discussions"
        )
        links['register'] = self.link_builder.build_link(
            "/api/registrations", method="POST", content_type="application/json",
            title="Register as volunteer"
        )
        if grid.supplies_needed:
            links['donate'] = self.link_builder.build_link(
                "/api/donations", method="POST", content_type="application/json",
                title="Pledge a donation"
            )
        if grid.disaster_area_id:
            links['area'] = self.link_builder.build_link(
                f"/api/areas/{grid.disaster_area_id}", title="Disaster area"
            )

        if actor.is_admin or actor.manages(grid):
            links['edit'] = self.link_builder.build_link(
                base_path, method="PUT", content_type="application/json", title="Edit grid"
            )
            links['relocate'] = self.link_builder.build_action_link(
                base_path, "relocate", title="Relocate grid"
            )
            links['request_supplies'] = self.link_builder.build_action_link(
                base_path, "supplies", title="Request supplies"
            )

        if actor.is_admin:
            links['delete'] = self.link_builder.build_link(
                base_path, method="DELETE", title="Delete grid"
            )

        return links

    def build_registration_affordances(self, registration: VolunteerRegistration,
                                       grid: Optional[Grid], actor: Actor) -> Dict[str, HalLink]:
        """Build conditional affordance links for volunteer registrations."""
        links = {}
        base_path = f"/api/registrations/{registration.id}"

        links['self'] = self.link_builder.build_self_link(base_path)
        links['collection'] = self.link_builder.build_collection_link("/api/registrations")
        links['grid'] = self.link_builder.build_link(f"/api/grids/{registration.grid_id}", title="Grid")

        coordinates = grid is not None and (actor.is_admin or actor.manages(grid))
        if coordinates:
            for status in sorted(VOLUNTEER_TRANSITIONS[RegistrationStatus(registration.status)]):
                links[status.value] = self.link_builder.build_action_link(
                    base_path, "status", method="PUT", title=f"Mark {status.value}"
                )

        if actor.is_admin:
            links['delete'] = self.link_builder.build_link(
                base_path, method="DELETE", title="Delete registration"
            )

        return links

    def build_donation_affordances(self, donation: SupplyDonation,
                                   grid: Optional[Grid], actor: Actor) -> Dict[str, HalLink]:
        """Build conditional affordance links for supply donations."""
        links = {}
        base_path = f"/api/donations/{donation.id}"

        links['self'] = self.link_builder.build_self_link(base_path)
        links['collection'] = self.link_builder.build_collection_link("/api/donations")
        links['grid'] = self.link_builder.build_link(f"/api/grids/{donation.grid_id}", title="Grid")

        coordinates = grid is not None and (actor.is_admin or actor.manages(grid))
        if coordinates:
            for status in sorted(DONATION_TRANSITIONS[DonationStatus(donation.status)]):
                links[status.value] = self.link_builder.build_action_link(
                    base_path, "status", method="PUT", title=f"Mark {status.value}"
                )

        if actor.is_admin:
            links['delete'] = self.link_builder.build_link(
                base_path, method="DELETE", title="Delete donation"
            )

        return links

    def build_area_affordances(self, area: DisasterArea, actor: Actor) -> Dict[str, HalLink]:
        links = {}
        base_path = f"/api/areas/{area.id}"

        links['self'] = self.link_builder.build_self_link(base_path)
        links['collection'] = self.link_builder.build_collection_link("/api/areas")
        links['grids'] = self.link_builder.build_link(
            f"/api/grids?disaster_area_id={area.id}", title="Area grids"
        )
        if not actor.is_guest:
            links['edit'] = self.link_builder.build_link(
                base_path, method="PUT", content_type="application/json", title="Edit area"
            )
        if actor.is_admin:
            links['delete'] = self.link_builder.build_link(
                base_path, method="DELETE", title="Delete area"
            )
        return links

    def build_announcement_affordances(self, announcement: Announcement,
                                       actor: Actor) -> Dict[str, HalLink]:
        links = {}
        base_path = f"/api/announcements/{announcement.id}"

        links['self'] = self.link_builder.build_self_link(base_path)
        links['collection'] = self.link_builder.build_collection_link("/api/announcements")
        if actor.is_admin:
            links['edit'] = self.link_builder.build_link(
                base_path, method="PUT", content_type="application/json", title="Edit announcement"
            )
            links['delete'] = self.link_builder.build_link(
                base_path, method="DELETE", title="Delete announcement"
            )
        return links


class HalResponseBuilder:
    """Main HAL response builder with comprehensive formatting capabilities."""

    def __init__(self, base_url: str):
        self.base_url = base_url.rstrip('/')
        self.link_builder = HalLinkBuilder(base_url)
        self.affordance_builder = AffordanceLinkBuilder(base_url)

    @staticmethod
    def build_resource_response(data: Dict[str, Any], links: Dict[str, HalLink]) -> Dict[str, Any]:
        """Attach links to a resource representation."""
        response = dict(data)
        response['_links'] = {
            rel: link.model_dump(exclude_none=True) for rel, link in links.items()
        }
        return response

    def build_collection_response(
        self,
        items: List[Dict[str, Any]],
        collection_path: str,
        extra: Optional[Dict[str, Any]] = None
    ) -> Dict[str, Any]:
        """Build a HAL collection response."""
        response = {
            'total': len(items),
            '_links': {
                'self': self.link_builder.build_self_link(collection_path).model_dump(exclude_none=True)
            },
            '_embedded': {
                'items': items
            }
        }
        if extra:
            response.update(extra)
        return response

    def build_error_response(
        self,
        error_type: str,
        title: str,
        status: int,
        detail: str,
        instance: str,
        validation_errors: Optional[List[Dict[str, Any]]] = None
    ) -> Dict[str, Any]:
        """Build RFC 7807 compliant error response with HAL links."""
        error_response = {
            'type': f"{PROBLEM_BASE_URL}/{error_type}",
            'title': title,
            'status': status,
            'detail': detail,
            'instance': instance
        }

        if validation_errors:
            error_response['errors'] = validation_errors

        links = {
            'help': self.link_builder.build_link(
                f"/docs/errors#{error_type}",
                title="Error documentation"
            )
        }

        if error_type == "validation-error":
            links['schema'] = self.link_builder.build_link(
                "/openapi/openapi.json",
                title="API schema"
            )

        error_response['_links'] = {
            rel: link.model_dump(exclude_none=True) for rel, link in links.items()
        }
        return error_response


class HalFormatter:
    """High-level HAL formatter with convenience methods."""

    def __init__(self, base_url: str):
        self.builder = HalResponseBuilder(base_url)

    @property
    def affordances(self) -> AffordanceLinkBuilder:
        return self.builder.affordance_builder

    def format_grid(self, grid: Grid, actor: Actor) -> Dict[str, Any]:
        """Format a grid with derived fulfillment and urgency figures."""
        data = grid.model_dump(mode="json")
        for line, rendered in zip(grid.supplies_needed, data['supplies_needed']):
            rendered['remaining'] = remaining(line)
            rendered['fulfillment_ratio'] = fulfillment_ratio(line)
            rendered['is_fulfilled'] = is_fulfilled(line)
        data['shortage'] = shortage_ratio(grid)
        data['urgency'] = urgency_bucket(grid).value
        data['can_view_contact'] = can_view_contact(actor, grid)
        return self.builder.build_resource_response(
            data, self.affordances.build_grid_affordances(grid, actor)
        )

    def format_registration(self, registration: VolunteerRegistration, grid: Optional[Grid],
                            actor: Actor) -> Dict[str, Any]:
        data = registration.model_dump(mode="json")
        data['can_view_contact'] = can_view_contact(actor, grid)
        return self.builder.build_resource_response(
            data, self.affordances.build_registration_affordances(registration, grid, actor)
        )

    def format_donation(self, donation: SupplyDonation, grid: Optional[Grid],
                        actor: Actor) -> Dict[str, Any]:
        data = donation.model_dump(mode="json")
        data['can_view_contact'] = can_view_contact(actor, grid)
        return self.builder.build_resource_response(
            data, self.affordances.build_donation_affordances(donation, grid, actor)
        )

    def format_area(self, area: DisasterArea, actor: Actor) -> Dict[str, Any]:
        return self.builder.build_resource_response(
            area.model_dump(mode="json"), self.affordances.build_area_affordances(area, actor)
        )

    def format_announcement(self, announcement: Announcement, actor: Actor) -> Dict[str, Any]:
        return self.builder.build_resource_response(
            announcement.model_dump(mode="json"),
            self.affordances.build_announcement_affordances(announcement, actor)
        )

    def format_discussion(self, discussion: GridDiscussion) -> Dict[str, Any]:
        links = {
            'grid': self.builder.link_builder.build_link(f"/api/grids/{discussion.grid_id}", title="Grid"),
            'collection': self.builder.link_builder.build_collection_link(
                f"/api/grids/{discussion.grid_id}/discussions"
            ),
        }
        return self.builder.build_resource_response(discussion.model_dump(mode="json"), links)

    def format_collection(self, items: List[Dict[str, Any]], collection_path: str,
                          extra: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        return self.builder.build_collection_response(items, collection_path, extra)

    def format_validation_error(
        self,
        detail: str,
        instance: str,
        validation_errors: List[Dict[str, Any]]
    ) -> Dict[str, Any]:
        """Format a validation error response."""
        return self.builder.build_error_response(
            "validation-error",
            "Validation Error",
            422,
            detail,
            instance,
            validation_errors
        )

    def format_server_error(
        self,
        detail: str,
        instance: str
    ) -> Dict[str, Any]:
        """Format a server error response."""
        return self.builder.build_error_response(
            "internal-server-error",
            "Internal Server Error",
            500,
            detail,
            instance
        )


# Convenience function for creating HAL formatter
def create_hal_formatter(base_url: str) -> HalFormatter:
    """Create a HAL formatter instance."""
    return HalFormatter(base_url)
