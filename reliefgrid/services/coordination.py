# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Coordination service: the single entry point for grid resource operations.

The service composes the domain modules over a repository. Counters and
supply lines only change through the workflow and reconciliation operations
here (or a full administrative grid edit).
"""

import logging
from typing import Any, Dict, List, NamedTuple, Optional

from opentelemetry import trace

from ..domain import access, grid_import
from ..domain.announcements import active_announcements, sort_announcements
from ..domain.errors import (
    DuplicateCode,
    InvalidTransition,
    NotFound,
    ValidationError,
)
from ..domain.geo import area_bounds, bounds_match, grid_bounds
from ..domain.reconciliation import merge_supply_request, unfulfilled_supplies
from ..domain.urgency import (
    donation_statistics,
    grid_statistics,
    rank_by_need,
    registration_statistics,
    shortage_ratio,
    urgency_bucket,
    urgent_grids,
)
from ..domain.workflow import plan_donation_transition, plan_volunteer_transition
from ..models.base import BaseEntity, utcnow
from ..models.entities import (
    Actor,
    Announcement,
    DisasterArea,
    Grid,
    GridDiscussion,
    SupplyDonation,
    VolunteerRegistration,
)
from ..models.enums import ReceiptPolicy
from ..models.requests import (
    CreateAnnouncementRequest,
    CreateAreaRequest,
    CreateGridRequest,
    DonationFilters,
    GridFilters,
    PledgeDonationRequest,
    PostDiscussionRequest,
    RegisterVolunteerRequest,
    RegistrationFilters,
    SupplyItemRequest,
    UpdateAnnouncementRequest,
    UpdateAreaRequest,
    UpdateGridRequest,
)
from ..models.responses import (
    AreaDeleteResult,
    CascadeDeleteResult,
    ImportRowError,
    ImportSummary,
    UnfulfilledSupply,
    UrgentGridEntry,
)
from .repository import (
    ANNOUNCEMENTS,
    AREAS,
    DISCUSSIONS,
    DONATIONS,
    GRIDS,
    REGISTRATIONS,
    Repository,
    ensure_line_exists,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

# Administrative corrections only an admin may send in a grid edit
CORRECTION_FIELDS = ("volunteer_registered", "supplies_needed")


class VisibleRecord(NamedTuple):
    """A listed record together with the caller's contact visibility."""
    record: BaseEntity
    can_view_contact: bool


class CoordinationService:
    """Grid resource coordination over a repository."""

    def __init__(self, repository: Repository,
                 receipt_policy: ReceiptPolicy = ReceiptPolicy.CREATION,
                 throttle=None):
        self.repository = repository
        self.receipt_policy = ReceiptPolicy(receipt_policy)
        self.throttle = throttle
        logger.info(
            "Coordination service initialized",
            extra={
                "repository": type(repository).__name__,
                "receipt_policy": self.receipt_policy.value,
                "throttle_enabled": throttle is not None
            }
        )

    # Lookups

    def _require(self, collection: str, entity_id: str, label: str):
        entity = self.repository.get(collection, entity_id)
        if entity is None:
            raise NotFound(label, entity_id)
        return entity

    def _require_grid(self, grid_id: str) -> Grid:
        return self._require(GRIDS, grid_id, "Grid")

    def lookup_grid(self, grid_id: str) -> Optional[Grid]:
        """Unredacted grid for permission checks; None when it no longer exists."""
        return self.repository.get(GRIDS, grid_id)

    @staticmethod
    def _stamp(actor: Actor) -> Dict[str, Any]:
        return {"updated_at": utcnow(), "updated_by": actor.id}

    # Disaster areas

    def create_area(self, request: CreateAreaRequest, actor: Actor) -> DisasterArea:
        """Create a disaster area, deriving bounds unless supplied."""
        access.ensure_authenticated(actor)
        with tracer.start_as_current_span("coordination.create_area") as span:
            data = request.model_dump()
            if data.get("bounds") is None:
                data["bounds"] = area_bounds(request.center_lat, request.center_lng)
            area = DisasterArea(**data, created_by=actor.id, updated_by=actor.id)
            self.repository.insert(AREAS, area)
            span.set_attribute("area.id", area.id)

        logger.info("Disaster area created", extra={"area_id": area.id, "actor_id": actor.id})
        return area

    def get_area(self, area_id: str) -> DisasterArea:
        return self._require(AREAS, area_id, "DisasterArea")

    def list_areas(self, status: Optional[str] = None) -> List[DisasterArea]:
        return self.repository.find(AREAS, {"status": status} if status else None)

    def update_area(self, area_id: str, request: UpdateAreaRequest, actor: Actor) -> DisasterArea:
        """Edit an area. Moving its center re-derives bounds unless bounds are sent."""
        access.ensure_authenticated(actor)
        area = self.get_area(area_id)
        changes = request.changes()

        if ("center_lat" in changes or "center_lng" in changes) and "bounds" not in changes:
            lat = changes.get("center_lat", area.center_lat)
            lng = changes.get("center_lng", area.center_lng)
            changes["bounds"] = area_bounds(lat, lng).model_dump()

        changes.update(self._stamp(actor))
        updated = self.repository.update(AREAS, area_id, changes)
        if updated is None:
            raise NotFound("DisasterArea", area_id)

        logger.info("Disaster area updated",
                    extra={"area_id": area_id, "fields": sorted(request.changes())})
        return updated

    def delete_area(self, area_id: str, actor: Actor) -> AreaDeleteResult:
        """
        Delete an area without touching its grids.

        The result reports how many grids still point at the removed area.
        """
        access.ensure_admin(actor)
        self.get_area(area_id)
        self.repository.delete(AREAS, area_id)
        orphaned = self.repository.count(GRIDS, {"disaster_area_id": area_id})

        if orphaned:
            logger.warning("Disaster area deleted with remaining grids",
                           extra={"area_id": area_id, "orphaned_grids": orphaned})
        else:
            logger.info("Disaster area deleted", extra={"area_id": area_id})
        return AreaDeleteResult(area_id=area_id, orphaned_grids=orphaned)

    # Grids

    def create_grid(self, request: CreateGridRequest, actor: Actor,
                    client_id: Optional[str] = None) -> Grid:
        """
        Create a grid with a case-insensitively unique code.

        Non-admin creations pass through the submission throttle when a
        client identifier is known.

        Raises:
            DuplicateCode: if the code is taken
            NotFound: if the referenced area does not exist
            SubmissionThrottled: if the client is inside its cooldown
        """
        with tracer.start_as_current_span("coordination.create_grid") as span:
            span.set_attributes({"grid.code": request.code, "actor.role": actor.role})

            if request.disaster_area_id:
                self.get_area(request.disaster_area_id)
            if self.repository.find_grid_by_code(request.code) is not None:
                raise DuplicateCode(request.code)

            throttled = self.throttle is not None and client_id and not actor.is_admin
            if throttled:
                self.throttle.check(client_id)

            data = request.model_dump(exclude={"supplies_needed"})
            if data.get("bounds") is None:
                data["bounds"] = grid_bounds(request.center_lat, request.center_lng)
            try:
                grid = Grid(**data, created_by=actor.id, updated_by=actor.id)
                grid.supplies_needed = merge_supply_request([], request.supplies_needed)
                self.repository.insert(GRIDS, grid)
            except Exception:
                if throttled:
                    self.throttle.release(client_id)
                raise
            span.set_attribute("grid.id", grid.id)

        logger.info(
            "Grid created",
            extra={"grid_id": grid.id, "grid_code": grid.code, "actor_id": actor.id}
        )
        return grid

    def get_grid(self, grid_id: str, actor: Actor) -> Grid:
        """Fetch a grid with contact info redacted for the caller."""
        return access.redact_grid(self._require_grid(grid_id), actor)

    def list_grids(self, filters: Optional[GridFilters], actor: Actor) -> List[VisibleRecord]:
        query = filters.model_dump(mode="json", exclude_none=True) if filters else None
        return [
            VisibleRecord(access.redact_grid(grid, actor), access.can_view_contact(actor, grid))
            for grid in self.repository.find(GRIDS, query)
        ]

    def update_grid(self, grid_id: str, request: UpdateGridRequest, actor: Actor) -> Grid:
        """
        Edit a grid.

        Coordinators may edit descriptive fields. Counter and supply-line
        corrections are administrative and require an admin.
        """
        grid = self._require_grid(grid_id)
        changes = request.changes()

        if any(field in changes for field in CORRECTION_FIELDS):
            access.ensure_admin(actor)
        else:
            access.ensure_coordinator(actor, grid)

        if "code" in changes:
            existing = self.repository.find_grid_by_code(changes["code"])
            if existing is not None and existing.id != grid_id:
                raise DuplicateCode(changes["code"])
        if changes.get("disaster_area_id"):
            self.get_area(changes["disaster_area_id"])
        if "center_lat" in changes or "center_lng" in changes:
            lat = changes.get("center_lat", grid.center_lat)
            lng = changes.get("center_lng", grid.center_lng)
            changes["bounds"] = grid_bounds(lat, lng).model_dump()

        changes.update(self._stamp(actor))
        with tracer.start_as_current_span("coordination.update_grid") as span:
            span.set_attributes({"grid.id": grid_id, "grid.fields": sorted(request.changes())})
            updated = self.repository.update(GRIDS, grid_id, changes)
        if updated is None:
            raise NotFound("Grid", grid_id)

        logger.info("Grid updated", extra={"grid_id": grid_id, "actor_id": actor.id})
        return access.redact_grid(updated, actor)

    def relocate_grid(self, grid_id: str, center_lat: float, center_lng: float,
                      actor: Actor) -> Grid:
        """Move a grid's center; bounds always follow."""
        grid = self._require_grid(grid_id)
        access.ensure_coordinator(actor, grid)

        changes = {
            "center_lat": center_lat,
            "center_lng": center_lng,
            "bounds": grid_bounds(center_lat, center_lng).model_dump(),
        }
        changes.update(self._stamp(actor))
        updated = self.repository.update(GRIDS, grid_id, changes)
        if updated is None:
            raise NotFound("Grid", grid_id)

        logger.info("Grid relocated",
                    extra={"grid_id": grid_id, "center_lat": center_lat, "center_lng": center_lng})
        return access.redact_grid(updated, actor)

    def delete_grid(self, grid_id: str, actor: Actor) -> CascadeDeleteResult:
        """Remove a grid's registrations, donations and discussions, then the grid."""
        access.ensure_admin(actor)
        self._require_grid(grid_id)

        with tracer.start_as_current_span("coordination.delete_grid") as span:
            removed = self.repository.delete_grid_cascade(grid_id)
            if removed is None:
                raise NotFound("Grid", grid_id)
            span.set_attributes({f"removed.{name}": count for name, count in removed.items()})

        result = CascadeDeleteResult(
            grid_id=grid_id,
            registrations=removed[REGISTRATIONS],
            donations=removed[DONATIONS],
            discussions=removed[DISCUSSIONS]
        )
        logger.info("Grid deleted", extra=result.model_dump())
        return result

    def repair_grid_bounds(self, actor: Actor) -> int:
        """Re-derive every grid rectangle that is missing or stale."""
        access.ensure_admin(actor)
        repaired = 0
        for grid in self.repository.find(GRIDS):
            expected = grid_bounds(grid.center_lat, grid.center_lng)
            if bounds_match(grid.bounds, expected):
                continue
            changes = {"bounds": expected.model_dump()}
            changes.update(self._stamp(actor))
            if self.repository.update(GRIDS, grid.id, changes) is not None:
                repaired += 1

        logger.info("Grid bounds repaired", extra={"repaired": repaired})
        return repaired

    # Quantity reconciliation

    def request_supplies(self, grid_id: str, items: List[SupplyItemRequest], actor: Actor) -> Grid:
        """Add demand to a grid's supply list."""
        grid = self._require_grid(grid_id)
        access.ensure_coordinator(actor, grid)
        if not items:
            raise ValidationError("At least one supply item is required")

        with tracer.start_as_current_span("coordination.request_supplies") as span:
            span.set_attributes({"grid.id": grid_id, "supplies.count": len(items)})
            updated = self.repository.merge_supplies(grid_id, items, actor.id)
        if updated is None:
            raise NotFound("Grid", grid_id)

        logger.info("Supplies requested",
                    extra={"grid_id": grid_id, "items": [item.name for item in items]})
        return access.redact_grid(updated, actor)

    def record_donation(self, grid_id: str, supply_name: str, quantity: float,
                        actor: Actor) -> Grid:
        """
        Add a receipt directly to a supply line.

        Raises:
            UnknownSupplyLine: if the grid has no line with that name
        """
        grid = self._require_grid(grid_id)
        access.ensure_coordinator(actor, grid)
        if quantity <= 0:
            raise ValidationError("Received quantity must be positive")

        with tracer.start_as_current_span("coordination.record_donation") as span:
            span.set_attributes({"grid.id": grid_id, "supply.name": supply_name, "supply.quantity": quantity})
            updated = self.repository.add_received(grid_id, supply_name, quantity, actor.id)
        if updated is None:
            raise NotFound("Grid", grid_id)

        logger.info("Donation receipt recorded",
                    extra={"grid_id": grid_id, "supply_name": supply_name, "quantity": quantity})
        return access.redact_grid(updated, actor)

    # Volunteer registrations

    def register_volunteer(self, request: RegisterVolunteerRequest, actor: Actor) -> VolunteerRegistration:
        grid = self._require_grid(request.grid_id)
        registration = VolunteerRegistration(
            **request.model_dump(), created_by=actor.id, updated_by=actor.id
        )
        self.repository.insert_for_grid(REGISTRATIONS, registration)

        logger.info("Volunteer registered",
                    extra={"registration_id": registration.id, "grid_id": grid.id})
        return access.redact_registration(registration, grid, actor)

    def get_registration(self, registration_id: str, actor: Actor) -> VolunteerRegistration:
        registration = self._require(REGISTRATIONS, registration_id, "VolunteerRegistration")
        grid = self.repository.get(GRIDS, registration.grid_id)
        return access.redact_registration(registration, grid, actor)

    def list_registrations(self, filters: Optional[RegistrationFilters], actor: Actor) -> List[VisibleRecord]:
        query = filters.model_dump(mode="json", exclude_none=True) if filters else None
        return self._visible(self.repository.find(REGISTRATIONS, query), actor,
                             access.redact_registration)

    def advance_volunteer(self, registration_id: str, new_status: str, actor: Actor) -> VolunteerRegistration:
        """
        Move a registration along its workflow.

        pending->confirmed adds one to the grid's volunteer_registered and
        confirmed->cancelled takes one away. A concurrent change that already
        moved the registration surfaces as InvalidTransition.
        """
        registration = self._require(REGISTRATIONS, registration_id, "VolunteerRegistration")
        grid = self._require_grid(registration.grid_id)
        access.ensure_coordinator(actor, grid)

        plan = plan_volunteer_transition(registration.status, new_status)

        with tracer.start_as_current_span("coordination.advance_volunteer") as span:
            span.set_attributes({
                "registration.id": registration_id,
                "registration.from": plan.current_status.value,
                "registration.to": plan.new_status.value,
                "grid.registered_delta": plan.registered_delta,
            })
            updated = self.repository.transition_registration(
                registration_id, plan.current_status.value, plan.new_status.value,
                plan.registered_delta, actor.id
            )

        if updated is None:
            latest = self.repository.get(REGISTRATIONS, registration_id)
            if latest is None:
                raise NotFound("VolunteerRegistration", registration_id)
            raise InvalidTransition("registration", latest.status, plan.new_status.value)

        logger.info(
            "Volunteer status advanced",
            extra={
                "registration_id": registration_id,
                "grid_id": grid.id,
                "from_status": plan.current_status.value,
                "to_status": plan.new_status.value
            }
        )
        return access.redact_registration(updated, grid, actor)

    def delete_registration(self, registration_id: str, actor: Actor) -> None:
        access.ensure_admin(actor)
        if not self.repository.delete(REGISTRATIONS, registration_id):
            raise NotFound("VolunteerRegistration", registration_id)
        logger.info("Volunteer registration deleted", extra={"registration_id": registration_id})

    # Supply donations

    def pledge_donation(self, request: PledgeDonationRequest, actor: Actor) -> SupplyDonation:
        """
        Record a donor's pledge against an existing supply line.

        Under the creation receipt policy the quantity is added to the line
        as part of the same operation.

        Raises:
            UnknownSupplyLine: if the grid has no line with that name
        """
        grid = self._require_grid(request.grid_id)
        ensure_line_exists(grid, request.supply_name)

        donation = SupplyDonation(**request.model_dump(), created_by=actor.id, updated_by=actor.id)
        apply_receipt = self.receipt_policy == ReceiptPolicy.CREATION

        with tracer.start_as_current_span("coordination.pledge_donation") as span:
            span.set_attributes({
                "grid.id": grid.id,
                "supply.name": donation.supply_name,
                "donation.apply_receipt": apply_receipt,
            })
            donation = self.repository.insert_donation(donation, apply_receipt)

        logger.info(
            "Donation pledged",
            extra={
                "donation_id": donation.id,
                "grid_id": grid.id,
                "supply_name": donation.supply_name,
                "quantity": donation.quantity,
                "receipt_applied": donation.receipt_applied
            }
        )
        return access.redact_donation(donation, grid, actor)

    def get_donation(self, donation_id: str, actor: Actor) -> SupplyDonation:
        donation = self._require(DONATIONS, donation_id, "SupplyDonation")
        grid = self.repository.get(GRIDS, donation.grid_id)
        return access.redact_donation(donation, grid, actor)

    def list_donations(self, filters: Optional[DonationFilters], actor: Actor) -> List[VisibleRecord]:
        query = filters.model_dump(mode="json", exclude_none=True) if filters else None
        return self._visible(self.repository.find(DONATIONS, query), actor, access.redact_donation)

    def advance_donation(self, donation_id: str, new_status: str, actor: Actor) -> SupplyDonation:
        """
        Move a donation along its workflow.

        Whether the transition records the receipt depends on the configured
        receipt policy. Cancelling never takes a recorded receipt back.
        """
        donation = self._require(DONATIONS, donation_id, "SupplyDonation")
        grid = self._require_grid(donation.grid_id)
        access.ensure_coordinator(actor, grid)

        plan = plan_donation_transition(
            donation.status, new_status, self.receipt_policy, donation.receipt_applied
        )

        with tracer.start_as_current_span("coordination.advance_donation") as span:
            span.set_attributes({
                "donation.id": donation_id,
                "donation.from": plan.current_status.value,
                "donation.to": plan.new_status.value,
                "donation.apply_receipt": plan.apply_receipt,
            })
            updated = self.repository.transition_donation(
                donation_id, plan.current_status.value, plan.new_status.value,
                plan.apply_receipt, actor.id
            )

        if updated is None:
            latest = self.repository.get(DONATIONS, donation_id)
            if latest is None:
                raise NotFound("SupplyDonation", donation_id)
            raise InvalidTransition("donation", latest.status, plan.new_status.value)

        logger.info(
            "Donation status advanced",
            extra={
                "donation_id": donation_id,
                "grid_id": grid.id,
                "from_status": plan.current_status.value,
                "to_status": plan.new_status.value,
                "receipt_applied": plan.apply_receipt
            }
        )
        return access.redact_donation(updated, grid, actor)

    def delete_donation(self, donation_id: str, actor: Actor) -> None:
        access.ensure_admin(actor)
        if not self.repository.delete(DONATIONS, donation_id):
            raise NotFound("SupplyDonation", donation_id)
        logger.info("Supply donation deleted", extra={"donation_id": donation_id})

    def _visible(self, records, actor: Actor, redactor) -> List[VisibleRecord]:
        grids: Dict[str, Optional[Grid]] = {}
        visible = []
        for record in records:
            if record.grid_id not in grids:
                grids[record.grid_id] = self.repository.get(GRIDS, record.grid_id)
            grid = grids[record.grid_id]
            visible.append(VisibleRecord(
                redactor(record, grid, actor), access.can_view_contact(actor, grid)
            ))
        return visible

    # Discussions

    def post_discussion(self, grid_id: str, request: PostDiscussionRequest, actor: Actor) -> GridDiscussion:
        """Append a message; the author's role is captured at post time."""
        self._require_grid(grid_id)
        discussion = GridDiscussion(
            grid_id=grid_id,
            author_name=request.author_name or actor.name or "Anonymous",
            author_role=actor.role,
            message=request.message,
            created_by=actor.id,
            updated_by=actor.id
        )
        self.repository.insert_for_grid(DISCUSSIONS, discussion)
        logger.info("Discussion posted", extra={"grid_id": grid_id, "discussion_id": discussion.id})
        return discussion

    def list_discussions(self, grid_id: str) -> List[GridDiscussion]:
        """Messages of a grid, newest first."""
        self._require_grid(grid_id)
        return list(reversed(self.repository.find(DISCUSSIONS, {"grid_id": grid_id})))

    # Announcements

    def create_announcement(self, request: CreateAnnouncementRequest, actor: Actor) -> Announcement:
        access.ensure_admin(actor)
        announcement = Announcement(**request.model_dump(), created_by=actor.id, updated_by=actor.id)
        self.repository.insert(ANNOUNCEMENTS, announcement)
        logger.info("Announcement created", extra={"announcement_id": announcement.id})
        return announcement

    def get_announcement(self, announcement_id: str) -> Announcement:
        return self._require(ANNOUNCEMENTS, announcement_id, "Announcement")

    def list_announcements(self, include_archived: bool = False) -> List[Announcement]:
        """Pinned first, then by manual order."""
        announcements = self.repository.find(ANNOUNCEMENTS)
        if include_archived:
            return sort_announcements(announcements)
        return active_announcements(announcements)

    def update_announcement(self, announcement_id: str, request: UpdateAnnouncementRequest,
                            actor: Actor) -> Announcement:
        access.ensure_admin(actor)
        changes = request.changes()
        changes.update(self._stamp(actor))
        updated = self.repository.update(ANNOUNCEMENTS, announcement_id, changes)
        if updated is None:
            raise NotFound("Announcement", announcement_id)
        logger.info("Announcement updated", extra={"announcement_id": announcement_id})
        return updated

    def delete_announcement(self, announcement_id: str, actor: Actor) -> None:
        access.ensure_admin(actor)
        if not self.repository.delete(ANNOUNCEMENTS, announcement_id):
            raise NotFound("Announcement", announcement_id)
        logger.info("Announcement deleted", extra={"announcement_id": announcement_id})

    # Bulk import/export

    def import_grids(self, csv_content: str, actor: Actor) -> ImportSummary:
        """
        Import grids from CSV, one outcome per data row.

        Rows are processed in order and accepted rows stay persisted even if
        later rows fail. An unreadable header fails the whole feed.
        """
        access.ensure_admin(actor)

        with tracer.start_as_current_span("coordination.import_grids") as span:
            try:
                rows = grid_import.read_csv(csv_content)
            except ValidationError as e:
                logger.warning("Grid import rejected", extra={"error": e.message})
                return ImportSummary(
                    success=False,
                    errors=[ImportRowError(row=0, error=e.message, error_type=type(e).__name__)]
                )

            summary = ImportSummary(success=True)
            for row_number, row in enumerate(rows, start=1):
                try:
                    grid = self._import_row(row, row_number, actor)
                except (ValidationError, DuplicateCode) as e:
                    summary.errors.append(ImportRowError(
                        row=row_number,
                        error=e.message,
                        code=row.get("code") or None,
                        error_type=type(e).__name__
                    ))
                    continue
                summary.created += 1
                summary.created_ids.append(grid.id)

            span.set_attributes({
                "import.rows": len(rows),
                "import.created": summary.created,
                "import.errors": len(summary.errors),
            })

        logger.info(summary.message,
                    extra={"created": summary.created, "rejected": len(summary.errors)})
        return summary

    def _import_row(self, row: Dict[str, str], row_number: int, actor: Actor) -> Grid:
        grid = grid_import.parse_grid_row(row, row_number, created_by=actor.id)
        if self.repository.find_grid_by_code(grid.code) is not None:
            raise DuplicateCode(grid.code, row=row_number)
        if grid.disaster_area_id and self.repository.get(AREAS, grid.disaster_area_id) is None:
            raise ValidationError(f"Unknown disaster_area_id: {grid.disaster_area_id}", row=row_number)
        try:
            self.repository.insert(GRIDS, grid)
        except DuplicateCode:
            raise DuplicateCode(grid.code, row=row_number)
        return grid

    def export_grids(self, actor: Actor) -> str:
        """All grids as CSV in the import column layout."""
        access.ensure_admin(actor)
        grids = self.repository.find(GRIDS)
        logger.info("Grids exported", extra={"count": len(grids)})
        return grid_import.export_csv(grids)

    @staticmethod
    def grid_template() -> str:
        return grid_import.template_csv()

    # Derived feeds

    def unfulfilled_supplies(self) -> List[UnfulfilledSupply]:
        return unfulfilled_supplies(self.repository.find(GRIDS))

    def urgent_grids(self) -> List[UrgentGridEntry]:
        return urgent_grids(self.repository.find(GRIDS))

    def grids_by_need(self, filters: Optional[GridFilters], actor: Actor) -> List[Grid]:
        """Filtered grids ordered by descending manpower shortage."""
        query = filters.model_dump(mode="json", exclude_none=True) if filters else None
        return [access.redact_grid(grid, actor) for grid in rank_by_need(self.repository.find(GRIDS, query))]

    def grid_urgency(self, grid_id: str) -> Dict[str, Any]:
        grid = self._require_grid(grid_id)
        return {"shortage": shortage_ratio(grid), "bucket": urgency_bucket(grid).value}

    def statistics(self) -> Dict[str, Any]:
        """Dashboard numbers across grids, registrations and donations."""
        return {
            "grids": grid_statistics(self.repository.find(GRIDS)).model_dump(),
            "registrations": registration_statistics(self.repository.find(REGISTRATIONS)),
            "donations": donation_statistics(self.repository.find(DONATIONS)),
        }
