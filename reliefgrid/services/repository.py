# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Repository interface and the in-process store.

Counters and supply lines are only changed through the composite operations
declared here; each backend makes them atomic in its own way. The in-process
store serializes every mutation of one grid (and of the records hanging off
it) behind a per-grid lock.
"""

import logging
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from typing import Any, Dict, Iterable, Iterator, List, Optional, Type

from ..domain import reconciliation
from ..domain.errors import DuplicateCode, NotFound, UnknownSupplyLine
from ..domain.grid_import import normalize_code
from ..models.base import BaseEntity, utcnow
from ..models.entities import (
    Announcement,
    DisasterArea,
    Grid,
    GridDiscussion,
    SupplyDonation,
    VolunteerRegistration,
)
from ..models.requests import SupplyItemRequest

logger = logging.getLogger(__name__)

AREAS = "disaster_areas"
GRIDS = "grids"
REGISTRATIONS = "volunteer_registrations"
DONATIONS = "supply_donations"
DISCUSSIONS = "grid_discussions"
ANNOUNCEMENTS = "announcements"

ENTITY_TYPES: Dict[str, Type[BaseEntity]] = {
    AREAS: DisasterArea,
    GRIDS: Grid,
    REGISTRATIONS: VolunteerRegistration,
    DONATIONS: SupplyDonation,
    DISCUSSIONS: GridDiscussion,
    ANNOUNCEMENTS: Announcement,
}

# Records owned by a grid and removed with it
GRID_CHILDREN = (REGISTRATIONS, DONATIONS, DISCUSSIONS)


class Repository(ABC):
    """Storage contract used by the coordination service."""

    # Plain CRUD

    @abstractmethod
    def insert(self, collection: str, entity: BaseEntity) -> BaseEntity:
        """Persist a new entity. Grids raise DuplicateCode on a taken code."""

    @abstractmethod
    def get(self, collection: str, entity_id: str) -> Optional[BaseEntity]:
        """Fetch one entity, None when absent or the ID is malformed."""

    @abstractmethod
    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[BaseEntity]:
        """Equality-filtered listing in creation order."""

    @abstractmethod
    def update(self, collection: str, entity_id: str, changes: Dict[str, Any]) -> Optional[BaseEntity]:
        """Set fields on one entity and return the updated copy."""

    @abstractmethod
    def delete(self, collection: str, entity_id: str) -> bool:
        """Remove one entity."""

    @abstractmethod
    def delete_many(self, collection: str, filters: Dict[str, Any]) -> int:
        """Remove every matching entity, returning how many were removed."""

    @abstractmethod
    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        """Count matching entities."""

    @abstractmethod
    def find_grid_by_code(self, code: str) -> Optional[Grid]:
        """Case-insensitive lookup of a grid code."""

    @abstractmethod
    def insert_for_grid(self, collection: str, entity: BaseEntity) -> BaseEntity:
        """
        Persist a record owned by a grid while that grid still exists.

        Raises:
            NotFound: if the owning grid is gone
        """

    @abstractmethod
    def delete_grid_cascade(self, grid_id: str) -> Optional[Dict[str, int]]:
        """
        Remove a grid together with every record it owns.

        Returns the number of removed records per child collection, or None
        when the grid does not exist. No child inserted concurrently with the
        cascade outlives the grid.
        """

    # Composite operations, atomic per grid

    @abstractmethod
    def transition_registration(self, registration_id: str, expected_status: str,
                                new_status: str, registered_delta: int,
                                updated_by: Optional[str]) -> Optional[VolunteerRegistration]:
        """
        Compare-and-set a registration status and move the grid counter.

        Returns None when the registration is no longer in expected_status.
        The counter never drops below zero.
        """

    @abstractmethod
    def transition_donation(self, donation_id: str, expected_status: str, new_status: str,
                            apply_receipt: bool,
                            updated_by: Optional[str]) -> Optional[SupplyDonation]:
        """
        Compare-and-set a donation status, optionally recording its receipt.

        Returns None when the donation is no longer in expected_status.

        Raises:
            UnknownSupplyLine: if the receipt targets a missing line; the
                status is left untouched
        """

    @abstractmethod
    def insert_donation(self, donation: SupplyDonation, apply_receipt: bool) -> SupplyDonation:
        """
        Persist a donation and, when requested, record its receipt with it.

        Raises:
            UnknownSupplyLine: if the receipt targets a missing line
            NotFound: if the grid is gone
        """

    @abstractmethod
    def add_received(self, grid_id: str, supply_name: str, quantity: float,
                     updated_by: Optional[str]) -> Optional[Grid]:
        """
        Increment one supply line's received quantity.

        Returns None when the grid does not exist.

        Raises:
            UnknownSupplyLine: if the grid has no line with that name
        """

    @abstractmethod
    def merge_supplies(self, grid_id: str, items: Iterable[SupplyItemRequest],
                       updated_by: Optional[str]) -> Optional[Grid]:
        """Add demand to existing lines or append new ones."""

    @abstractmethod
    def health_check(self) -> Dict[str, Any]:
        """Backend health summary."""


class InMemoryRepository(Repository):
    """Thread-safe in-process store."""

    def __init__(self):
        self._collections: Dict[str, Dict[str, BaseEntity]] = {
            name: {} for name in ENTITY_TYPES
        }
        self._code_index: Dict[str, str] = {}
        self._store_lock = threading.RLock()
        self._grid_locks: Dict[str, threading.RLock] = {}
        logger.info("In-memory repository initialized")

    # Locking

    def _lock_for(self, grid_id: Optional[str]) -> threading.RLock:
        if grid_id is None:
            return self._store_lock
        with self._store_lock:
            lock = self._grid_locks.get(grid_id)
            if lock is None:
                lock = threading.RLock()
                self._grid_locks[grid_id] = lock
            return lock

    def _grid_scope(self, collection: str, entity: Optional[BaseEntity]) -> Optional[str]:
        """Grid whose lock guards mutations of this entity."""
        if entity is None:
            return None
        if collection == GRIDS:
            return entity.id
        return getattr(entity, "grid_id", None)

    @contextmanager
    def grid_lock(self, grid_id: Optional[str]) -> Iterator[None]:
        """Single-writer section for one grid."""
        with self._lock_for(grid_id):
            yield

    # Helpers

    def _table(self, collection: str) -> Dict[str, BaseEntity]:
        try:
            return self._collections[collection]
        except KeyError:
            raise ValueError(f"Unknown collection: {collection}")

    @staticmethod
    def _matches(entity: BaseEntity, filters: Optional[Dict[str, Any]]) -> bool:
        if not filters:
            return True
        return all(getattr(entity, field, None) == value for field, value in filters.items())

    def _claim_code(self, code: str, grid_id: str) -> None:
        key = normalize_code(code)
        with self._store_lock:
            owner = self._code_index.get(key)
            if owner is not None and owner != grid_id:
                raise DuplicateCode(code)
            self._code_index[key] = grid_id

    def _release_code(self, code: str, grid_id: str) -> None:
        key = normalize_code(code)
        with self._store_lock:
            if self._code_index.get(key) == grid_id:
                del self._code_index[key]

    # Plain CRUD

    def insert(self, collection: str, entity: BaseEntity) -> BaseEntity:
        table = self._table(collection)
        with self.grid_lock(self._grid_scope(collection, entity)):
            if collection == GRIDS:
                self._claim_code(entity.code, entity.id)
            table[entity.id] = entity.model_copy(deep=True)
        logger.debug(f"Inserted {collection} record {entity.id}")
        return entity.model_copy(deep=True)

    def get(self, collection: str, entity_id: str) -> Optional[BaseEntity]:
        entity = self._table(collection).get(entity_id)
        return entity.model_copy(deep=True) if entity is not None else None

    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[BaseEntity]:
        with self._store_lock:
            entities = list(self._table(collection).values())
        return [
            entity.model_copy(deep=True)
            for entity in entities
            if self._matches(entity, filters)
        ]

    def update(self, collection: str, entity_id: str, changes: Dict[str, Any]) -> Optional[BaseEntity]:
        table = self._table(collection)
        with self.grid_lock(self._grid_scope(collection, table.get(entity_id))):
            current = table.get(entity_id)
            if current is None:
                return None
            data = current.to_document()
            data.update(changes)
            updated = type(current).model_validate(data)
            if collection == GRIDS and normalize_code(updated.code) != normalize_code(current.code):
                self._claim_code(updated.code, entity_id)
                self._release_code(current.code, entity_id)
            table[entity_id] = updated
        return updated.model_copy(deep=True)

    def delete(self, collection: str, entity_id: str) -> bool:
        table = self._table(collection)
        with self.grid_lock(self._grid_scope(collection, table.get(entity_id))):
            entity = table.pop(entity_id, None)
            if entity is None:
                return False
            if collection == GRIDS:
                self._release_code(entity.code, entity_id)
                with self._store_lock:
                    self._grid_locks.pop(entity_id, None)
        logger.debug(f"Deleted {collection} record {entity_id}")
        return True

    def delete_many(self, collection: str, filters: Dict[str, Any]) -> int:
        table = self._table(collection)
        with self._store_lock:
            doomed = [key for key, entity in table.items() if self._matches(entity, filters)]
        removed = 0
        for entity_id in doomed:
            if self.delete(collection, entity_id):
                removed += 1
        return removed

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        return len(self.find(collection, filters))

    def find_grid_by_code(self, code: str) -> Optional[Grid]:
        with self._store_lock:
            grid_id = self._code_index.get(normalize_code(code))
        return self.get(GRIDS, grid_id) if grid_id else None

    def insert_for_grid(self, collection: str, entity: BaseEntity) -> BaseEntity:
        with self.grid_lock(entity.grid_id):
            if entity.grid_id not in self._table(GRIDS):
                raise NotFound("Grid", entity.grid_id)
            return self.insert(collection, entity)

    def delete_grid_cascade(self, grid_id: str) -> Optional[Dict[str, int]]:
        # The grid lock is held across the whole fan-out
        with self.grid_lock(grid_id):
            if grid_id not in self._table(GRIDS):
                return None
            removed = {
                collection: self.delete_many(collection, {"grid_id": grid_id})
                for collection in GRID_CHILDREN
            }
            self.delete(GRIDS, grid_id)
        return removed

    # Composite operations

    def transition_registration(self, registration_id: str, expected_status: str,
                                new_status: str, registered_delta: int,
                                updated_by: Optional[str]) -> Optional[VolunteerRegistration]:
        registrations = self._table(REGISTRATIONS)
        current = registrations.get(registration_id)
        if current is None:
            return None

        with self.grid_lock(current.grid_id):
            current = registrations.get(registration_id)
            if current is None or current.status != expected_status:
                return None

            now = utcnow()
            registration = current.model_copy(deep=True)
            registration.status = new_status
            registration.updated_at = now
            registration.updated_by = updated_by

            grid = self._table(GRIDS).get(registration.grid_id)
            if registered_delta and grid is not None:
                grid = grid.model_copy(deep=True)
                grid.volunteer_registered = max(grid.volunteer_registered + registered_delta, 0)
                grid.updated_at = now
                grid.updated_by = updated_by
                self._table(GRIDS)[grid.id] = grid

            registrations[registration_id] = registration
        return registration.model_copy(deep=True)

    def transition_donation(self, donation_id: str, expected_status: str, new_status: str,
                            apply_receipt: bool,
                            updated_by: Optional[str]) -> Optional[SupplyDonation]:
        donations = self._table(DONATIONS)
        current = donations.get(donation_id)
        if current is None:
            return None

        with self.grid_lock(current.grid_id):
            current = donations.get(donation_id)
            if current is None or current.status != expected_status:
                return None

            if apply_receipt:
                self.add_received(current.grid_id, current.supply_name, current.quantity, updated_by)

            donation = current.model_copy(deep=True)
            donation.status = new_status
            donation.receipt_applied = donation.receipt_applied or apply_receipt
            donation.updated_at = utcnow()
            donation.updated_by = updated_by
            donations[donation_id] = donation
        return donation.model_copy(deep=True)

    def insert_donation(self, donation: SupplyDonation, apply_receipt: bool) -> SupplyDonation:
        with self.grid_lock(donation.grid_id):
            if apply_receipt:
                grid = self.add_received(donation.grid_id, donation.supply_name, donation.quantity,
                                         donation.created_by)
                if grid is None:
                    raise NotFound("Grid", donation.grid_id)
                donation = donation.model_copy(update={"receipt_applied": True})
            return self.insert_for_grid(DONATIONS, donation)

    def add_received(self, grid_id: str, supply_name: str, quantity: float,
                     updated_by: Optional[str]) -> Optional[Grid]:
        grids = self._table(GRIDS)
        with self.grid_lock(grid_id):
            current = grids.get(grid_id)
            if current is None:
                return None
            grid = current.model_copy(deep=True)
            grid.supplies_needed = reconciliation.apply_receipt(
                current.supplies_needed, grid_id, supply_name, quantity
            )
            grid.updated_at = utcnow()
            grid.updated_by = updated_by
            grids[grid_id] = grid
        return grid.model_copy(deep=True)

    def merge_supplies(self, grid_id: str, items: Iterable[SupplyItemRequest],
                       updated_by: Optional[str]) -> Optional[Grid]:
        grids = self._table(GRIDS)
        with self.grid_lock(grid_id):
            current = grids.get(grid_id)
            if current is None:
                return None
            grid = current.model_copy(deep=True)
            grid.supplies_needed = reconciliation.merge_supply_request(current.supplies_needed, items)
            grid.updated_at = utcnow()
            grid.updated_by = updated_by
            grids[grid_id] = grid
        return grid.model_copy(deep=True)

    def health_check(self) -> Dict[str, Any]:
        return {
            "status": "healthy",
            "backend": "memory",
            "collections": {name: len(table) for name, table in self._collections.items()},
        }


def ensure_line_exists(grid: Grid, supply_name: str) -> None:
    """
    Raises:
        UnknownSupplyLine: if the grid has no line with that name
    """
    if reconciliation.find_line(grid.supplies_needed, supply_name) is None:
        raise UnknownSupplyLine(grid.id, supply_name)
