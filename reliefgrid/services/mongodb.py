# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
MongoDB repository with atomic counter and supply-line updates.

Grid counters use ``$inc``, supply lines are addressed through
``arrayFilters`` and new lines are appended with a conditional ``$push``.
Status changes are compare-and-set on the expected status. Case-insensitive
grid code uniqueness is backed by a unique index on ``code_key``.
"""

import os
import logging
from typing import Any, Dict, Iterable, List, Optional
from pymongo import MongoClient, ASCENDING, DESCENDING, ReturnDocument
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import (
    ConnectionFailure,
    ServerSelectionTimeoutError,
    DuplicateKeyError,
)
from bson import ObjectId
from bson.errors import InvalidId
from opentelemetry import trace

from ..domain.errors import DuplicateCode, NotFound, UnknownSupplyLine
from ..domain.grid_import import normalize_code
from ..models.base import BaseEntity, utcnow
from ..models.entities import Grid, SupplyDonation, SupplyLine, VolunteerRegistration
from ..models.requests import SupplyItemRequest
from .repository import (
    ANNOUNCEMENTS,
    AREAS,
    DISCUSSIONS,
    DONATIONS,
    ENTITY_TYPES,
    GRID_CHILDREN,
    GRIDS,
    REGISTRATIONS,
    Repository,
)

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)


class MongoRepository(Repository):
    """MongoDB-backed repository with connection pooling."""

    def __init__(self, connection_string: str = None, database_name: str = None):
        """Initialize MongoDB repository with connection pooling."""
        self.connection_string = connection_string or os.getenv(
            'MONGODB_URI',
            'mongodb://localhost:27017/reliefgrid_dev'
        )
        self.database_name = database_name or os.getenv('MONGODB_DATABASE', 'reliefgrid_dev')
        self._client: Optional[MongoClient] = None
        self._database: Optional[Database] = None

        # Connection pool settings
        self.max_pool_size = int(os.getenv('MONGODB_MAX_POOL_SIZE', '10'))
        self.min_pool_size = int(os.getenv('MONGODB_MIN_POOL_SIZE', '1'))
        self.max_idle_time_ms = int(os.getenv('MONGODB_MAX_IDLE_TIME_MS', '30000'))
        self.server_selection_timeout_ms = int(os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000'))

        logger.info(f"MongoDB repository initialized for database: {self.database_name}")

    @property
    def client(self) -> MongoClient:
        """Get MongoDB client with connection pooling."""
        if self._client is None:
            try:
                self._client = MongoClient(
                    self.connection_string,
                    maxPoolSize=self.max_pool_size,
                    minPoolSize=self.min_pool_size,
                    maxIdleTimeMS=self.max_idle_time_ms,
                    serverSelectionTimeoutMS=self.server_selection_timeout_ms,
                    retryWrites=True,
                    retryReads=True,
                    tz_aware=True
                )
                # Test connection
                self._client.admin.command('ping')
                logger.info("MongoDB connection established successfully")
            except (ConnectionFailure, ServerSelectionTimeoutError) as e:
                logger.error(f"Failed to connect to MongoDB: {e}")
                raise

        return self._client

    @property
    def database(self) -> Database:
        """Get MongoDB database."""
        if self._database is None:
            self._database = self.client[self.database_name]
        return self._database

    def get_collection(self, collection_name: str) -> Collection:
        """Get MongoDB collection."""
        if collection_name not in ENTITY_TYPES:
            raise ValueError(f"Unknown collection: {collection_name}")
        return self.database[collection_name]

    def health_check(self) -> Dict[str, Any]:
        """Check MongoDB connection health."""
        try:
            result = self.client.admin.command('ping')
            server_info = self.client.server_info()

            return {
                'status': 'healthy',
                'backend': 'mongodb',
                'ping': result.get('ok') == 1,
                'version': server_info.get('version'),
                'database': self.database_name,
                'connection_pool_size': self.max_pool_size
            }
        except Exception as e:
            logger.error(f"MongoDB health check failed: {e}")
            return {
                'status': 'unhealthy',
                'backend': 'mongodb',
                'error': str(e),
                'database': self.database_name
            }

    # Document mapping

    @staticmethod
    def _object_id(doc_id: str) -> Optional[ObjectId]:
        """Convert a string ID, None when it is not a valid ObjectId."""
        try:
            return ObjectId(doc_id)
        except (InvalidId, TypeError):
            return None

    @staticmethod
    def _to_document(collection: str, entity: BaseEntity) -> Dict[str, Any]:
        document = entity.to_document()
        document["_id"] = ObjectId(document.pop("id"))
        if collection == GRIDS:
            document["code_key"] = normalize_code(entity.code)
        return document

    @staticmethod
    def _from_document(collection: str, document: Optional[Dict[str, Any]]) -> Optional[BaseEntity]:
        if document is None:
            return None
        document = dict(document)
        document["id"] = str(document.pop("_id"))
        return ENTITY_TYPES[collection].model_validate(document)

    @staticmethod
    def _touch(updated_by: Optional[str]) -> Dict[str, Any]:
        return {"updated_at": utcnow(), "updated_by": updated_by}

    # Plain CRUD

    def insert(self, collection: str, entity: BaseEntity) -> BaseEntity:
        """Insert a new document."""
        try:
            result = self.get_collection(collection).insert_one(self._to_document(collection, entity))
            logger.info(f"Created document in {collection}: {result.inserted_id}")
            return entity
        except DuplicateKeyError as e:
            logger.warning(f"Duplicate key error in {collection}: {e}")
            if collection == GRIDS:
                raise DuplicateCode(entity.code)
            raise
        except Exception as e:
            logger.error(f"Failed to create document in {collection}: {e}")
            raise

    def get(self, collection: str, entity_id: str) -> Optional[BaseEntity]:
        object_id = self._object_id(entity_id)
        if object_id is None:
            logger.debug(f"Invalid document ID {entity_id} for {collection}")
            return None
        try:
            document = self.get_collection(collection).find_one({"_id": object_id})
            return self._from_document(collection, document)
        except Exception as e:
            logger.error(f"Failed to find document {entity_id} in {collection}: {e}")
            raise

    def find(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> List[BaseEntity]:
        try:
            cursor = self.get_collection(collection).find(filters or {}).sort(
                [("created_at", ASCENDING), ("_id", ASCENDING)]
            )
            entities = [self._from_document(collection, document) for document in cursor]
            logger.debug(f"Found {len(entities)} documents in {collection}")
            return entities
        except Exception as e:
            logger.error(f"Failed to find documents in {collection}: {e}")
            raise

    def update(self, collection: str, entity_id: str, changes: Dict[str, Any]) -> Optional[BaseEntity]:
        object_id = self._object_id(entity_id)
        if object_id is None:
            return None

        updates = dict(changes)
        updates.pop("id", None)

        # Validate the merged record first; an invalid document must never be stored
        current = self.get(collection, entity_id)
        if current is None:
            return None
        merged = current.to_document()
        merged.update(updates)
        validated = type(current).model_validate(merged).to_document()
        updates = {field: validated[field] for field in updates if field in validated}
        if collection == GRIDS and "code" in updates:
            updates["code_key"] = normalize_code(updates["code"])

        try:
            document = self.get_collection(collection).find_one_and_update(
                {"_id": object_id},
                {"$set": updates},
                return_document=ReturnDocument.AFTER
            )
            if document is None:
                logger.warning(f"No document updated for {entity_id} in {collection}")
            return self._from_document(collection, document)
        except DuplicateKeyError:
            if collection == GRIDS:
                raise DuplicateCode(updates["code"])
            raise
        except Exception as e:
            logger.error(f"Failed to update document {entity_id} in {collection}: {e}")
            raise

    def delete(self, collection: str, entity_id: str) -> bool:
        object_id = self._object_id(entity_id)
        if object_id is None:
            return False
        try:
            result = self.get_collection(collection).delete_one({"_id": object_id})
            if result.deleted_count > 0:
                logger.info(f"Deleted document {entity_id} in {collection}")
                return True
            return False
        except Exception as e:
            logger.error(f"Failed to delete document {entity_id} in {collection}: {e}")
            raise

    def delete_many(self, collection: str, filters: Dict[str, Any]) -> int:
        try:
            result = self.get_collection(collection).delete_many(filters)
            return result.deleted_count
        except Exception as e:
            logger.error(f"Failed to delete documents in {collection}: {e}")
            raise

    def count(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> int:
        try:
            return self.get_collection(collection).count_documents(filters or {})
        except Exception as e:
            logger.error(f"Failed to count documents in {collection}: {e}")
            raise

    def find_grid_by_code(self, code: str) -> Optional[Grid]:
        document = self.get_collection(GRIDS).find_one({"code_key": normalize_code(code)})
        return self._from_document(GRIDS, document)

    def insert_for_grid(self, collection: str, entity: BaseEntity) -> BaseEntity:
        self.insert(collection, entity)
        if self.get(GRIDS, entity.grid_id) is None:
            # The grid was deleted meanwhile and its cascade may already have run
            self.delete(collection, entity.id)
            raise NotFound("Grid", entity.grid_id)
        return entity

    def delete_grid_cascade(self, grid_id: str) -> Optional[Dict[str, int]]:
        with tracer.start_as_current_span("mongodb.delete_grid_cascade") as span:
            span.set_attribute("grid.id", grid_id)
            # Grid first, so children inserted from here on fail their existence check
            if not self.delete(GRIDS, grid_id):
                return None
            return {
                collection: self.delete_many(collection, {"grid_id": grid_id})
                for collection in GRID_CHILDREN
            }

    # Composite operations

    def transition_registration(self, registration_id: str, expected_status: str,
                                new_status: str, registered_delta: int,
                                updated_by: Optional[str]) -> Optional[VolunteerRegistration]:
        object_id = self._object_id(registration_id)
        if object_id is None:
            return None

        with tracer.start_as_current_span("mongodb.transition_registration") as span:
            span.set_attributes({
                "registration.id": registration_id,
                "registration.expected_status": expected_status,
                "registration.new_status": new_status,
            })
            document = self.get_collection(REGISTRATIONS).find_one_and_update(
                {"_id": object_id, "status": expected_status},
                {"$set": {"status": new_status, **self._touch(updated_by)}},
                return_document=ReturnDocument.AFTER
            )
            if document is None:
                span.set_attribute("registration.cas_failed", True)
                return None

            registration = self._from_document(REGISTRATIONS, document)
            if registered_delta:
                self._increment_registered(registration.grid_id, registered_delta, updated_by)
            return registration

    def _increment_registered(self, grid_id: str, delta: int, updated_by: Optional[str]) -> None:
        query: Dict[str, Any] = {"_id": self._object_id(grid_id)}
        if delta < 0:
            # Floor at zero: only decrement while the counter can absorb it
            query["volunteer_registered"] = {"$gte": -delta}
        result = self.get_collection(GRIDS).update_one(
            query,
            {"$inc": {"volunteer_registered": delta}, "$set": self._touch(updated_by)}
        )
        if result.matched_count == 0:
            logger.warning(
                "Volunteer counter not adjusted",
                extra={"grid_id": grid_id, "delta": delta}
            )

    def transition_donation(self, donation_id: str, expected_status: str, new_status: str,
                            apply_receipt: bool,
                            updated_by: Optional[str]) -> Optional[SupplyDonation]:
        object_id = self._object_id(donation_id)
        if object_id is None:
            return None

        donations = self.get_collection(DONATIONS)
        with tracer.start_as_current_span("mongodb.transition_donation") as span:
            span.set_attributes({
                "donation.id": donation_id,
                "donation.expected_status": expected_status,
                "donation.new_status": new_status,
                "donation.apply_receipt": apply_receipt,
            })
            updates = {"status": new_status, **self._touch(updated_by)}
            query: Dict[str, Any] = {"_id": object_id, "status": expected_status}
            if apply_receipt:
                updates["receipt_applied"] = True
                query["receipt_applied"] = False

            document = donations.find_one_and_update(
                query, {"$set": updates}, return_document=ReturnDocument.AFTER
            )
            if document is None:
                span.set_attribute("donation.cas_failed", True)
                return None

            donation = self._from_document(DONATIONS, document)
            if apply_receipt:
                try:
                    self.add_received(donation.grid_id, donation.supply_name,
                                      donation.quantity, updated_by)
                except UnknownSupplyLine:
                    # Undo the status change so the call has no effect
                    donations.update_one(
                        {"_id": object_id, "status": new_status},
                        {"$set": {"status": expected_status, "receipt_applied": False}}
                    )
                    raise
            return donation

    def insert_donation(self, donation: SupplyDonation, apply_receipt: bool) -> SupplyDonation:
        if not apply_receipt:
            return self.insert_for_grid(DONATIONS, donation)

        # Stored before the receipt so a failed insert never inflates received
        donation = donation.model_copy(update={"receipt_applied": True})
        self.insert_for_grid(DONATIONS, donation)
        try:
            grid = self.add_received(donation.grid_id, donation.supply_name, donation.quantity,
                                     donation.created_by)
        except Exception:
            self.delete(DONATIONS, donation.id)
            raise
        if grid is None:
            self.delete(DONATIONS, donation.id)
            raise NotFound("Grid", donation.grid_id)
        return donation

    def add_received(self, grid_id: str, supply_name: str, quantity: float,
                     updated_by: Optional[str]) -> Optional[Grid]:
        object_id = self._object_id(grid_id)
        if object_id is None:
            return None

        document = self.get_collection(GRIDS).find_one_and_update(
            {"_id": object_id, "supplies_needed.name": supply_name},
            {
                "$inc": {"supplies_needed.$[line].received": quantity},
                "$set": self._touch(updated_by),
            },
            array_filters=[{"line.name": supply_name}],
            return_document=ReturnDocument.AFTER
        )
        if document is None:
            if self.get(GRIDS, grid_id) is None:
                return None
            raise UnknownSupplyLine(grid_id, supply_name)
        return self._from_document(GRIDS, document)

    def merge_supplies(self, grid_id: str, items: Iterable[SupplyItemRequest],
                       updated_by: Optional[str]) -> Optional[Grid]:
        object_id = self._object_id(grid_id)
        if object_id is None or self.get(GRIDS, grid_id) is None:
            return None

        grids = self.get_collection(GRIDS)
        for item in items:
            if self._increment_demand(grids, object_id, item, updated_by):
                continue
            new_line = SupplyLine(name=item.name, quantity=item.quantity, received=0, unit=item.unit)
            pushed = grids.update_one(
                {"_id": object_id, "supplies_needed.name": {"$ne": item.name}},
                {"$push": {"supplies_needed": new_line.model_dump()}, "$set": self._touch(updated_by)}
            )
            if pushed.matched_count == 0:
                # Another writer appended the line in between
                self._increment_demand(grids, object_id, item, updated_by)

        return self.get(GRIDS, grid_id)

    def _increment_demand(self, grids: Collection, object_id: ObjectId,
                          item: SupplyItemRequest, updated_by: Optional[str]) -> bool:
        result = grids.update_one(
            {"_id": object_id, "supplies_needed.name": item.name},
            {
                "$inc": {"supplies_needed.$[line].quantity": item.quantity},
                "$set": self._touch(updated_by),
            },
            array_filters=[{"line.name": item.name}]
        )
        return result.matched_count > 0

    # Index Management

    def create_indexes(self) -> None:
        """Create uniqueness and lookup indexes for all collections."""
        try:
            logger.info("Creating MongoDB indexes...")

            grids = self.get_collection(GRIDS)
            grids.create_index("code_key", unique=True)
            grids.create_index([("disaster_area_id", ASCENDING), ("status", ASCENDING)])
            grids.create_index([("grid_type", ASCENDING), ("status", ASCENDING)])
            grids.create_index("created_at")

            areas = self.get_collection(AREAS)
            areas.create_index("status")

            for name in (REGISTRATIONS, DONATIONS):
                children = self.get_collection(name)
                children.create_index([("grid_id", ASCENDING), ("status", ASCENDING)])

            discussions = self.get_collection(DISCUSSIONS)
            discussions.create_index([("grid_id", ASCENDING), ("created_at", DESCENDING)])

            announcements = self.get_collection(ANNOUNCEMENTS)
            announcements.create_index([("is_pinned", DESCENDING), ("order", ASCENDING)])

            logger.info("MongoDB indexes created successfully")

        except Exception as e:
            logger.error(f"Failed to create MongoDB indexes: {e}")
            raise
