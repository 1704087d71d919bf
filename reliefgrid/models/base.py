# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models with common fields and validation.
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict
from bson import ObjectId


def generate_object_id() -> str:
    """Generate a new MongoDB ObjectId as string."""
    return str(ObjectId())


def utcnow() -> datetime:
    """Timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class BaseEntity(BaseModel):
    """Base entity with common fields for all domain objects."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        # Validate assignment
        validate_assignment=True,
        # Stored documents carry bookkeeping keys such as code_key
        extra="ignore"
    )

    id: str = Field(default_factory=generate_object_id, description="Unique identifier")
    created_at: datetime = Field(default_factory=utcnow, description="Creation timestamp")
    updated_at: datetime = Field(default_factory=utcnow, description="Last update timestamp")
    created_by: Optional[str] = Field(None, description="Actor ID who created this entity")
    updated_by: Optional[str] = Field(None, description="Actor ID who last updated this entity")

    def to_document(self) -> dict:
        """Dump the entity as a plain storage document."""
        return self.model_dump(mode="python")


class BaseEntityCreate(BaseModel):
    """Base model for entity creation requests."""

    model_config = ConfigDict(
        use_enum_values=True,
        validate_assignment=True,
        str_strip_whitespace=True
    )


class BaseEntityUpdate(BaseModel):
    """Base model for entity update requests."""

    model_config = ConfigDict(
        use_enum_values=True,
        validate_assignment=True,
        str_strip_whitespace=True
    )

    def changes(self) -> dict:
        """Only the fields the caller actually sent."""
        return self.model_dump(exclude_unset=True)
