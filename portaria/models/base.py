# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Base entity models and timestamp helpers.

Documents are stored with native datetimes; everything that leaves the core
carries ISO-8601 UTC strings.
"""

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, ConfigDict
from bson import ObjectId


def generate_object_id() -> str:
    """Generate a new MongoDB ObjectId as string."""
    return str(ObjectId())


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Render a stored datetime as an ISO-8601 UTC string."""
    if value is None:
        return None
    if isinstance(value, str):
        return value
    # pymongo hands back naive datetimes that are already UTC
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat()


class BaseEntity(BaseModel):
    """Base for records returned across the core boundary."""

    model_config = ConfigDict(
        # Allow population by field name or alias
        populate_by_name=True,
        # Use enum values instead of enum objects
        use_enum_values=True,
        validate_assignment=True
    )

    id: str
    created_at: str
    updated_at: str
