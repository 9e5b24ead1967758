# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Core entity models for the Portaria visitor register.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator, ConfigDict
from .base import BaseEntity
from .enums import VisitorStatus, LogLevel, OperatorRole


class Operator(BaseModel):
    """Authenticated person performing registrations and checkouts."""

    id: Optional[str] = Field(None, description="Identity provider user ID")
    email: Optional[str] = Field(None, description="Operator email")
    name: Optional[str] = Field(None, description="Operator display name")
    role: OperatorRole = Field(default=OperatorRole.USER, description="Operator role")

    model_config = ConfigDict(
        use_enum_values=True
    )

    def is_admin(self) -> bool:
        """Check if operator has the admin role."""
        return self.role == OperatorRole.ADMIN


class VisitorDraft(BaseModel):
    """Insert payload for a new visitor record."""

    name: str = Field(..., min_length=1, description="Visitor full name")
    cpf: str = Field(..., min_length=11, max_length=11, description="Digits-only CPF")
    email: str = Field(..., description="Visitor email")
    date_of_birth: Optional[str] = Field(None, description="Date of birth as entered")
    room: str = Field(..., min_length=1, description="Destination room")
    check_in_time: datetime = Field(..., description="Check-in timestamp")
    registered_by: str = Field(default="Unknown", description="Operator name")
    registered_by_id: Optional[str] = Field(None, description="Operator ID")

    @field_validator('cpf')
    @classmethod
    def validate_cpf_digits(cls, v):
        """CPF must already be normalized."""
        if not v.isdigit():
            raise ValueError('CPF must contain digits only')
        return v

    @field_validator('name')
    @classmethod
    def validate_name(cls, v):
        """Validate visitor name."""
        if not v.strip():
            raise ValueError('Visitor name cannot be empty')
        return v.strip()

    def to_document(self) -> dict:
        """Build the stored document for this draft."""
        return {
            "name": self.name,
            "cpf": self.cpf,
            "email": self.email,
            "dateOfBirth": self.date_of_birth,
            "room": self.room,
            "status": VisitorStatus.IN_BUILDING.value,
            "checkInTime": self.check_in_time,
            "checkOutTime": None,
            "registeredBy": self.registered_by,
            "registeredById": self.registered_by_id,
            "checkedInBy": self.registered_by,
            "checkedInById": self.registered_by_id,
            "checkedOutBy": None,
            "checkedOutById": None,
        }


class Visitor(BaseEntity):
    """Visitor check-in/check-out record."""

    name: str = Field(..., description="Visitor full name")
    cpf: str = Field(..., description="Digits-only CPF")
    email: str = Field(..., description="Visitor email")
    date_of_birth: Optional[str] = Field(None, description="Date of birth")
    room: str = Field(..., description="Assigned room")
    status: VisitorStatus = Field(..., description="Lifecycle status")
    check_in_time: Optional[str] = Field(None, description="Check-in timestamp (ISO-8601)")
    check_out_time: Optional[str] = Field(None, description="Check-out timestamp (ISO-8601)")
    registered_by: str = Field(default="Unknown", description="Operator who registered")
    registered_by_id: Optional[str] = Field(None)
    checked_in_by: Optional[str] = Field(None)
    checked_in_by_id: Optional[str] = Field(None)
    checked_out_by: Optional[str] = Field(None)
    checked_out_by_id: Optional[str] = Field(None)

    def is_in_building(self) -> bool:
        """Check if visitor is currently in the building."""
        return self.status == VisitorStatus.IN_BUILDING

    def can_checkout(self) -> bool:
        """Checkout is allowed only once, from in_building."""
        return self.is_in_building()


class LogEntry(BaseModel):
    """Audit log entry."""

    id: Optional[str] = Field(None, description="Entry identifier")
    action: str = Field(..., description="Action tag")
    details: str = Field(..., description="Human-readable detail")
    user_id: Optional[str] = Field(None, description="Acting operator ID")
    user_name: Optional[str] = Field(None, description="Acting operator name")
    level: LogLevel = Field(default=LogLevel.INFO, description="Severity level")
    timestamp: str = Field(..., description="Entry timestamp (ISO-8601)")

    model_config = ConfigDict(
        use_enum_values=True
    )

    def is_system(self) -> bool:
        """Entries without an operator were system initiated."""
        return self.user_name is None and self.user_id is None

