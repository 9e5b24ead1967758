# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Models package - Pydantic schemas and data models for the Portaria register.
"""

# Base models
from .base import BaseEntity, generate_object_id, utc_now, to_iso

# Enumerations
from .enums import (
    VisitorStatus,
    VisitorFilter,
    LogLevel,
    LogAction,
    OperatorRole
)

# Core entities
from .entities import (
    Operator,
    Visitor,
    VisitorDraft,
    LogEntry
)

__all__ = [
    # Base models
    "BaseEntity",
    "generate_object_id",
    "utc_now",
    "to_iso",

    # Enumerations
    "VisitorStatus",
    "VisitorFilter",
    "LogLevel",
    "LogAction",
    "OperatorRole",

    # Core entities
    "Operator",
    "Visitor",
    "VisitorDraft",
    "LogEntry"
]
