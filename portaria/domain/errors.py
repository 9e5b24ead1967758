# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Domain exceptions surfaced to the presentation layer.

Messages are shown verbatim in the Portuguese UI.
"""

from typing import List, Optional


class PortariaError(Exception):
    """Base class for visitor register exceptions."""

    def __init__(self, message: str, error_type: str = "application-error"):
        super().__init__(message)
        self.message = message
        self.error_type = error_type


class ValidationError(PortariaError):
    """Bad input shape: empty field, malformed email, CPF checksum failure."""

    def __init__(self, message: str, validation_errors: Optional[List[str]] = None):
        super().__init__(message, "validation-error")
        self.validation_errors = validation_errors or [message]


class ConflictError(PortariaError):
    """Business rule violation, e.g. a person already in the building."""

    def __init__(self, message: str, current_room: Optional[str] = None):
        super().__init__(message, "resource-conflict")
        self.current_room = current_room


class CapacityError(PortariaError):
    """Target room is full."""

    def __init__(self, message: str, room: Optional[str] = None, capacity: Optional[int] = None):
        super().__init__(message, "room-full")
        self.room = room
        self.capacity = capacity


class NotFound(PortariaError):
    """Referenced visitor does not exist."""

    def __init__(self, message: str, resource_id: Optional[str] = None):
        super().__init__(message, "resource-not-found")
        self.resource_id = resource_id
