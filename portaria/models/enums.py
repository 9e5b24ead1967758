# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Enumeration types for the Portaria visitor register.
"""

from enum import Enum


class VisitorStatus(str, Enum):
    """Visitor lifecycle status."""
    IN_BUILDING = "in_building"
    CHECKED_OUT = "checked_out"


class VisitorFilter(str, Enum):
    """Listing filters accepted by the visitor directory."""
    ALL = "all"
    IN_BUILDING = "in_building"
    CHECKED_OUT = "checked_out"


class LogLevel(str, Enum):
    """Audit log severity levels."""
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogAction(str, Enum):
    """Audit log action tags."""
    VISITOR_REGISTERED = "VISITOR_REGISTERED"
    VISITOR_CHECKED_OUT = "VISITOR_CHECKED_OUT"
    USER_LOGIN = "USER_LOGIN"
    USER_LOGOUT = "USER_LOGOUT"
    USER_REGISTRATION = "USER_REGISTRATION"
    VISITOR_ACTION = "visitor_action"
    AUTH_ACTION = "auth_action"
    ERROR = "error"


class OperatorRole(str, Enum):
    """Operator roles issued by the identity provider."""
    ADMIN = "admin"
    USER = "user"
