# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Services package - Document store access and side effects.
"""

from .mongodb import MongoDBService, DuplicateDocumentError
from .memory_store import InMemoryDocumentStore
from .audit import AuditLogService
from .visitors import VisitorDirectory
from .auth import (
    IdentityProvider,
    SessionChannel,
    Subscription,
    TokenService,
    AuthenticationError,
    TokenValidationError
)

__all__ = [
    "MongoDBService",
    "DuplicateDocumentError",
    "InMemoryDocumentStore",
    "AuditLogService",
    "VisitorDirectory",
    "IdentityProvider",
    "SessionChannel",
    "Subscription",
    "TokenService",
    "AuthenticationError",
    "TokenValidationError"
]
