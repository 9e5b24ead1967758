# SPDX-License-Identifier: Apache-2.0

"""
Explicit wiring of the visitor register components.

Every component receives its store handle through its constructor; nothing
is held in module-level singletons.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from .config import Settings
from .domain.admission import AdmissionPolicy
from .services.audit import AuditLogService
from .services.auth import IdentityProvider, TokenService
from .services.memory_store import InMemoryDocumentStore
from .services.mongodb import MongoDBService
from .services.visitors import VisitorDirectory

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Container:
    store: object
    audit_log: AuditLogService
    directory: VisitorDirectory
    admission: AdmissionPolicy
    identity: IdentityProvider

    def close(self) -> None:
        """Release the store connection."""
        self.store.close_connection()


def create_store(settings: Settings):
    """Document store selected by ``settings.store_backend``."""
    if settings.store_backend == "memory":
        return InMemoryDocumentStore()
    return MongoDBService(
        settings.mongodb_uri,
        settings.mongodb_database,
        max_pool_size=settings.mongodb_max_pool_size,
        server_selection_timeout_ms=settings.mongodb_server_selection_timeout_ms
    )


def create_services(settings: Optional[Settings] = None, store=None) -> Container:
    """
    Build all components around a single store.

    Args:
        settings: Runtime settings (read from the environment when omitted)
        store: Pre-built document store, e.g. a test double

    Returns:
        Container: Wired components
    """
    settings = settings or Settings.from_env()
    store = store if store is not None else create_store(settings)

    audit_log = AuditLogService(store)
    directory = VisitorDirectory(store)
    admission = AdmissionPolicy(
        directory,
        audit_log,
        rooms=settings.rooms,
        capacity=settings.room_capacity
    )
    identity = IdentityProvider(
        store,
        audit_log,
        admin_passphrase=settings.admin_passphrase,
        token_service=TokenService(
            settings.jwt_private_key,
            settings.jwt_public_key,
            expire_minutes=settings.jwt_expire_minutes
        )
    )

    logger.info(
        "Visitor register services created",
        extra={"store_backend": settings.store_backend, "rooms": list(settings.rooms)}
    )
    return Container(
        store=store,
        audit_log=audit_log,
        directory=directory,
        admission=admission,
        identity=identity
    )
