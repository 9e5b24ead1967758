# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Audit log service for operator actions with OpenTelemetry correlation.

Writes are best-effort: a failed append is reported on the diagnostic logger
and the active span, never to the caller. Reads degrade to an empty list.
"""

import logging
from typing import List, Optional, Union
from opentelemetry import trace

from .mongodb import LOGS_COLLECTION
from ..models.base import utc_now, to_iso
from ..models.entities import LogEntry
from ..models.enums import LogAction, LogLevel

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

DEFAULT_MAX_ENTRIES = 100


def _value(item: Union[str, LogAction, LogLevel]) -> str:
    return item.value if hasattr(item, "value") else str(item)


class AuditLogService:
    """Append-only audit log persisted in the ``logs`` collection."""

    def __init__(self, store, clock=utc_now):
        """
        Initialize audit log with a document store dependency.

        Args:
            store: MongoDBService or InMemoryDocumentStore
            clock: Callable returning the current UTC datetime
        """
        self.store = store
        self.clock = clock
        self.collection_name = LOGS_COLLECTION
        logger.info("Audit log service initialized")

    def append(
        self,
        action: Union[str, LogAction],
        details: str,
        user_id: Optional[str] = None,
        user_name: Optional[str] = None,
        level: Union[str, LogLevel] = LogLevel.INFO
    ) -> Optional[str]:
        """
        Write an audit entry with a server-assigned timestamp.

        Args:
            action: Action tag
            details: Human-readable detail
            user_id: Acting operator ID (None for system actions)
            user_name: Acting operator name (None for system actions)
            level: Severity level

        Returns:
            Optional[str]: ID of the created entry, None if the write failed
        """
        with tracer.start_as_current_span("audit.append") as span:
            action_tag = _value(action)
            level_tag = _value(level)
            try:
                now = self.clock()
                entry = {
                    "action": action_tag,
                    "details": details,
                    "userId": user_id,
                    "userName": user_name,
                    "level": level_tag,
                    "timestamp": now,
                    "createdAt": now
                }

                span.set_attributes({
                    "audit.action": action_tag,
                    "audit.level": level_tag,
                    "audit.user_id": user_id or ""
                })

                entry_id = self.store.create(self.collection_name, entry)

                logger.info(
                    "Audit log entry created",
                    extra={
                        "audit_id": entry_id,
                        "action": action_tag,
                        "user_id": user_id,
                        "level": level_tag
                    }
                )
                return entry_id

            except Exception as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.error(
                    "Failed to create audit log entry",
                    extra={
                        "action": action_tag,
                        "user_id": user_id,
                        "error": str(e)
                    },
                    exc_info=True
                )
                return None

    def list(self, max_entries: int = DEFAULT_MAX_ENTRIES) -> List[LogEntry]:
        """
        Most recent audit entries, newest first.

        Args:
            max_entries: Maximum number of entries returned

        Returns:
            List[LogEntry]: Entries, or an empty list if retrieval failed
        """
        with tracer.start_as_current_span("audit.list") as span:
            span.set_attribute("audit.max_entries", max_entries)
            if max_entries <= 0:
                return []
            try:
                documents = self.store.find(
                    self.collection_name,
                    sort_by="timestamp",
                    sort_order=-1,
                    limit=max_entries
                )
                entries = [self._to_entry(doc) for doc in documents]

                logger.debug(f"Retrieved {len(entries)} audit log entries")
                return entries

            except Exception as e:
                span.record_exception(e)
                span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
                logger.error(
                    "Failed to retrieve audit log entries",
                    extra={"max_entries": max_entries, "error": str(e)},
                    exc_info=True
                )
                return []

    def log_visitor_action(self, action: str, visitor_name: str,
                           user_name: Optional[str] = None,
                           user_id: Optional[str] = None) -> Optional[str]:
        """Generic visitor action entry."""
        return self.append(LogAction.VISITOR_ACTION, f"{action}: {visitor_name}",
                           user_id, user_name, LogLevel.INFO)

    def log_auth_action(self, action: str, user_email: str) -> Optional[str]:
        """System-attributed authentication entry."""
        return self.append(LogAction.AUTH_ACTION, f"{action}: {user_email}",
                           None, None, LogLevel.INFO)

    def log_error(self, error: str, context: Optional[str] = None,
                  user_id: Optional[str] = None,
                  user_name: Optional[str] = None) -> Optional[str]:
        """Error-level entry, prefixed with its context when given."""
        details = f"{context}: {error}" if context else error
        return self.append(LogAction.ERROR, details, user_id, user_name, LogLevel.ERROR)

    def _to_entry(self, document: dict) -> LogEntry:
        timestamp = document.get("timestamp") or document.get("createdAt") or self.clock()
        return LogEntry(
            id=document.get("id"),
            action=document["action"],
            details=document.get("details", ""),
            user_id=document.get("userId"),
            user_name=document.get("userName"),
            level=document.get("level", LogLevel.INFO.value),
            timestamp=to_iso(timestamp)
        )
