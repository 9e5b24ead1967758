# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Visitor directory: authoritative store of visitor check-in/check-out records.

Stored documents use camelCase fields and native datetimes; records leaving
the directory are Visitor models with ISO-8601 UTC timestamps.
"""

import logging
from datetime import datetime
from typing import List, Optional, Union
from opentelemetry import trace

from .mongodb import VISITORS_COLLECTION
from ..domain.admission import UNKNOWN_OPERATOR
from ..domain.errors import NotFound, ValidationError
from ..domain.identification import normalize_cpf
from ..models.base import utc_now, to_iso
from ..models.entities import Operator, Visitor, VisitorDraft
from ..models.enums import VisitorFilter, VisitorStatus

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

_EPOCH = datetime.min


def _sort_key(document: dict):
    created_at = document.get("createdAt")
    if created_at is None:
        return _EPOCH
    # Compare naive and aware datetimes on the same footing
    return created_at.replace(tzinfo=None) if created_at.tzinfo else created_at


def _newest_first(documents: List[dict]) -> List[dict]:
    # Ties keep the newest insertion first
    return sorted(reversed(documents), key=_sort_key, reverse=True)


class VisitorDirectory:
    """Visitor persistence and queries over a document store."""

    def __init__(self, store, clock=utc_now):
        """
        Initialize the directory with a document store dependency.

        Args:
            store: MongoDBService or InMemoryDocumentStore
            clock: Callable returning the current UTC datetime
        """
        self.store = store
        self.clock = clock
        self.collection_name = VISITORS_COLLECTION
        logger.info("Visitor directory initialized")

    def find_most_recent_by_identification(self, cpf: str) -> Optional[Visitor]:
        """
        Most recently created record for a CPF.

        Args:
            cpf: CPF in any formatting

        Returns:
            Optional[Visitor]: Latest record, or None if the CPF is unknown
        """
        clean_cpf = normalize_cpf(cpf)
        if not clean_cpf:
            return None

        with tracer.start_as_current_span("visitors.find_by_cpf"):
            documents = self.store.find(self.collection_name, {"cpf": clean_cpf})
            if not documents:
                return None

            latest = _newest_first(documents)[0]
            logger.debug(f"Found {len(documents)} records for CPF, latest {latest['id']}")
            return self._to_visitor(latest)

    def list_in_room(self, room: str,
                     status: Union[str, VisitorStatus] = VisitorStatus.IN_BUILDING) -> List[Visitor]:
        """Records assigned to a room with the given status, newest first."""
        with tracer.start_as_current_span("visitors.list_in_room") as span:
            status_value = VisitorStatus(status).value
            span.set_attributes({"visitors.room": room, "visitors.status": status_value})

            documents = self.store.find(
                self.collection_name, {"room": room, "status": status_value}
            )
            return [self._to_visitor(doc) for doc in _newest_first(documents)]

    def count_in_room(self, room: str,
                      status: Union[str, VisitorStatus] = VisitorStatus.IN_BUILDING) -> int:
        """Number of records assigned to a room with the given status."""
        return self.store.count(
            self.collection_name, {"room": room, "status": VisitorStatus(status).value}
        )

    def list(self, filter: Union[str, VisitorFilter] = VisitorFilter.ALL) -> List[Visitor]:
        """
        List visitors, always sorted by creation time descending.

        Args:
            filter: "all", "in_building" or "checked_out"

        Returns:
            List[Visitor]: Matching records

        Raises:
            ValidationError: If the filter is not recognised
        """
        try:
            visitor_filter = VisitorFilter(filter)
        except ValueError:
            raise ValidationError(f"Filtro inválido: {filter}")

        with tracer.start_as_current_span("visitors.list") as span:
            span.set_attribute("visitors.filter", visitor_filter.value)

            filters = None
            if visitor_filter != VisitorFilter.ALL:
                filters = {"status": visitor_filter.value}

            documents = self.store.find(self.collection_name, filters)
            return [self._to_visitor(doc) for doc in _newest_first(documents)]

    def get(self, visitor_id: str) -> Optional[Visitor]:
        """Point read of a visitor record."""
        document = self.store.find_one_by_id(self.collection_name, visitor_id)
        return self._to_visitor(document) if document else None

    def insert(self, draft: VisitorDraft) -> Visitor:
        """
        Persist a new in_building visitor record.

        Args:
            draft: Validated insert payload

        Returns:
            Visitor: Created record with its generated ID
        """
        with tracer.start_as_current_span("visitors.insert") as span:
            now = self.clock()
            document = draft.to_document()
            document["createdAt"] = now
            document["updatedAt"] = now

            visitor_id = self.store.create(self.collection_name, document)
            span.set_attribute("visitors.id", visitor_id)

            logger.info(
                "Visitor record created",
                extra={"visitor_id": visitor_id, "room": draft.room}
            )

            document["id"] = visitor_id
            return self._to_visitor(document)

    def mark_checked_out(self, visitor_id: str, operator: Optional[Operator],
                         now: Optional[datetime] = None) -> None:
        """
        Close a visitor record.

        Args:
            visitor_id: Record ID
            operator: Operator performing the checkout
            now: Checkout timestamp (defaults to the directory clock)

        Raises:
            NotFound: If no record has this ID
        """
        with tracer.start_as_current_span("visitors.mark_checked_out") as span:
            span.set_attribute("visitors.id", visitor_id)
            now = now or self.clock()
            updates = {
                "status": VisitorStatus.CHECKED_OUT.value,
                "checkOutTime": now,
                "checkedOutBy": (operator.name if operator else None) or UNKNOWN_OPERATOR,
                "checkedOutById": operator.id if operator else None,
                "updatedAt": now
            }

            if not self.store.update_by_id(self.collection_name, visitor_id, updates):
                logger.warning("Checkout target not found", extra={"visitor_id": visitor_id})
                raise NotFound("Visitante não encontrado", resource_id=visitor_id)

            logger.info("Visitor record checked out", extra={"visitor_id": visitor_id})

    def _to_visitor(self, document: dict) -> Visitor:
        created_at = to_iso(document.get("createdAt")) or to_iso(self.clock())
        return Visitor(
            id=document["id"],
            name=document["name"],
            cpf=document["cpf"],
            email=document["email"],
            date_of_birth=document.get("dateOfBirth"),
            room=document["room"],
            status=document["status"],
            check_in_time=to_iso(document.get("checkInTime")),
            check_out_time=to_iso(document.get("checkOutTime")),
            registered_by=document.get("registeredBy") or UNKNOWN_OPERATOR,
            registered_by_id=document.get("registeredById"),
            checked_in_by=document.get("checkedInBy"),
            checked_in_by_id=document.get("checkedInById"),
            checked_out_by=document.get("checkedOutBy"),
            checked_out_by_id=document.get("checkedOutById"),
            created_at=created_at,
            updated_at=to_iso(document.get("updatedAt")) or created_at
        )
