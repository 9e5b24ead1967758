# SPDX-License-Identifier: Apache-2.0

"""
Visitor admission policy for registration and checkout.

Registration enforces CPF validity, one open check-in per person and the
per-room capacity; checkout closes a record exactly once. Both emit audit
log entries. The duplicate and capacity checks are read-then-write with no
atomicity across concurrent callers.
"""

import logging
import re
from typing import Callable, Dict, List, Optional, Sequence
from opentelemetry import trace

from .errors import CapacityError, ConflictError, NotFound, ValidationError
from .identification import normalize_cpf, validate as validate_cpf
from ..models.base import utc_now
from ..models.entities import LogEntry, Operator, Visitor, VisitorDraft
from ..models.enums import LogAction, LogLevel, VisitorFilter

logger = logging.getLogger(__name__)
tracer = trace.get_tracer(__name__)

ROOM_CAPACITY = 3

DEFAULT_ROOMS = (
    "Sala Diamante",
    "Sala Esmeralda",
    "Sala Rubi",
    "Sala Safira",
    "Sala Ametista",
)

SYSTEM_OPERATOR = "Sistema"
UNKNOWN_OPERATOR = "Unknown"

EMAIL_PATTERN = re.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$')


def is_valid_email(email: str) -> bool:
    """Basic local@domain.tld shape check."""
    return bool(EMAIL_PATTERN.match(email or ""))


class AdmissionPolicy:
    """Orchestrates visitor registration and checkout."""

    def __init__(
        self,
        directory,
        audit_log,
        rooms: Sequence[str] = DEFAULT_ROOMS,
        capacity: int = ROOM_CAPACITY,
        clock: Callable = utc_now
    ):
        """
        Initialize the policy with its collaborators.

        Args:
            directory: VisitorDirectory
            audit_log: AuditLogService
            rooms: Rooms visitors may be sent to
            capacity: Maximum concurrent in_building visitors per room
            clock: Callable returning the current UTC datetime
        """
        self.directory = directory
        self.audit_log = audit_log
        self.rooms = tuple(rooms)
        self.capacity = capacity
        self.clock = clock

    def register(
        self,
        name: str,
        identification: str,
        email: str,
        date_of_birth: Optional[str],
        room: str,
        operator: Optional[Operator]
    ) -> Visitor:
        """
        Check a visitor into a room.

        Args:
            name: Visitor full name
            identification: CPF in any formatting
            email: Visitor email
            date_of_birth: Optional date of birth
            room: Destination room
            operator: Operator performing the registration

        Returns:
            Visitor: The created in_building record

        Raises:
            ValidationError: Missing field, malformed email, invalid CPF or unknown room
            ConflictError: Person already in the building
            CapacityError: Room already holds the maximum number of visitors
        """
        with tracer.start_as_current_span("admission.register") as span:
            span.set_attribute("admission.room", room or "")

            self._validate_registration(name, identification, email, room)
            clean_cpf = normalize_cpf(identification)

            existing = self.directory.find_most_recent_by_identification(clean_cpf)
            if existing and existing.is_in_building():
                logger.warning(
                    "Registration blocked: visitor already in building",
                    extra={"visitor_id": existing.id, "room": existing.room}
                )
                raise ConflictError(
                    f"Visitante {existing.name} já está no prédio ({existing.room}). "
                    f"Faça checkout antes de registrar em nova sala.",
                    current_room=existing.room
                )

            occupants = self.directory.count_in_room(room)
            if occupants >= self.capacity:
                logger.warning(
                    "Registration blocked: room full",
                    extra={"room": room, "occupants": occupants}
                )
                raise CapacityError(
                    f"Sala {room} está lotada (máximo {self.capacity} visitantes). "
                    f"Escolha outra sala ou aguarde uma vaga.",
                    room=room,
                    capacity=self.capacity
                )

            operator_name, operator_id = self._operator_fields(operator)
            draft = VisitorDraft(
                name=name.strip(),
                cpf=clean_cpf,
                email=email.strip(),
                date_of_birth=date_of_birth or None,
                room=room,
                check_in_time=self.clock(),
                registered_by=operator_name or UNKNOWN_OPERATOR,
                registered_by_id=operator_id
            )
            visitor = self.directory.insert(draft)
            span.set_attribute("admission.visitor_id", visitor.id)

            self.audit_log.append(
                LogAction.VISITOR_REGISTERED,
                f"Visitante {visitor.name} registrado na {visitor.room}",
                operator_id,
                operator_name or SYSTEM_OPERATOR,
                LogLevel.INFO
            )
            return visitor

    def checkout(self, visitor_id: str, operator: Optional[Operator]) -> Visitor:
        """
        Check a visitor out of the building.

        Args:
            visitor_id: Record ID
            operator: Operator performing the checkout

        Returns:
            Visitor: The record re-read after the write

        Raises:
            ValidationError: Empty visitor ID
            NotFound: Unknown ID, or the record cannot be re-read after the write
            ConflictError: Record already checked out
        """
        if not visitor_id or not visitor_id.strip():
            raise ValidationError("ID do visitante é obrigatório")

        with tracer.start_as_current_span("admission.checkout") as span:
            span.set_attribute("admission.visitor_id", visitor_id)

            current = self.directory.get(visitor_id)
            if current is None:
                raise NotFound("Visitante não encontrado", resource_id=visitor_id)
            if not current.can_checkout():
                raise ConflictError(
                    f"Visitante {current.name} já fez checkout da {current.room}.",
                    current_room=None
                )

            self.directory.mark_checked_out(visitor_id, operator, self.clock())

            updated = self.directory.get(visitor_id)
            if updated is None:
                logger.error(
                    "Visitor record missing after checkout write",
                    extra={"visitor_id": visitor_id}
                )
                raise NotFound("Visitante não encontrado após checkout", resource_id=visitor_id)

            operator_name, operator_id = self._operator_fields(operator)
            self.audit_log.append(
                LogAction.VISITOR_CHECKED_OUT,
                f"Visitante {updated.name} fez checkout da {updated.room}",
                operator_id,
                operator_name or SYSTEM_OPERATOR,
                LogLevel.INFO
            )
            return updated

    # Read pass-throughs for the presentation layer

    def list_visitors(self, filter: str = VisitorFilter.ALL) -> List[Visitor]:
        return self.directory.list(filter)

    def visitors_in_room(self, room: str) -> List[Visitor]:
        return self.directory.list_in_room(room)

    def room_occupancy(self) -> Dict[str, int]:
        """Current in_building count for every configured room."""
        return {room: self.directory.count_in_room(room) for room in self.rooms}

    def recent_logs(self, max_entries: int = 100) -> List[LogEntry]:
        return self.audit_log.list(max_entries)

    def _validate_registration(self, name: str, identification: str, email: str, room: str) -> None:
        errors = []
        if not name or not name.strip():
            errors.append("Nome é obrigatório")
        if not identification or not identification.strip():
            errors.append("CPF é obrigatório")
        if not email or not email.strip():
            errors.append("E-mail é obrigatório")
        if errors:
            raise ValidationError(errors[0], errors)

        if not validate_cpf(identification):
            raise ValidationError("CPF inválido")

        if not is_valid_email(email.strip()):
            raise ValidationError("E-mail inválido")

        if not room or not room.strip():
            raise ValidationError("Sala destino é obrigatória")
        if room not in self.rooms:
            raise ValidationError(f"Sala inválida: {room}")

    @staticmethod
    def _operator_fields(operator: Optional[Operator]):
        if operator is None:
            return None, None
        return operator.name, operator.id
