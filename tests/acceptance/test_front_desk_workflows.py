"""
Acceptance tests for the front desk workflows.

Tests complete operator journeys from sign-in to visitor checkout through
the wired services, validating admission rules and the audit trail.
"""

import pytest
from datetime import datetime

from portaria.config import Settings
from portaria.container import create_services
from portaria.domain.errors import CapacityError, ConflictError, NotFound
from portaria.models.entities import Operator


class TestFrontDeskWorkflowAcceptance:
    """Acceptance tests for visitor check-in and checkout."""

    @pytest.fixture(autouse=True)
    def setup_front_desk(self):
        """Wire every service around an in-memory store."""
        settings = Settings(
            environment="test",
            store_backend="memory",
            rooms=("Room 101", "Sala Rubi")
        )
        self.services = create_services(settings)
        self.admission = self.services.admission
        self.audit_log = self.services.audit_log
        self.operator = Operator(id="user123", email="admin@x.com", name="Admin User", role="admin")
        yield
        self.services.close()

    def test_register_and_checkout_journey(self):
        """Register, check the audit trail, checkout, check again."""
        visitor = self.admission.register(
            "John Doe", "04017817807", "john@x.com", None, "Room 101", self.operator
        )

        assert visitor.status == "in_building"
        newest = self.audit_log.list()[0]
        assert newest.action == "VISITOR_REGISTERED"
        assert "Room 101" in newest.details

        updated = self.admission.checkout(visitor.id, self.operator)

        assert updated.status == "checked_out"
        assert datetime.fromisoformat(updated.check_out_time) >= datetime.fromisoformat(updated.check_in_time)
        newest = self.audit_log.list()[0]
        assert newest.action == "VISITOR_CHECKED_OUT"
        assert newest.details == "Visitante John Doe fez checkout da Room 101"

    def test_room_fills_up_and_frees(self):
        """Three visitors fit, the fourth waits until someone leaves."""
        cpfs = ["04017817807", "52998224725", "11144477735", "12345678909"]
        admitted = [
            self.admission.register(f"Visitante {i}", cpf, f"v{i}@x.com", None, "Room 101", self.operator)
            for i, cpf in enumerate(cpfs[:3])
        ]

        with pytest.raises(CapacityError):
            self.admission.register("Visitante 3", cpfs[3], "v3@x.com", None, "Room 101", self.operator)

        self.admission.checkout(admitted[1].id, self.operator)
        late = self.admission.register("Visitante 3", cpfs[3], "v3@x.com", None, "Room 101", self.operator)

        assert late.status == "in_building"
        assert self.admission.room_occupancy()["Room 101"] == 3

    def test_person_moves_rooms_only_after_checkout(self):
        """A visitor in one room must check out before going to another."""
        first = self.admission.register(
            "Maria Silva", "935.411.347-80", "maria@x.com", "1985-03-02", "Room 101", self.operator
        )

        with pytest.raises(ConflictError) as exc_info:
            self.admission.register(
                "Maria Silva", "93541134780", "maria@x.com", "1985-03-02", "Sala Rubi", self.operator
            )
        assert "Room 101" in exc_info.value.message

        self.admission.checkout(first.id, self.operator)
        second = self.admission.register(
            "Maria Silva", "93541134780", "maria@x.com", "1985-03-02", "Sala Rubi", self.operator
        )

        history = self.admission.list_visitors("all")
        assert [v.id for v in history] == [second.id, first.id]
        assert [v.id for v in self.admission.list_visitors("in_building")] == [second.id]

    def test_checkout_of_unknown_visitor(self):
        with pytest.raises(NotFound):
            self.admission.checkout("665f1c2e9b1e8a0012345678", self.operator)

    def test_operator_session_drives_audit_identity(self):
        """Operators sign up, sign in and their identity lands in the log."""
        identity = self.services.identity
        sessions = []
        subscription = identity.on_change(sessions.append)

        identity.register("porteiro@x.com", "s3nha-forte", "Carlos", "admin@123")
        identity.logout()
        operator = identity.login("porteiro@x.com", "s3nha-forte")
        self.admission.register("John Doe", "04017817807", "john@x.com", None, "Room 101", operator)
        subscription.unsubscribe()
        identity.logout()

        actions = [entry.action for entry in self.audit_log.list()]
        assert actions == [
            "USER_LOGOUT", "VISITOR_REGISTERED", "USER_LOGIN", "USER_LOGOUT", "USER_REGISTRATION"
        ]
        assert self.audit_log.list()[1].user_name == "Carlos"
        assert [s.name if s else None for s in sessions] == [None, "Carlos", None, "Carlos"]
