# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from datetime import datetime, timedelta, timezone

from portaria.domain.admission import AdmissionPolicy, DEFAULT_ROOMS
from portaria.models.entities import Operator
from portaria.services.audit import AuditLogService
from portaria.services.auth import IdentityProvider, TokenService
from portaria.services.memory_store import InMemoryDocumentStore
from portaria.services.visitors import VisitorDirectory

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['MONGODB_DATABASE'] = 'portaria_test'

ADMIN_PASSPHRASE = "admin@123"


class TickingClock:
    """Clock that advances one second per reading."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        current = self.now
        self.now = current + timedelta(seconds=1)
        return current


@pytest.fixture
def clock():
    """Deterministic, strictly increasing UTC clock."""
    return TickingClock(datetime(2024, 5, 6, 9, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def store():
    """Fresh in-memory document store."""
    memory_store = InMemoryDocumentStore()
    yield memory_store
    memory_store.close_connection()


@pytest.fixture
def audit_log(store, clock):
    return AuditLogService(store, clock=clock)


@pytest.fixture
def directory(store, clock):
    return VisitorDirectory(store, clock=clock)


@pytest.fixture
def rooms():
    return DEFAULT_ROOMS + ("Room 101",)


@pytest.fixture
def admission(directory, audit_log, rooms, clock):
    return AdmissionPolicy(directory, audit_log, rooms=rooms, clock=clock)


@pytest.fixture(scope="session")
def token_service():
    """Token service with a development key pair, generated once."""
    return TokenService(expire_minutes=60)


@pytest.fixture
def identity(store, audit_log, token_service, clock):
    return IdentityProvider(
        store,
        audit_log,
        admin_passphrase=ADMIN_PASSPHRASE,
        token_service=token_service,
        clock=clock
    )


@pytest.fixture
def operator():
    """Signed-in operator performing front desk actions."""
    return Operator(id="user123", email="admin@portaria.com.br", name="Admin User", role="admin")


@pytest.fixture
def valid_cpfs():
    """CPFs with correct check digits."""
    return ["04017817807", "52998224725", "11144477735", "12345678909", "93541134780"]


@pytest.fixture
def sample_visitor_data():
    """Sample registration input."""
    return {
        "name": "John Doe",
        "identification": "040.178.178-07",
        "email": "john@example.com",
        "date_of_birth": "1990-01-01",
        "room": "Sala Diamante"
    }
