# SPDX-License-Identifier: Apache-2.0

"""
Tests for settings, observability setup and service wiring.
"""

import pytest
from pydantic import ValidationError as PydanticValidationError

from portaria.config import Settings
from portaria.container import create_services, create_store
from portaria.domain.admission import DEFAULT_ROOMS
from portaria.observability.config import setup_observability
from portaria.services.memory_store import InMemoryDocumentStore
from portaria.services.mongodb import MongoDBService


class TestSettings:

    def test_defaults(self, monkeypatch):
        for name in ('PORTARIA_ROOMS', 'PORTARIA_STORE', 'OTEL_ENABLED', 'MONGODB_URI'):
            monkeypatch.delenv(name, raising=False)

        settings = Settings.from_env()

        assert settings.rooms == DEFAULT_ROOMS
        assert settings.room_capacity == 3
        assert settings.store_backend == "mongodb"
        assert settings.otel_enabled is False
        assert settings.mongodb_uri == "mongodb://localhost:27017/portaria_dev"

    def test_rooms_from_environment(self, monkeypatch):
        monkeypatch.setenv('PORTARIA_ROOMS', 'Sala A, Sala B,,')

        assert Settings.from_env().rooms == ("Sala A", "Sala B")

    def test_store_backend_from_environment(self, monkeypatch):
        monkeypatch.setenv('PORTARIA_STORE', 'memory')

        assert Settings.from_env().store_backend == "memory"

    def test_rejects_unknown_backend(self):
        with pytest.raises(PydanticValidationError):
            Settings(store_backend="firestore")

    def test_rejects_empty_rooms(self):
        with pytest.raises(PydanticValidationError):
            Settings(rooms=(" ",))


class TestContainer:

    def test_create_store(self):
        assert isinstance(create_store(Settings(store_backend="memory")), InMemoryDocumentStore)
        assert isinstance(create_store(Settings()), MongoDBService)

    def test_services_share_one_store(self):
        settings = Settings(store_backend="memory", rooms=("Room 101",), room_capacity=2)

        container = create_services(settings)

        assert container.directory.store is container.store
        assert container.audit_log.store is container.store
        assert container.identity.store is container.store
        assert container.admission.rooms == ("Room 101",)
        assert container.admission.capacity == 2
        container.close()

    def test_injected_store_is_used(self):
        store = InMemoryDocumentStore()

        container = create_services(Settings(), store=store)

        assert container.store is store


class TestObservability:

    def test_disabled_tracing_returns_none(self):
        assert setup_observability(Settings(environment="test")) is None

    def test_enabled_tracing_builds_provider(self):
        provider = setup_observability(
            Settings(environment="staging", otel_enabled=True, log_level="debug")
        )

        assert provider is not None
        assert provider.resource.attributes["service.name"] == "portaria"
