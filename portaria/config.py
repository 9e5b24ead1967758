# SPDX-License-Identifier: Apache-2.0

"""
Runtime configuration read from environment variables.
"""

import os
from typing import Optional, Tuple
from pydantic import BaseModel, Field, field_validator

from .domain.admission import DEFAULT_ROOMS, ROOM_CAPACITY


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


class Settings(BaseModel):
    """Process-wide settings; rooms are fixed once the process starts."""

    environment: str = Field(default="development")
    mongodb_uri: str = Field(default="mongodb://localhost:27017/portaria_dev")
    mongodb_database: str = Field(default="portaria_dev")
    mongodb_max_pool_size: int = Field(default=10, ge=1)
    mongodb_server_selection_timeout_ms: int = Field(default=5000, ge=1)
    store_backend: str = Field(default="mongodb")
    rooms: Tuple[str, ...] = Field(default=DEFAULT_ROOMS)
    room_capacity: int = Field(default=ROOM_CAPACITY, ge=1)
    admin_passphrase: str = Field(default="admin@123")
    jwt_private_key: Optional[str] = Field(default=None)
    jwt_public_key: Optional[str] = Field(default=None)
    jwt_expire_minutes: int = Field(default=480, ge=1)
    log_level: Optional[str] = Field(default=None)
    otel_enabled: bool = Field(default=False)
    service_name: str = Field(default="portaria")
    service_version: str = Field(default="1.0.0")

    @field_validator('store_backend')
    @classmethod
    def validate_store_backend(cls, v):
        """Only MongoDB and the in-memory store are supported."""
        if v not in ('mongodb', 'memory'):
            raise ValueError(f'Unsupported store backend: {v}')
        return v

    @field_validator('rooms')
    @classmethod
    def validate_rooms(cls, v):
        """Room names are stripped and must not be empty."""
        rooms = tuple(room.strip() for room in v if room.strip())
        if not rooms:
            raise ValueError('At least one room must be configured')
        return rooms

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from the process environment."""
        values = {
            "environment": os.getenv('ENVIRONMENT', 'development'),
            "mongodb_uri": os.getenv('MONGODB_URI', 'mongodb://localhost:27017/portaria_dev'),
            "mongodb_database": os.getenv('MONGODB_DATABASE', 'portaria_dev'),
            "mongodb_max_pool_size": int(os.getenv('MONGODB_MAX_POOL_SIZE', '10')),
            "mongodb_server_selection_timeout_ms": int(
                os.getenv('MONGODB_SERVER_SELECTION_TIMEOUT_MS', '5000')
            ),
            "store_backend": os.getenv('PORTARIA_STORE', 'mongodb'),
            "admin_passphrase": os.getenv('PORTARIA_ADMIN_PASSPHRASE', 'admin@123'),
            "jwt_private_key": os.getenv('JWT_PRIVATE_KEY'),
            "jwt_public_key": os.getenv('JWT_PUBLIC_KEY'),
            "jwt_expire_minutes": int(os.getenv('JWT_EXPIRE_MINUTES', '480')),
            "log_level": os.getenv('LOG_LEVEL'),
            "otel_enabled": _flag('OTEL_ENABLED', 'false'),
            "service_version": os.getenv('SERVICE_VERSION', '1.0.0'),
        }

        rooms = os.getenv('PORTARIA_ROOMS')
        if rooms:
            values["rooms"] = tuple(rooms.split(','))

        return cls(**values)
