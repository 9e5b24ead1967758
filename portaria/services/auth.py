# SPDX-License-Identifier: Apache-2.0

"""
Operator identity provider: login, registration, logout and session changes.

Passwords are hashed with bcrypt; sessions can be carried across requests
as RS256-signed JWTs. Session changes are published on a SessionChannel so
the presentation layer can follow the signed-in operator.
"""

import os
import jwt
import bcrypt
import logging
from datetime import datetime, timedelta, timezone
from itertools import count
from typing import Callable, Dict, Optional, Tuple
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from opentelemetry import trace

from .mongodb import USERS_COLLECTION, DuplicateDocumentError
from ..domain.errors import ConflictError, ValidationError
from ..models.base import utc_now
from ..models.entities import Operator
from ..models.enums import LogAction, LogLevel, OperatorRole

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

SessionCallback = Callable[[Optional[Operator]], None]


class AuthenticationError(Exception):
    """Raised when authentication fails."""
    pass


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


class Subscription:
    """Handle returned by SessionChannel.subscribe."""

    def __init__(self, channel: "SessionChannel", key: int):
        self._channel = channel
        self._key = key

    @property
    def active(self) -> bool:
        return self._key in self._channel._subscribers

    def unsubscribe(self) -> None:
        """Stop delivery to this subscriber. Safe to call twice."""
        self._channel._subscribers.pop(self._key, None)


class SessionChannel:
    """Observable holding the current operator (or None when signed out)."""

    def __init__(self):
        self._subscribers: Dict[int, SessionCallback] = {}
        self._keys = count()
        self.current: Optional[Operator] = None

    def subscribe(self, callback: SessionCallback) -> Subscription:
        """Register a callback; it immediately receives the current value."""
        key = next(self._keys)
        self._subscribers[key] = callback
        self._deliver(callback, self.current)
        return Subscription(self, key)

    def publish(self, operator: Optional[Operator]) -> None:
        """Set the current value and notify every subscriber."""
        self.current = operator
        for callback in list(self._subscribers.values()):
            self._deliver(callback, operator)

    @staticmethod
    def _deliver(callback: SessionCallback, operator: Optional[Operator]) -> None:
        try:
            callback(operator)
        except Exception as e:
            logger.error(f"Session subscriber failed: {str(e)}", exc_info=True)


class TokenService:
    """RS256 session token issue and validation."""

    def __init__(self, private_key: Optional[str] = None, public_key: Optional[str] = None,
                 expire_minutes: int = 480):
        """
        Initialize the token service.

        Args:
            private_key: RS256 private key for token signing (PEM format)
            public_key: RS256 public key for token verification (PEM format)
            expire_minutes: Session token lifetime
        """
        private_key = private_key or os.getenv("JWT_PRIVATE_KEY")
        public_key = public_key or os.getenv("JWT_PUBLIC_KEY")
        if not (private_key and public_key):
            logger.warning("No JWT key pair configured, generating development key pair")
            private_key, public_key = self._generate_dev_key_pair()

        self.private_key = private_key
        self.public_key = public_key
        self.algorithm = "RS256"
        self.expire_minutes = expire_minutes

    @staticmethod
    def _generate_dev_key_pair() -> Tuple[str, str]:
        """Generate RSA key pair for development use."""
        private_key = rsa.generate_private_key(
            public_exponent=65537,
            key_size=2048
        )

        private_pem = private_key.private_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PrivateFormat.PKCS8,
            encryption_algorithm=serialization.NoEncryption()
        ).decode('utf-8')

        public_pem = private_key.public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo
        ).decode('utf-8')

        return private_pem, public_pem

    def issue(self, operator: Operator) -> str:
        """Sign a session token for an operator."""
        now = datetime.now(timezone.utc)
        payload = {
            "sub": operator.id,
            "email": operator.email,
            "name": operator.name,
            "role": operator.role,
            "iat": now,
            "exp": now + timedelta(minutes=self.expire_minutes),
            "type": "session"
        }
        return jwt.encode(payload, self.private_key, algorithm=self.algorithm)

    def validate(self, token: str) -> Dict:
        """
        Validate and decode a session token.

        Raises:
            TokenValidationError: If token is invalid or expired
        """
        try:
            payload = jwt.decode(
                token,
                self.public_key,
                algorithms=[self.algorithm],
                options={"verify_exp": True}
            )
        except jwt.ExpiredSignatureError:
            logger.warning("Token validation failed: token expired")
            raise TokenValidationError("Token has expired")
        except jwt.InvalidTokenError as e:
            logger.warning(f"Token validation failed: {str(e)}")
            raise TokenValidationError(f"Invalid token: {str(e)}")

        if payload.get("type") != "session":
            raise TokenValidationError("Invalid token type. Expected session")
        return payload


def hash_password(password: str) -> str:
    """Hash a password using bcrypt with salt."""
    salt = bcrypt.gensalt(rounds=12)
    return bcrypt.hashpw(password.encode('utf-8'), salt).decode('utf-8')


def verify_password(password: str, hashed_password: str) -> bool:
    """Verify a password against its bcrypt hash."""
    try:
        return bcrypt.checkpw(password.encode('utf-8'), hashed_password.encode('utf-8'))
    except (ValueError, TypeError) as e:
        logger.error(f"Password verification error: {str(e)}")
        return False


class IdentityProvider:
    """
    Authenticates operators against the ``users`` collection.

    Registration is gated by a shared admin passphrase. Every sign-in,
    sign-out and registration is written to the audit log and published on
    the session channel.
    """

    def __init__(self, store, audit_log, admin_passphrase: str,
                 token_service: Optional[TokenService] = None,
                 channel: Optional[SessionChannel] = None,
                 clock=utc_now):
        self.store = store
        self.audit_log = audit_log
        self.admin_passphrase = admin_passphrase
        self.token_service = token_service or TokenService()
        self.channel = channel or SessionChannel()
        self.clock = clock
        self.collection_name = USERS_COLLECTION

    @property
    def current_operator(self) -> Optional[Operator]:
        return self.channel.current

    def login(self, email: str, password: str) -> Operator:
        """
        Authenticate an operator by email and password.

        Raises:
            AuthenticationError: Missing credentials, unknown email or wrong password
        """
        if not email or not password:
            raise AuthenticationError("Email and password are required")

        with tracer.start_as_current_span("auth.login") as span:
            users = self.store.find(self.collection_name, {"email": email.strip().lower()}, limit=1)
            if not users or not verify_password(password, users[0].get("passwordHash", "")):
                span.set_attribute("auth.result", "failed")
                logger.warning("Login failed", extra={"email": email})
                raise AuthenticationError("Login failed: invalid credentials")

            operator = self._to_operator(users[0])
            span.set_attribute("auth.result", "success")

            self.audit_log.append(
                LogAction.USER_LOGIN,
                f"Usuário {operator.name} fez login",
                operator.id,
                operator.name,
                LogLevel.INFO
            )
            self.channel.publish(operator)
            return operator

    def register(self, email: str, password: str, name: str, admin_passphrase: str) -> Operator:
        """
        Create an admin operator account.

        Raises:
            ValidationError: Missing email, password or name
            AuthenticationError: Wrong admin passphrase
            ConflictError: Email already registered
        """
        if not email or not password or not name or not name.strip():
            raise ValidationError("Email, password, and name are required")

        if admin_passphrase != self.admin_passphrase:
            logger.warning("Operator registration rejected: wrong admin passphrase")
            raise AuthenticationError("Invalid admin password")

        with tracer.start_as_current_span("auth.register"):
            document = {
                "email": email.strip().lower(),
                "name": name.strip(),
                "role": OperatorRole.ADMIN.value,
                "passwordHash": hash_password(password),
                "createdAt": self.clock()
            }
            try:
                user_id = self.store.create(self.collection_name, document)
            except DuplicateDocumentError:
                raise ConflictError("E-mail já cadastrado")

            document["id"] = user_id
            operator = self._to_operator(document)

            self.audit_log.append(
                LogAction.USER_REGISTRATION,
                f"Novo usuário {operator.name} foi registrado",
                operator.id,
                operator.name,
                LogLevel.INFO
            )
            self.channel.publish(operator)
            return operator

    def logout(self) -> None:
        """Sign the current operator out."""
        operator = self.channel.current
        if operator:
            self.audit_log.append(
                LogAction.USER_LOGOUT,
                "Usuário fez logout",
                operator.id,
                operator.name or operator.email or "Unknown",
                LogLevel.INFO
            )
        self.channel.publish(None)

    def on_change(self, callback: SessionCallback) -> Subscription:
        """Follow the signed-in operator; returns an unsubscribe handle."""
        return self.channel.subscribe(callback)

    def issue_token(self, operator: Operator) -> str:
        return self.token_service.issue(operator)

    def restore(self, token: str) -> Operator:
        """
        Resume a session from a token issued by ``issue_token``.

        Raises:
            TokenValidationError: Invalid or expired token, or the account no longer exists
        """
        payload = self.token_service.validate(token)
        document = self.store.find_one_by_id(self.collection_name, payload.get("sub"))
        if document is None:
            raise TokenValidationError("User profile not found")

        operator = self._to_operator(document)
        self.channel.publish(operator)
        return operator

    @staticmethod
    def _to_operator(document: dict) -> Operator:
        return Operator(
            id=document["id"],
            email=document.get("email"),
            name=document.get("name"),
            role=document.get("role") or OperatorRole.USER.value
        )
