# SPDX-License-Identifier: Apache-2.0

"""
Identity service for bearer JWT tokens.

Tokens are issued by the external identity provider and carry the caller's
id, display name and role. This module decodes them into an Actor; it never
manages sessions or passwords.
"""

import os
import jwt
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from opentelemetry import trace
import logging

from ..models.entities import Actor
from ..models.enums import ActorRole

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class TokenValidationError(Exception):
    """Raised when token validation fails."""
    pass


class AuthService:
    """
    JWT verification with a shared HS256 secret.

    ``generate_token`` mirrors what the identity provider issues and is used by
    operators and tests to mint tokens.
    """

    def __init__(self, secret: Optional[str] = None, algorithm: Optional[str] = None,
                 access_token_expire_minutes: int = 60):
        """
        Initialize the identity service.

        Args:
            secret: Shared signing secret
            algorithm: JWT algorithm, HS256 by default
            access_token_expire_minutes: Lifetime of minted tokens
        """
        self.secret = secret or os.getenv("JWT_SECRET") or self._dev_secret()
        self.algorithm = algorithm or os.getenv("JWT_ALGORITHM", "HS256")
        self.access_token_expire_minutes = access_token_expire_minutes

    @staticmethod
    def _dev_secret() -> str:
        logger.warning("No JWT_SECRET found, using development secret")
        return "reliefgrid-development-secret-change-me"

    def generate_token(self, actor_id: str, role: str, name: Optional[str] = None) -> str:
        """
        Mint an access token for an actor.

        Args:
            actor_id: Subject identifier
            role: One of the actor roles
            name: Display name

        Returns:
            Encoded JWT
        """
        with tracer.start_as_current_span("auth.generate_token") as span:
            span.set_attributes({"auth.operation": "generate_token", "actor.role": role})

            now = datetime.now(timezone.utc)
            payload = {
                "sub": actor_id,
                "role": ActorRole(role).value,
                "name": name,
                "iat": now,
                "exp": now + timedelta(minutes=self.access_token_expire_minutes),
                "type": "access"
            }
            return jwt.encode(payload, self.secret, algorithm=self.algorithm)

    def validate_token(self, token: str) -> Dict[str, Any]:
        """
        Validate and decode a JWT token.

        Args:
            token: JWT token string to validate

        Returns:
            Decoded token payload

        Raises:
            TokenValidationError: If token is invalid or expired
        """
        with tracer.start_as_current_span("auth.validate_token") as span:
            span.set_attribute("auth.operation", "validate_token")

            try:
                payload = jwt.decode(
                    token,
                    self.secret,
                    algorithms=[self.algorithm],
                    options={"verify_exp": True, "require": ["sub", "exp"]}
                )
            except jwt.ExpiredSignatureError:
                span.set_attribute("auth.validation_result", "expired")
                logger.warning("Token validation failed: token expired")
                raise TokenValidationError("Token has expired")
            except jwt.InvalidTokenError as e:
                span.set_attribute("auth.validation_result", "invalid")
                logger.warning(f"Token validation failed: {str(e)}")
                raise TokenValidationError(f"Invalid token: {str(e)}")

            if payload.get("type", "access") != "access":
                span.set_attribute("auth.validation_result", "wrong_type")
                raise TokenValidationError("Invalid token type. Expected access")

            span.set_attributes({
                "auth.validation_result": "success",
                "actor.id": payload.get("sub")
            })
            return payload

    def actor_from_token(self, token: str, client_token: Optional[str] = None) -> Actor:
        """
        Build the Actor a token describes.

        Raises:
            TokenValidationError: If the token is invalid or names an unknown role
        """
        payload = self.validate_token(token)
        try:
            role = ActorRole(payload.get("role", ActorRole.VOLUNTEER.value))
        except ValueError:
            raise TokenValidationError(f"Unknown role: {payload.get('role')}")

        return Actor(
            id=str(payload["sub"]),
            role=role,
            name=payload.get("name"),
            client_token=client_token
        )
