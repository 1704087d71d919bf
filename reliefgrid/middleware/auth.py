# SPDX-License-Identifier: Apache-2.0

"""
Authentication middleware resolving the current actor for each request.

A missing, expired or malformed token never fails the request: the caller is
treated as the guest actor and the access policy decides what a guest may do.
"""

from flask import Flask, request, g
from typing import Optional
from opentelemetry import trace
import logging

from ..models.entities import Actor, GUEST
from ..services.auth import TokenValidationError
from .rate_limit import CLIENT_TOKEN_HEADER

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class AuthMiddleware:
    """
    JWT authentication middleware for Flask applications.

    Handles token extraction and validation and stores the resolved actor on
    ``flask.g`` for the view functions.
    """

    def __init__(self, auth_service, app: Optional[Flask] = None):
        """
        Initialize the authentication middleware.

        Args:
            auth_service: JWT identity service
            app: Flask application to register with
        """
        self.auth_service = auth_service
        if app is not None:
            self.init_app(app)

    def init_app(self, app: Flask) -> None:
        app.before_request(self._load_actor)
        app.extensions["auth_middleware"] = self

    def extract_token_from_request(self) -> Optional[str]:
        """
        Extract JWT token from request headers.

        Returns:
            JWT token string or None if not found
        """
        auth_header = request.headers.get('Authorization', '')

        if not auth_header:
            return None

        # Handle "Bearer <token>" format
        if auth_header.startswith('Bearer '):
            return auth_header[7:].strip() or None

        return auth_header

    def resolve_actor(self) -> Actor:
        """Actor for the current request, guest when identity is absent."""
        client_token = request.headers.get(CLIENT_TOKEN_HEADER) or None
        token = self.extract_token_from_request()

        if not token:
            return GUEST.model_copy(update={"client_token": client_token})

        with tracer.start_as_current_span("auth.middleware.resolve_actor") as span:
            try:
                actor = self.auth_service.actor_from_token(token, client_token=client_token)
            except TokenValidationError as e:
                span.set_attribute("auth.result", "guest")
                logger.info("Treating caller as guest", extra={"reason": str(e)})
                return GUEST.model_copy(update={"client_token": client_token})

            span.set_attributes({"auth.result": "authenticated", "actor.role": actor.role})
            return actor

    def _load_actor(self) -> None:
        g.actor = self.resolve_actor()


def current_actor() -> Actor:
    """The actor resolved for this request, guest outside a resolved request."""
    return getattr(g, "actor", None) or GUEST
