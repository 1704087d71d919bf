# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
CORS middleware for the public map and coordination frontends.
"""

from flask import Flask, request, make_response
from typing import List, Optional
import logging

from .rate_limit import CLIENT_TOKEN_HEADER

logger = logging.getLogger(__name__)

DEVELOPMENT_ORIGINS = [
    'http://localhost:3000',
    'http://localhost:5173',
    'http://127.0.0.1:3000',
    'http://127.0.0.1:5173'
]


class CORSMiddleware:
    """Origin allow-list with preflight handling."""

    def __init__(
        self,
        app: Flask,
        allowed_origins: Optional[List[str]] = None,
        allow_credentials: bool = True,
        max_age: int = 86400
    ):
        self.app = app
        self.allowed_origins = list(allowed_origins or [])
        self.allowed_methods = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS', 'HEAD']
        self.allowed_headers = [
            'Accept',
            'Authorization',
            'Content-Type',
            CLIENT_TOKEN_HEADER,
            'X-Requested-With'
        ]
        self.expose_headers = [
            'Content-Disposition',
            'Retry-After',
            'X-Trace-Id'
        ]
        self.allow_credentials = allow_credentials
        self.max_age = max_age

        self.register_cors_handlers()

    def is_origin_allowed(self, origin: Optional[str]) -> bool:
        """Exact matches, ``*`` and trailing-wildcard prefixes."""
        if not origin:
            return False

        for allowed_origin in self.allowed_origins:
            if allowed_origin == '*' or allowed_origin == origin:
                return True
            if allowed_origin.endswith('*') and origin.startswith(allowed_origin[:-1]):
                return True
        return False

    def add_cors_headers(self, response, origin: str):
        response.headers['Access-Control-Allow-Origin'] = origin
        if self.allow_credentials:
            response.headers['Access-Control-Allow-Credentials'] = 'true'
        response.headers['Access-Control-Allow-Methods'] = ', '.join(self.allowed_methods)
        response.headers['Access-Control-Allow-Headers'] = ', '.join(self.allowed_headers)
        response.headers['Access-Control-Expose-Headers'] = ', '.join(self.expose_headers)
        response.headers['Access-Control-Max-Age'] = str(self.max_age)
        response.headers.add('Vary', 'Origin')
        return response

    def register_cors_handlers(self):
        """Register CORS handlers with Flask application."""

        @self.app.before_request
        def handle_preflight():
            if request.method != 'OPTIONS':
                return None

            origin = request.headers.get('Origin')
            if not self.is_origin_allowed(origin):
                logger.warning("CORS preflight rejected", extra={"origin": origin})
                return make_response('', 403)

            return self.add_cors_headers(make_response('', 204), origin)

        @self.app.after_request
        def add_cors_headers_to_response(response):
            origin = request.headers.get('Origin')
            if request.method != 'OPTIONS' and self.is_origin_allowed(origin):
                self.add_cors_headers(response, origin)
            return response


def parse_origins(value: Optional[str], environment: str) -> List[str]:
    """Comma-separated ``CORS_ALLOWED_ORIGINS`` plus local dev servers in development."""
    origins = [origin.strip() for origin in (value or '').split(',') if origin.strip()]
    if environment == 'development':
        origins.extend(DEVELOPMENT_ORIGINS)
    return origins


def configure_cors(app: Flask, **kwargs) -> CORSMiddleware:
    return CORSMiddleware(app, **kwargs)
