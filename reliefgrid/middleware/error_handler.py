# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Error handling middleware with structured HAL responses.
Provides centralized error handling and formatting for Flask applications.
"""

from flask import Flask, request, jsonify
from pydantic import ValidationError as PydanticValidationError
from werkzeug.exceptions import HTTPException
from typing import Dict, Any, List, Tuple
from opentelemetry import trace
import logging

from ..domain.errors import CoordinationError, SubmissionThrottled, ValidationError
from ..services.hal import HalFormatter

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)

# Problem type slug and title per HTTP status for werkzeug errors
HTTP_PROBLEMS = {
    400: ("bad-request", "Bad Request"),
    401: ("authentication-required", "Authentication Required"),
    403: ("insufficient-permissions", "Insufficient Permissions"),
    404: ("resource-not-found", "Resource Not Found"),
    405: ("method-not-allowed", "Method Not Allowed"),
    409: ("resource-conflict", "Resource Conflict"),
    415: ("unsupported-media-type", "Unsupported Media Type"),
    422: ("validation-error", "Validation Error"),
    429: ("rate-limit-exceeded", "Rate Limit Exceeded"),
}


def pydantic_errors(error: PydanticValidationError) -> List[Dict[str, Any]]:
    """Flatten pydantic errors into field/message pairs."""
    return [
        {
            "field": ".".join(str(part) for part in item["loc"]),
            "message": item["msg"],
            "type": item["type"]
        }
        for item in error.errors()
    ]


class ErrorHandlerMiddleware:
    """Centralized error handling middleware with HAL response formatting."""

    def __init__(self, app: Flask, hal_formatter: HalFormatter):
        self.app = app
        self.hal_formatter = hal_formatter
        self.register_error_handlers()

    def register_error_handlers(self):
        """Register error handlers with Flask application."""

        @self.app.errorhandler(CoordinationError)
        def handle_coordination_error(error):
            return self.handle_coordination_error(error)

        @self.app.errorhandler(PydanticValidationError)
        def handle_pydantic_error(error):
            return self.handle_request_validation_error(error)

        @self.app.errorhandler(HTTPException)
        def handle_http_exception(error):
            if error.code is not None and error.code >= 500:
                return self.handle_server_error(error)
            return self.handle_client_error(error)

        # Handle generic exceptions
        @self.app.errorhandler(Exception)
        def handle_generic_exception(error):
            return self.handle_unexpected_error(error)

    def handle_coordination_error(self, error: CoordinationError):
        """
        Render a coordination engine error as a problem document.

        Args:
            error: Raised coordination error

        Returns:
            Flask response with the error's status code
        """
        with tracer.start_as_current_span("error_handler.coordination_error") as span:
            span.set_attributes({
                "error.type": error.error_type,
                "error.status": error.status_code,
                "http.method": request.method,
                "http.path": request.path
            })

            logger.warning(
                f"Coordination error: {error.title}",
                extra={
                    "error_type": error.error_type,
                    "status_code": error.status_code,
                    "detail": error.message,
                    "path": request.path,
                    "method": request.method
                }
            )

            validation_errors = error.validation_errors if isinstance(error, ValidationError) else None
            error_response = self.hal_formatter.builder.build_error_response(
                error.error_type,
                error.title,
                error.status_code,
                error.message,
                request.path,
                validation_errors
            )

            response = jsonify(error_response)
            response.status_code = error.status_code
            if isinstance(error, SubmissionThrottled):
                response.headers['Retry-After'] = str(error.retry_after)
            return response

    def handle_request_validation_error(self, error: PydanticValidationError) -> Tuple[Dict[str, Any], int]:
        """Malformed request payloads become 422 with per-field errors."""
        errors = pydantic_errors(error)
        logger.info(
            "Request validation failed",
            extra={"path": request.path, "method": request.method, "errors": errors}
        )
        return self.hal_formatter.format_validation_error(
            "Request validation failed", request.path, errors
        ), 422

    def handle_client_error(self, error: HTTPException) -> Tuple[Dict[str, Any], int]:
        """
        Handle client errors (4xx status codes).

        Args:
            error: HTTP exception

        Returns:
            Tuple of (error response dict, status code)
        """
        error_type, title = HTTP_PROBLEMS.get(error.code, ("client-error", error.name))

        with tracer.start_as_current_span("error_handler.client_error") as span:
            span.set_attributes({
                "error.type": error_type,
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else title

            logger.warning(
                f"Client error: {title}",
                extra={
                    "error_type": error_type,
                    "status_code": error.code,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method,
                    "user_agent": request.headers.get('User-Agent'),
                    "ip_address": request.remote_addr
                }
            )

            error_response = self.hal_formatter.builder.build_error_response(
                error_type,
                title,
                error.code,
                detail,
                request.path
            )

            return error_response, error.code

    def handle_server_error(self, error: HTTPException) -> Tuple[Dict[str, Any], int]:
        """
        Handle server errors (5xx status codes).

        Args:
            error: HTTP exception

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.server_error") as span:
            span.set_attributes({
                "error.type": "server-error",
                "error.status": error.code,
                "http.method": request.method,
                "http.path": request.path
            })

            detail = str(error.description) if error.description else error.name

            logger.error(
                f"Server error: {error.name}",
                extra={
                    "status_code": error.code,
                    "detail": detail,
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            # Don't expose internal error details in production
            if self.app.config.get('ENVIRONMENT') == 'production':
                detail = "An internal server error occurred"

            error_response = self.hal_formatter.format_server_error(detail, request.path)
            error_response['status'] = error.code

            return error_response, error.code

    def handle_unexpected_error(self, error: Exception) -> Tuple[Dict[str, Any], int]:
        """
        Handle unexpected exceptions not caught by specific handlers.

        Args:
            error: Unexpected exception

        Returns:
            Tuple of (error response dict, status code)
        """
        with tracer.start_as_current_span("error_handler.unexpected_error") as span:
            span.set_attributes({
                "error.type": "unexpected-error",
                "error.class": error.__class__.__name__,
                "http.method": request.method,
                "http.path": request.path
            })

            # Record exception in span
            span.record_exception(error)

            logger.error(
                f"Unexpected error: {error.__class__.__name__}",
                extra={
                    "error_type": "unexpected-error",
                    "error_class": error.__class__.__name__,
                    "error_message": str(error),
                    "path": request.path,
                    "method": request.method
                },
                exc_info=True
            )

            # Don't expose internal error details
            detail = "An unexpected error occurred"
            if self.app.config.get('ENVIRONMENT') != 'production':
                detail = f"{error.__class__.__name__}: {str(error)}"

            error_response = self.hal_formatter.format_server_error(detail, request.path)

            return error_response, 500
