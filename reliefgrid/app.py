"""
Relief Grid API - Flask Application Entry Point

This module builds the Flask application with OpenAPI 3.0 support, wires
storage, identity and the submission throttle, and registers the
coordination endpoints.
"""

import os
from typing import Any, Dict, Optional

from flask_openapi3 import OpenAPI, Info

from . import __version__
from .middleware.auth import AuthMiddleware
from .middleware.cors import configure_cors, parse_origins
from .middleware.error_handler import ErrorHandlerMiddleware
from .middleware.rate_limit import DEFAULT_COOLDOWN_SECONDS, SubmissionThrottle
from .models.enums import ReceiptPolicy
from .observability.config import setup_observability, setup_structured_logging
from .observability.middleware import add_observability_middleware
from .routes.announcements import announcements_bp
from .routes.areas import areas_bp
from .routes.donations import donations_bp
from .routes.feeds import feeds_bp
from .routes.grids import grids_bp
from .routes.health import health_bp
from .routes.registrations import registrations_bp
from .services.auth import AuthService
from .services.coordination import CoordinationService
from .services.hal import create_hal_formatter
from .services.health import HealthCheckService
from .services.mongodb import MongoRepository
from .services.redis import RedisService
from .services.repository import InMemoryRepository

info = Info(
    title="Relief Grid API",
    version=__version__,
    description="Volunteer and supply coordination for disaster relief grids with HAL links"
)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() == 'true'


def load_config() -> Dict[str, Any]:
    """Read configuration from the environment."""
    environment = os.getenv('ENVIRONMENT', 'development')
    return {
        # Environment configuration
        'ENVIRONMENT': environment,
        'DEBUG': environment == 'development',
        'LOG_LEVEL': os.getenv('LOG_LEVEL'),

        # Storage configuration
        'STORAGE_BACKEND': os.getenv(
            'STORAGE_BACKEND', 'memory' if environment == 'test' else 'mongodb'
        ),
        'MONGODB_URI': os.getenv('MONGODB_URI', 'mongodb://localhost:27017/reliefgrid_dev'),
        'MONGODB_DATABASE': os.getenv('MONGODB_DATABASE', 'reliefgrid_dev'),
        'REDIS_URL': os.getenv('REDIS_URL'),

        # Security configuration
        'JWT_SECRET': os.getenv('JWT_SECRET'),
        'JWT_ALGORITHM': os.getenv('JWT_ALGORITHM', 'HS256'),

        # Coordination rules
        'DONATION_RECEIPT_POLICY': os.getenv('DONATION_RECEIPT_POLICY', ReceiptPolicy.CREATION.value),
        'SUBMISSION_COOLDOWN_SECONDS': int(
            os.getenv('SUBMISSION_COOLDOWN_SECONDS', str(DEFAULT_COOLDOWN_SECONDS))
        ),

        # API configuration
        'BASE_URL': os.getenv('BASE_URL', 'http://localhost:5000'),
        'CORS_ALLOWED_ORIGINS': os.getenv('CORS_ALLOWED_ORIGINS'),
        'OTEL_ENABLED': _flag('OTEL_ENABLED', 'true'),
    }


def build_repository(config: Dict[str, Any]):
    """Storage backend named by ``STORAGE_BACKEND``."""
    backend = config['STORAGE_BACKEND']
    if backend == 'memory':
        return InMemoryRepository()
    if backend == 'mongodb':
        repository = MongoRepository(config['MONGODB_URI'], config['MONGODB_DATABASE'])
        repository.create_indexes()
        return repository
    raise ValueError(f"Unknown STORAGE_BACKEND: {backend}")


def create_app(config_overrides: Optional[Dict[str, Any]] = None) -> OpenAPI:
    """
    Application factory.

    ``config_overrides`` may also carry prebuilt ``repository`` and
    ``redis_service`` objects, which take precedence over the configured
    backends.
    """
    config = load_config()
    config.update(config_overrides or {})
    repository = config.pop('repository', None)
    redis_service = config.pop('redis_service', None)

    setup_structured_logging(config['ENVIRONMENT'], config['LOG_LEVEL'])
    setup_observability(config['ENVIRONMENT'], config['OTEL_ENABLED'])

    app = OpenAPI(__name__, info=info)
    app.config.update(config)

    instrument = config['OTEL_ENABLED'] and config['ENVIRONMENT'] != 'test'
    add_observability_middleware(app, instrument=instrument)

    # Initialize services
    if repository is None:
        repository = build_repository(config)
    if redis_service is None and config['REDIS_URL']:
        redis_service = RedisService(config['REDIS_URL'])

    throttle = None
    if redis_service is not None:
        throttle = SubmissionThrottle(redis_service, config['SUBMISSION_COOLDOWN_SECONDS'])

    auth_service = AuthService(config['JWT_SECRET'], config['JWT_ALGORITHM'])
    coordination_service = CoordinationService(
        repository,
        receipt_policy=ReceiptPolicy(config['DONATION_RECEIPT_POLICY']),
        throttle=throttle
    )
    hal_formatter = create_hal_formatter(config['BASE_URL'])
    health_service = HealthCheckService(repository, redis_service, __version__)

    # Initialize middleware
    AuthMiddleware(auth_service, app)
    ErrorHandlerMiddleware(app, hal_formatter)
    configure_cors(
        app,
        allowed_origins=parse_origins(config['CORS_ALLOWED_ORIGINS'], config['ENVIRONMENT'])
    )

    # Make services available to routes
    app.repository = repository
    app.redis_service = redis_service
    app.submission_throttle = throttle
    app.auth_service = auth_service
    app.coordination_service = coordination_service
    app.hal_formatter = hal_formatter
    app.health_service = health_service

    # Register routes
    app.register_api(grids_bp)
    app.register_api(areas_bp)
    app.register_api(registrations_bp)
    app.register_api(donations_bp)
    app.register_api(announcements_bp)
    app.register_api(feeds_bp)
    app.register_api(health_bp)

    return app


if __name__ == '__main__':
    # Development server
    application = create_app()
    application.run(
        host='0.0.0.0',
        port=int(os.getenv('PORT', 5000)),
        debug=application.config['DEBUG']
    )
