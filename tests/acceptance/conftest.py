"""
Fixtures for acceptance tests through the HTTP API.
"""

import os

import pytest

os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'

from reliefgrid.app import create_app
from reliefgrid.services.auth import AuthService

ACCEPTANCE_JWT_SECRET = "reliefgrid-acceptance-secret"


@pytest.fixture
def app_factory():
    """Application builder for a given receipt policy."""
    def build(receipt_policy="creation"):
        return create_app({
            'ENVIRONMENT': 'test',
            'OTEL_ENABLED': False,
            'STORAGE_BACKEND': 'memory',
            'REDIS_URL': None,
            'JWT_SECRET': ACCEPTANCE_JWT_SECRET,
            'DONATION_RECEIPT_POLICY': receipt_policy,
        })
    return build


@pytest.fixture
def test_client(app_factory):
    return app_factory().test_client()


@pytest.fixture
def auth_headers():
    """Authorization header builder for an actor id and role."""
    auth_service = AuthService(ACCEPTANCE_JWT_SECRET)

    def build(actor_id, role, name=None):
        token = auth_service.generate_token(actor_id, role, name)
        return {"Authorization": f"Bearer {token}"}
    return build
