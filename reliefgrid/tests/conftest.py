# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Pytest configuration and fixtures.
"""

import os
import pytest
from unittest.mock import MagicMock

# Set test environment
os.environ['ENVIRONMENT'] = 'test'
os.environ['OTEL_ENABLED'] = 'false'

from reliefgrid.app import create_app
from reliefgrid.models.entities import Actor, Grid, SupplyLine
from reliefgrid.models.enums import ActorRole, GridType, ReceiptPolicy
from reliefgrid.models.requests import (
    CreateAreaRequest,
    CreateGridRequest,
    SupplyItemRequest,
)
from reliefgrid.services.auth import AuthService
from reliefgrid.services.coordination import CoordinationService
from reliefgrid.services.repository import InMemoryRepository

TEST_JWT_SECRET = "reliefgrid-test-secret"


@pytest.fixture
def admin():
    return Actor(id="admin-1", role=ActorRole.ADMIN, name="Admin")


@pytest.fixture
def manager():
    return Actor(id="manager-1", role=ActorRole.GRID_MANAGER, name="Grid Manager")


@pytest.fixture
def other_manager():
    return Actor(id="manager-2", role=ActorRole.GRID_MANAGER, name="Other Manager")


@pytest.fixture
def volunteer():
    return Actor(id="volunteer-1", role=ActorRole.VOLUNTEER, name="Volunteer")


@pytest.fixture
def guest():
    return Actor()


@pytest.fixture
def repository():
    """Fresh in-memory repository."""
    return InMemoryRepository()


@pytest.fixture
def service(repository):
    """Coordination service with the default receipt policy and no throttle."""
    return CoordinationService(repository)


@pytest.fixture
def make_service(repository):
    """Coordination service factory for a given receipt policy."""
    def build(policy):
        return CoordinationService(repository, receipt_policy=ReceiptPolicy(policy))
    return build


@pytest.fixture
def grid_request():
    """Manpower grid managed by manager-1 with two supply lines."""
    return CreateGridRequest(
        code="A-1",
        grid_type=GridType.MANPOWER,
        center_lat=23.67,
        center_lng=121.43,
        volunteer_needed=10,
        contact_info="0912-345-678",
        grid_manager_id="manager-1",
        supplies_needed=[
            SupplyItemRequest(name="water", quantity=100, unit="bottle"),
            SupplyItemRequest(name="shovel", quantity=20, unit="pcs"),
        ]
    )


@pytest.fixture
def grid(service, grid_request, admin):
    return service.create_grid(grid_request, admin)


@pytest.fixture
def area(service, admin):
    return service.create_area(
        CreateAreaRequest(name="Guangfu", county="Hualien", center_lat=23.66, center_lng=121.42),
        admin
    )


@pytest.fixture
def make_grid():
    """Grid entity factory for pure-function tests."""
    def build(**overrides) -> Grid:
        data = {
            "code": "T-1",
            "grid_type": GridType.MANPOWER,
            "center_lat": 23.0,
            "center_lng": 121.0,
            "volunteer_needed": 10,
            "volunteer_registered": 0,
        }
        data.update(overrides)
        return Grid(**data)
    return build


@pytest.fixture
def supply():
    """Supply line factory."""
    def build(name="water", quantity=100, received=0, unit="") -> SupplyLine:
        return SupplyLine(name=name, quantity=quantity, received=received, unit=unit)
    return build


@pytest.fixture
def auth_service():
    return AuthService(TEST_JWT_SECRET)


@pytest.fixture
def redis_client():
    """redis-py client stand-in; SET NX succeeds by default."""
    client = MagicMock()
    client.ping.return_value = True
    client.set.return_value = True
    client.ttl.return_value = 600
    client.delete.return_value = 1
    return client


@pytest.fixture
def app(repository):
    """Flask app on the in-memory store without Redis."""
    application = create_app({
        'ENVIRONMENT': 'test',
        'JWT_SECRET': TEST_JWT_SECRET,
        'OTEL_ENABLED': False,
        'REDIS_URL': None,
        'repository': repository,
    })
    application.config['TESTING'] = True
    return application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def tokens(auth_service):
    """Bearer headers per role."""
    def header(actor_id, role, name=None):
        return {"Authorization": f"Bearer {auth_service.generate_token(actor_id, role, name)}"}

    return {
        "admin": header("admin-1", "admin", "Admin"),
        "manager": header("manager-1", "grid_manager", "Grid Manager"),
        "other_manager": header("manager-2", "grid_manager", "Other Manager"),
        "volunteer": header("volunteer-1", "volunteer", "Volunteer"),
    }
