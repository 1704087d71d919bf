# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Tests for middleware functionality.
"""

import pytest
from unittest.mock import MagicMock
from flask import Flask, jsonify

from reliefgrid.domain.errors import (
    DuplicateCode,
    NotFound,
    SubmissionThrottled,
    ValidationError,
)
from reliefgrid.middleware.auth import AuthMiddleware, current_actor
from reliefgrid.middleware.cors import DEVELOPMENT_ORIGINS, configure_cors, parse_origins
from reliefgrid.middleware.error_handler import ErrorHandlerMiddleware
from reliefgrid.middleware.rate_limit import SubmissionThrottle
from reliefgrid.models.requests import RelocateGridRequest
from reliefgrid.services.hal import HalFormatter
from reliefgrid.services.redis import RedisService
from reliefgrid.utils.request import RequestParser


class TestAuthMiddleware:
    """Test actor resolution from bearer tokens."""

    def setup_method(self):
        """Set up test fixtures."""
        self.app = Flask(__name__)

        @self.app.route('/whoami')
        def whoami():
            actor = current_actor()
            return jsonify({'id': actor.id, 'role': actor.role, 'client_token': actor.client_token})

    def test_valid_token(self, auth_service, tokens):
        AuthMiddleware(auth_service, self.app)

        response = self.app.test_client().get('/whoami', headers=tokens["manager"])

        assert response.get_json() == {'id': 'manager-1', 'role': 'grid_manager', 'client_token': None}

    def test_missing_token_is_guest(self, auth_service):
        AuthMiddleware(auth_service, self.app)

        response = self.app.test_client().get('/whoami', headers={'X-Client-Token': 'abc'})

        assert response.get_json() == {'id': None, 'role': 'guest', 'client_token': 'abc'}

    def test_invalid_token_is_guest(self, auth_service):
        AuthMiddleware(auth_service, self.app)

        response = self.app.test_client().get('/whoami', headers={'Authorization': 'Bearer nonsense'})

        assert response.status_code == 200
        assert response.get_json()['role'] == 'guest'

    def test_extract_token_formats(self, auth_service):
        middleware = AuthMiddleware(auth_service)

        with self.app.test_request_context(headers={'Authorization': 'Bearer abc'}):
            assert middleware.extract_token_from_request() == 'abc'
        with self.app.test_request_context(headers={'Authorization': 'raw-token'}):
            assert middleware.extract_token_from_request() == 'raw-token'
        with self.app.test_request_context():
            assert middleware.extract_token_from_request() is None


class TestSubmissionThrottle:
    """Test the Redis-backed submission window."""

    def test_first_submission_claims_window(self, redis_client):
        throttle = SubmissionThrottle(RedisService(client=redis_client), cooldown_seconds=600)

        throttle.check("token:abc")

        redis_client.set.assert_called_once()
        args, kwargs = redis_client.set.call_args
        assert args[0] == "throttle:grid-submission:token:abc"
        assert kwargs == {'nx': True, 'ex': 600}

    def test_second_submission_throttled(self, redis_client):
        redis_client.set.return_value = None
        redis_client.ttl.return_value = 120
        throttle = SubmissionThrottle(RedisService(client=redis_client))

        with pytest.raises(SubmissionThrottled) as exc_info:
            throttle.check("token:abc")

        assert exc_info.value.retry_after == 120
        assert exc_info.value.status_code == 429

    def test_fails_open_when_redis_errors(self, redis_client):
        import redis

        redis_client.set.side_effect = redis.ConnectionError("down")
        throttle = SubmissionThrottle(RedisService(client=redis_client))

        throttle.check("token:abc")

    def test_disabled_without_redis(self):
        SubmissionThrottle(None).check("token:abc")

    def test_release(self, redis_client):
        throttle = SubmissionThrottle(RedisService(client=redis_client))

        throttle.release("token:abc")

        redis_client.delete.assert_called_once_with("throttle:grid-submission:token:abc")

    def test_client_identifier(self):
        app = Flask(__name__)

        assert SubmissionThrottle.get_client_identifier("abc") == "token:abc"
        with app.test_request_context(environ_base={'REMOTE_ADDR': '10.0.0.1'},
                                      headers={'User-Agent': 'map'}):
            first = SubmissionThrottle.get_client_identifier()
            assert first.startswith("ip:")
            assert first == SubmissionThrottle.get_client_identifier()


class TestErrorHandlerMiddleware:
    """Test problem documents for raised errors."""

    def setup_method(self):
        """Set up test fixtures."""
        self.app = Flask(__name__)
        self.app.config['ENVIRONMENT'] = 'test'
        ErrorHandlerMiddleware(self.app, HalFormatter("https://api.example.com"))

        @self.app.route('/duplicate')
        def duplicate():
            raise DuplicateCode("A-1")

        @self.app.route('/throttled')
        def throttled():
            raise SubmissionThrottled(42)

        @self.app.route('/invalid')
        def invalid():
            raise ValidationError("Bad row", validation_errors=[{"field": "code", "message": "missing"}])

        @self.app.route('/missing')
        def missing():
            raise NotFound("Grid", "g-1")

        @self.app.route('/body', methods=['POST'])
        def body():
            RequestParser.parse_body(RelocateGridRequest)
            return jsonify({})

        @self.app.route('/boom')
        def boom():
            raise RuntimeError("kaput")

        self.client = self.app.test_client()

    def test_coordination_error(self):
        response = self.client.get('/duplicate')
        data = response.get_json()

        assert response.status_code == 409
        assert data['type'].endswith('/duplicate-code')
        assert data['detail'] == 'Grid code "A-1" already exists'
        assert data['instance'] == '/duplicate'

    def test_retry_after_header(self):
        response = self.client.get('/throttled')

        assert response.status_code == 429
        assert response.headers['Retry-After'] == '42'

    def test_validation_errors_listed(self):
        response = self.client.get('/invalid')

        assert response.status_code == 422
        assert response.get_json()['errors'] == [{"field": "code", "message": "missing"}]

    def test_not_found(self):
        assert self.client.get('/missing').status_code == 404

    def test_pydantic_error(self):
        response = self.client.post('/body', json={'center_lat': 200, 'center_lng': 0})
        data = response.get_json()

        assert response.status_code == 422
        assert data['errors'][0]['field'] == 'center_lat'

    def test_non_json_body(self):
        response = self.client.post('/body', data='x', content_type='text/plain')

        assert response.status_code == 422

    def test_unknown_route(self):
        response = self.client.get('/nowhere')

        assert response.status_code == 404
        assert response.get_json()['type'].endswith('/resource-not-found')

    def test_unexpected_error(self):
        response = self.client.get('/boom')

        assert response.status_code == 500
        assert 'RuntimeError' in response.get_json()['detail']


class TestCORSMiddleware:
    """Test origin allow-list handling."""

    def setup_method(self):
        """Set up test fixtures."""
        self.app = Flask(__name__)
        self.cors = configure_cors(
            self.app, allowed_origins=['https://map.example.org', 'https://*.relief.example']
        )

        @self.app.route('/ping')
        def ping():
            return jsonify({'ok': True})

        self.client = self.app.test_client()

    def test_origin_matching(self):
        assert self.cors.is_origin_allowed('https://map.example.org')
        assert not self.cors.is_origin_allowed('https://evil.example.org')
        assert not self.cors.is_origin_allowed(None)

    def test_wildcard_prefix(self):
        cors = configure_cors(Flask(__name__), allowed_origins=['https://staging-*'])

        assert cors.is_origin_allowed('https://staging-42.example.org')

    def test_preflight(self):
        response = self.client.options('/ping', headers={'Origin': 'https://map.example.org'})

        assert response.status_code == 204
        assert response.headers['Access-Control-Allow-Origin'] == 'https://map.example.org'
        assert 'X-Client-Token' in response.headers['Access-Control-Allow-Headers']

    def test_preflight_rejected(self):
        response = self.client.options('/ping', headers={'Origin': 'https://evil.example.org'})

        assert response.status_code == 403

    def test_simple_request_headers(self):
        allowed = self.client.get('/ping', headers={'Origin': 'https://map.example.org'})
        other = self.client.get('/ping', headers={'Origin': 'https://evil.example.org'})

        assert 'Retry-After' in allowed.headers['Access-Control-Expose-Headers']
        assert 'Access-Control-Allow-Origin' not in other.headers

    def test_parse_origins(self):
        assert parse_origins(' https://a.org , ,https://b.org', 'production') == [
            'https://a.org', 'https://b.org'
        ]
        assert parse_origins(None, 'development') == DEVELOPMENT_ORIGINS
