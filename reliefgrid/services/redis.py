# SPDX-License-Identifier: Apache-2.0

"""
Redis service for submission cooldown markers.

Uses the standard redis-py client. When Redis cannot be reached the service
reports itself unavailable and callers fail open.
"""

import os
import logging
from typing import Any, Dict, Optional

import redis
from opentelemetry import trace

tracer = trace.get_tracer(__name__)
logger = logging.getLogger(__name__)


class RedisConnectionError(Exception):
    """Raised when Redis connection fails."""
    pass


class RedisService:
    """
    Thin redis-py wrapper exposing the operations the throttle needs.
    """

    def __init__(self, redis_url: Optional[str] = None, client: Optional[Any] = None):
        """
        Initialize the Redis service.

        Args:
            redis_url: Redis connection URL (redis://host:port)
            client: Pre-built client, used as-is without a connection test
        """
        self.redis_url = redis_url or os.getenv("REDIS_URL", "redis://localhost:6379")

        if client is not None:
            self.client = client
            return

        try:
            self.client = redis.from_url(self.redis_url, decode_responses=True)
            self._test_connection()
            logger.info(f"Redis service initialized successfully at {self.redis_url}")
        except Exception as e:
            logger.error(f"Failed to initialize Redis service: {str(e)}")
            self.client = None

    def _test_connection(self) -> None:
        """Test Redis connection."""
        if not self.client:
            return

        try:
            result = self.client.ping()
            if not result:
                raise RedisConnectionError("Redis ping failed")
        except redis.RedisError as e:
            logger.error(f"Redis connection test failed: {str(e)}")
            raise RedisConnectionError(f"Redis connection failed: {str(e)}")

    def set_if_absent(self, key: str, value: str, ttl: int) -> Optional[bool]:
        """
        Atomically create a key with a TTL unless it already exists.

        Args:
            key: Redis key
            value: Value to store
            ttl: Time to live in seconds

        Returns:
            True if the key was created, False if it already existed,
            None if Redis is unavailable or failed
        """
        if not self.client:
            logger.warning("Redis client not available, skipping set operation")
            return None

        with tracer.start_as_current_span("redis.set_nx") as span:
            span.set_attributes({
                "redis.key": key,
                "redis.ttl": ttl
            })

            try:
                result = self.client.set(key, value, nx=True, ex=ttl)
                span.set_attribute("redis.result", "created" if result else "exists")
                return bool(result)
            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                logger.error(f"Redis set failed for key {key}: {str(e)}")
                return None

    def ttl(self, key: str) -> int:
        """
        Seconds until a key expires.

        Returns:
            Remaining seconds, 0 if the key is missing, has no expiry or
            Redis is unavailable
        """
        if not self.client:
            return 0

        try:
            remaining = self.client.ttl(key)
            return max(int(remaining or 0), 0)
        except redis.RedisError as e:
            logger.error(f"Redis ttl failed for key {key}: {str(e)}")
            return 0

    def delete(self, key: str) -> bool:
        """
        Delete a key from Redis.

        Returns:
            True if key was deleted, False otherwise
        """
        if not self.client:
            logger.warning("Redis client not available, skipping delete operation")
            return False

        with tracer.start_as_current_span("redis.delete") as span:
            span.set_attribute("redis.key", key)

            try:
                result = self.client.delete(key)
                span.set_attribute("redis.result", "success")
                return bool(result)
            except redis.RedisError as e:
                span.set_attribute("redis.result", "error")
                logger.error(f"Redis delete failed for key {key}: {str(e)}")
                return False

    def health_check(self) -> Dict[str, Any]:
        """Check Redis connection health."""
        if not self.client:
            return {"status": "unavailable", "url": self.redis_url}
        try:
            self.client.ping()
            return {"status": "healthy"}
        except redis.RedisError as e:
            logger.error(f"Redis health check failed: {e}")
            return {"status": "unhealthy", "error": str(e)}
