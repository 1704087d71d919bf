# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Health Check Service

Reports the storage backend and the submission throttle store. Storage is
critical; the throttle store only degrades the service because submissions
are accepted unthrottled while it is down.
"""

import os
import time
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from opentelemetry import trace

from .redis import RedisService
from .repository import Repository

tracer = trace.get_tracer(__name__)

SERVICE_NAME = "reliefgrid-api"


class HealthCheckService:
    """Service for dependency health monitoring."""

    def __init__(self, repository: Repository, redis_service: Optional[RedisService] = None,
                 service_version: Optional[str] = None):
        self.repository = repository
        self.redis_service = redis_service
        self.service_version = service_version or os.getenv('SERVICE_VERSION', '1.0.0')

    def get_health(self) -> Dict[str, Any]:
        """Overall status with per-dependency detail."""
        with tracer.start_as_current_span("health.check") as span:
            start_time = time.time()

            storage_health = self._check_storage_health()
            throttle_health = self._check_throttle_health()
            overall_status = self._determine_overall_status(
                storage_health["status"], throttle_health["status"]
            )

            response_time_ms = round((time.time() - start_time) * 1000, 2)

            span.set_attributes({
                "health.overall_status": overall_status,
                "health.response_time_ms": response_time_ms,
                "health.storage_status": storage_health["status"],
                "health.throttle_status": throttle_health["status"]
            })

            return {
                "status": overall_status,
                "service": SERVICE_NAME,
                "version": self.service_version,
                "environment": os.getenv('ENVIRONMENT', 'development'),
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "response_time_ms": response_time_ms,
                "dependencies": {
                    "storage": storage_health,
                    "throttle": throttle_health
                }
            }

    def _check_storage_health(self) -> Dict[str, Any]:
        with tracer.start_as_current_span("health.storage_check") as span:
            start_time = time.time()
            health_info = dict(self.repository.health_check())
            health_info["response_time_ms"] = round((time.time() - start_time) * 1000, 2)
            span.set_attribute("storage.status", health_info.get("status", "unknown"))
            return health_info

    def _check_throttle_health(self) -> Dict[str, Any]:
        if self.redis_service is None:
            return {"status": "disabled"}
        with tracer.start_as_current_span("health.throttle_check") as span:
            health_info = self.redis_service.health_check()
            span.set_attribute("throttle.status", health_info["status"])
            return health_info

    @staticmethod
    def _determine_overall_status(storage_status: str, throttle_status: str) -> str:
        if storage_status != "healthy":
            return "unhealthy"
        if throttle_status in ("healthy", "disabled"):
            return "healthy"
        return "degraded"
