# -*- coding: utf-8 -*-
# SPDX-License-Identifier: Apache-2.0

"""
Submission throttle for public grid creation.

A client may create one grid per cooldown window. The client is identified
by the opaque ``X-Client-Token`` header, falling back to a hash of the
remote address and user agent.
"""

import hashlib
import logging
import time
from typing import Optional

from flask import request

from ..domain.errors import SubmissionThrottled

logger = logging.getLogger(__name__)

CLIENT_TOKEN_HEADER = "X-Client-Token"
DEFAULT_COOLDOWN_SECONDS = 600


class SubmissionThrottle:
    """Redis-backed one-submission-per-window limiter."""

    def __init__(self, redis_service, cooldown_seconds: int = DEFAULT_COOLDOWN_SECONDS,
                 namespace: str = "grid-submission"):
        self.redis_service = redis_service
        self.cooldown_seconds = cooldown_seconds
        self.namespace = namespace

    @staticmethod
    def get_client_identifier(client_token: Optional[str] = None) -> str:
        """
        Get unique identifier for the submitting client.

        Args:
            client_token: Token supplied by the client, if any

        Returns:
            Unique client identifier
        """
        if client_token:
            return f"token:{client_token}"

        ip_address = request.remote_addr or 'unknown'
        user_agent = request.headers.get('User-Agent', '')

        # Create hash of IP + User-Agent for better uniqueness
        identifier_string = f"{ip_address}:{user_agent}"
        identifier_hash = hashlib.md5(identifier_string.encode()).hexdigest()
        return f"ip:{identifier_hash}"

    def get_key(self, identifier: str) -> str:
        return f"throttle:{self.namespace}:{identifier}"

    def check(self, identifier: str) -> None:
        """
        Claim the window for this client.

        Fails open when Redis is unavailable.

        Raises:
            SubmissionThrottled: if the client already submitted in the window
        """
        if self.redis_service is None or self.cooldown_seconds <= 0:
            return

        key = self.get_key(identifier)
        claimed = self.redis_service.set_if_absent(key, str(int(time.time())), self.cooldown_seconds)

        if claimed is None:
            logger.warning("Submission throttle unavailable, allowing request",
                           extra={'identifier': identifier})
            return

        if not claimed:
            retry_after = self.redis_service.ttl(key) or self.cooldown_seconds
            logger.warning(
                "Submission throttled",
                extra={
                    'identifier': identifier,
                    'retry_after': retry_after
                }
            )
            raise SubmissionThrottled(retry_after)

        logger.debug("Submission window claimed", extra={'identifier': identifier})

    def release(self, identifier: str) -> None:
        """Drop the claim, used when the submission itself was rejected."""
        if self.redis_service is not None:
            self.redis_service.delete(self.get_key(identifier))
