# SPDX-License-Identifier: Apache-2.0

"""
Error taxonomy for grid coordination operations.

Every error carries the HTTP status and problem type slug used when it is
rendered by the API error handler.
"""

from typing import List, Optional


class CoordinationError(Exception):
    """Base class for coordination engine errors."""

    status_code = 500
    error_type = "coordination-error"
    title = "Coordination Error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CoordinationError):
    """Missing or malformed input for a single record or import row."""

    status_code = 422
    error_type = "validation-error"
    title = "Validation Error"

    def __init__(self, message: str, validation_errors: Optional[List[dict]] = None,
                 row: Optional[int] = None):
        super().__init__(message)
        self.validation_errors = validation_errors or []
        self.row = row


class DuplicateCode(CoordinationError):
    """Grid code already used, compared case-insensitively."""

    status_code = 409
    error_type = "duplicate-code"
    title = "Duplicate Grid Code"

    def __init__(self, code: str, row: Optional[int] = None):
        super().__init__(f'Grid code "{code}" already exists')
        self.code = code
        self.row = row


class InvalidTransition(CoordinationError):
    """Requested status change is not part of the workflow."""

    status_code = 409
    error_type = "invalid-transition"
    title = "Invalid Status Transition"

    def __init__(self, entity: str, current_status: str, new_status: str):
        super().__init__(
            f"Invalid {entity} status transition from {current_status} to {new_status}"
        )
        self.entity = entity
        self.current_status = current_status
        self.new_status = new_status


class UnknownSupplyLine(CoordinationError):
    """Donation references a supply name the grid does not request."""

    status_code = 422
    error_type = "unknown-supply-line"
    title = "Unknown Supply Line"

    def __init__(self, grid_id: str, supply_name: str):
        super().__init__(f'Grid {grid_id} has no supply line named "{supply_name}"')
        self.grid_id = grid_id
        self.supply_name = supply_name


class NotFound(CoordinationError):
    """Referenced grid, area, registration or other record is absent."""

    status_code = 404
    error_type = "resource-not-found"
    title = "Resource Not Found"

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} not found: {entity_id}")
        self.entity = entity
        self.entity_id = entity_id


class PermissionDenied(CoordinationError):
    """Current actor may not perform the operation."""

    status_code = 403
    error_type = "insufficient-permissions"
    title = "Insufficient Permissions"


class SubmissionThrottled(CoordinationError):
    """Client submitted again inside the cooldown window."""

    status_code = 429
    error_type = "rate-limit-exceeded"
    title = "Rate Limit Exceeded"

    def __init__(self, retry_after: int):
        super().__init__(f"Submission cooldown active, retry in {retry_after} seconds")
        self.retry_after = retry_after
