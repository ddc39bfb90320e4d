"""Error taxonomy shared by services, repositories and routes.

Routes never build error responses for these by hand; the exception handler
registered in :mod:`api.app.main` maps each class onto the JSON error
envelope with its ``status_code`` and ``code``.
"""

from __future__ import annotations

from typing import Any


class OrderingError(Exception):
    """Base class for domain failures reported to API callers."""

    status_code = 500
    code = "INTERNAL"

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class NotFound(OrderingError):
    """Entity absent or not visible in the caller's tenant scope."""

    status_code = 404
    code = "NOT_FOUND"


class ValidationError(OrderingError):
    """Malformed input such as a bad identifier or non-positive quantity."""

    status_code = 400
    code = "VALIDATION_ERROR"


class ConflictError(OrderingError):
    """Request collides with current state."""

    status_code = 409
    code = "CONFLICT"


class InvalidTransition(ConflictError):
    """Requested status is not reachable from the order's current status."""

    code = "INVALID_TRANSITION"


class Unauthorized(OrderingError):
    """Missing or unverifiable principal."""

    status_code = 401
    code = "UNAUTHORIZED"


class Forbidden(OrderingError):
    """Principal is valid but its role may not perform the operation."""

    status_code = 403
    code = "FORBIDDEN"


class TransientError(OrderingError):
    """Storage timeout, lock timeout or exhausted retries; safe to retry."""

    status_code = 503
    code = "TRANSIENT"
    retry_after = 1


__all__ = [
    "OrderingError",
    "NotFound",
    "ValidationError",
    "ConflictError",
    "InvalidTransition",
    "Unauthorized",
    "Forbidden",
    "TransientError",
]
