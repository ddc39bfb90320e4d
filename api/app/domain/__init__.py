"""Domain models and helpers."""

from .errors import (
    ConflictError,
    Forbidden,
    InvalidTransition,
    NotFound,
    OrderingError,
    TransientError,
    Unauthorized,
    ValidationError,
)
from .order_status import (
    ACTIVE_STATUSES,
    TRANSITIONS,
    OrderStatus,
    can_transition,
    is_terminal,
    parse_status,
)

__all__ = [
    "ACTIVE_STATUSES",
    "OrderStatus",
    "TRANSITIONS",
    "can_transition",
    "is_terminal",
    "parse_status",
    "OrderingError",
    "NotFound",
    "ValidationError",
    "ConflictError",
    "InvalidTransition",
    "Unauthorized",
    "Forbidden",
    "TransientError",
]
