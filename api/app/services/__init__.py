"""Service layer helpers for the API."""

from .order_feed import OrderFeed
from .order_service import OrderService, with_storage_timeout
from .table_registry import TableRegistry, normalize_identifier, validate_batch

__all__ = [
    "OrderFeed",
    "OrderService",
    "TableRegistry",
    "normalize_identifier",
    "validate_batch",
    "with_storage_timeout",
]
