"""Observability helpers."""

from .logging import JsonFormatter, RequestIdFilter, configure_logging
from .queries import add_query_logger

__all__ = ["JsonFormatter", "RequestIdFilter", "add_query_logger", "configure_logging"]
