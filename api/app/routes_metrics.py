# routes_metrics.py

"""Prometheus metrics and /metrics endpoint."""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import Response
from prometheus_client import CONTENT_TYPE_LATEST, Counter, Gauge, generate_latest

# Counters
http_requests_total = Counter(
    "http_requests_total", "Total HTTP requests", ["path", "method", "status"]
)

http_errors_total = Counter("http_errors_total", "Total HTTP errors", ["status"])
http_errors_total.labels(status="0").inc(0)

orders_created_total = Counter("orders_created_total", "Total orders created")
orders_created_total.inc(0)

order_status_transitions_total = Counter(
    "order_status_transitions_total",
    "Total order status transitions by target status",
    ["status"],
)

order_sequence_conflicts_total = Counter(
    "order_sequence_conflicts_total",
    "Total order inserts retried after a daily sequence collision",
)
order_sequence_conflicts_total.inc(0)

tables_restored_total = Counter(
    "tables_restored_total", "Total soft-deleted tables restored in place"
)
tables_restored_total.inc(0)

sse_clients_gauge = Gauge("sse_clients", "Current number of connected SSE clients")
sse_clients_gauge.set(0)

router = APIRouter()


@router.get("/metrics")
async def metrics_endpoint() -> Response:
    """Expose Prometheus metrics."""
    data = generate_latest()
    return Response(data, media_type=CONTENT_TYPE_LATEST)
