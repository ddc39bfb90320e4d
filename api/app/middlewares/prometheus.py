"""Prometheus middleware for HTTP request metrics."""

from __future__ import annotations

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from ..routes_metrics import http_errors_total, http_requests_total


class PrometheusMiddleware(BaseHTTPMiddleware):
    """Count requests by route template and error responses by status.

    503s include storage and sequence lock timeouts.
    """

    async def dispatch(self, request: Request, call_next):
        response = await call_next(request)
        status = str(response.status_code)
        # templated path keeps order and table ids out of label values
        route = request.scope.get("route")
        path = getattr(route, "path", None) or "unmatched"
        http_requests_total.labels(path=path, method=request.method, status=status).inc()
        if response.status_code >= 400:
            http_errors_total.labels(status=status).inc()
        return response
