import json
import logging
import os
import random
import time
import uuid
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from ..utils.responses import err
from .request_id import incoming_request_id, request_id_ctx

# Fields in requests that should be redacted from logs
PII_KEYS = {"token", "authorization", "staff_token", "staffToken", "customerNote", "customer_note"}
PII_KEYS_LOWER = {k.lower() for k in PII_KEYS}
LOG_SAMPLE_2XX = float(os.getenv("LOG_SAMPLE_2XX", "0.1"))


logger = logging.getLogger("api")


def _redact(obj):
    if isinstance(obj, dict):
        return {
            k: ("***" if str(k).lower() in PII_KEYS_LOWER else _redact(v))
            for k, v in obj.items()
        }
    if isinstance(obj, list):
        return [_redact(v) for v in obj]
    return obj


def _now() -> str:
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


class LoggingMiddleware(BaseHTTPMiddleware):
    """Emit structured inbound/outbound request logs with a request ID.

    Successful responses are sampled with ``LOG_SAMPLE_2XX``; errors are
    always logged. Event-stream responses are logged when the stream opens.
    """

    async def dispatch(self, request: Request, call_next):
        req_id = getattr(request.state, "request_id", None)
        token = None
        if not req_id:
            req_id = incoming_request_id(request)
            request.state.request_id = req_id
            # Fallback for contexts where RequestIdMiddleware is absent
            token = request_id_ctx.set(req_id)

        body = None
        if request.method in {"POST", "PUT", "PATCH"}:
            body_bytes = await request.body()

            async def receive() -> dict:
                return {"type": "http.request", "body": body_bytes, "more_body": False}

            request._receive = receive
            if body_bytes:
                try:
                    body = json.loads(body_bytes)
                except ValueError:
                    body = None

        query = dict(request.query_params)
        inbound = {
            "ts": _now(),
            "level": "INFO",
            "req_id": req_id,
            "path": request.url.path,
            "method": request.method,
            "ip": request.client.host if request.client else None,
            "ua": request.headers.get("user-agent"),
        }
        if query:
            inbound["query"] = _redact(query)
        if body is not None:
            inbound["body"] = _redact(body)

        start = time.perf_counter()
        error_id = None
        try:
            response = await call_next(request)
        except Exception:
            error_id = uuid.uuid4().hex
            logger.exception(json.dumps({"req_id": req_id, "error_id": error_id}))
            payload = err("INTERNAL", "Internal Server Error")
            payload["error_id"] = error_id
            response = JSONResponse(payload, status_code=500)
        dur_ms = int((time.perf_counter() - start) * 1000)
        status = response.status_code
        level = "ERROR" if status >= 500 else "INFO"
        outbound = {
            "ts": _now(),
            "level": level,
            "req_id": req_id,
            "route": request.url.path,
            "status": status,
            "latency_ms": dur_ms,
        }
        if error_id:
            outbound["error_id"] = error_id

        should_log = not (200 <= status < 300 and random.random() >= LOG_SAMPLE_2XX)
        if should_log:
            logger.info(json.dumps(inbound))
            log_fn = logger.error if level == "ERROR" else logger.info
            log_fn(json.dumps(outbound))

        response.headers["X-Request-ID"] = req_id

        if token is not None:
            request_id_ctx.reset(token)
        return response
