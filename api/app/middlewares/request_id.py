import logging
import re
import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Context variable used by log filter and error envelopes to inject request id
request_id_ctx: ContextVar[str | None] = ContextVar("request_id", default=None)
logger = logging.getLogger("api")

_VALID_ID = re.compile(r"^[A-Za-z0-9._-]{1,64}$")


def incoming_request_id(request: Request) -> str:
    supplied = request.headers.get("X-Request-ID", "")
    return supplied if _VALID_ID.match(supplied) else uuid.uuid4().hex


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Ensure every request carries a request id echoed as ``X-Request-ID``.

    A caller-supplied id is kept only when it is short and printable.
    """

    async def dispatch(self, request: Request, call_next):
        # an outer middleware may already have assigned one
        req_id = getattr(request.state, "request_id", None) or incoming_request_id(request)
        token = request_id_ctx.set(req_id)
        request.state.request_id = req_id
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)
        response.headers["X-Request-ID"] = req_id
        return response
