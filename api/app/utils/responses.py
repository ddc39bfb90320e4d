from typing import Any, Dict

from fastapi.responses import JSONResponse

from ..domain import OrderingError, TransientError


def ok(data: Any) -> Dict[str, Any]:
    """Return a success envelope."""
    return {"ok": True, "data": data}


def err(
    code: int | str,
    message: str,
    details: Dict[str, Any] | None = None,
    hint: str | None = None,
) -> Dict[str, Any]:
    """Return an error envelope."""
    from ..middlewares.request_id import request_id_ctx

    error: Dict[str, Any] = {"code": code, "message": message}
    if hint:
        error["hint"] = hint
    if details:
        error["details"] = details

    return {"ok": False, "request_id": request_id_ctx.get(None), "error": error}


def error_response(exc: OrderingError) -> JSONResponse:
    """Render a domain error as a JSON envelope with its HTTP status."""
    headers = None
    hint = None
    if isinstance(exc, TransientError):
        headers = {"Retry-After": str(exc.retry_after)}
        hint = f"retry in {exc.retry_after}s"
    return JSONResponse(
        err(exc.code, exc.message, exc.details or None, hint),
        status_code=exc.status_code,
        headers=headers,
    )
