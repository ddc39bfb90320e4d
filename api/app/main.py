# main.py

"""FastAPI application for QR table ordering."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from redis.asyncio import from_url
from starlette.exceptions import HTTPException as StarletteHTTPException

from config import Settings, get_settings

from . import db as app_db
from .config.validate import validate_on_boot
from .domain import OrderingError
from .middlewares import (
    LoggingMiddleware,
    PrometheusMiddleware,
    RequestIdMiddleware,
)
from .obs.logging import configure_logging
from .routes_guest_menu import router as guest_menu_router
from .routes_guest_order import router as guest_order_router
from .routes_metrics import router as metrics_router
from .routes_orders import router as orders_router
from .routes_orders_sse import router as orders_sse_router
from .routes_tables_qr import router as tables_qr_router
from .utils.order_counter import RedisSequenceLocks, SequenceLocks
from .utils.responses import err, error_response, ok

logger = logging.getLogger("api")


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings: Settings = app.state.settings
    await app_db.create_all()
    if settings.redis_url:
        app.state.redis = from_url(settings.redis_url, decode_responses=True)
        app.state.sequence_locks = RedisSequenceLocks(
            app.state.redis, timeout=settings.sequence_lock_timeout_secs
        )
        logger.info("order numbering serialised through redis")
    try:
        yield
    finally:
        if app.state.redis is not None:
            await app.state.redis.aclose()
        await app_db.dispose()


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application; tests pass their own settings."""

    settings = settings or get_settings()
    configure_logging(settings.log_level.upper())
    validate_on_boot(settings)

    app = FastAPI(
        title="QR Ordering API",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.redis = None
    app.state.sequence_locks = SequenceLocks(timeout=settings.sequence_lock_timeout_secs)

    app.add_middleware(PrometheusMiddleware)
    app.add_middleware(RequestIdMiddleware)
    app.add_middleware(LoggingMiddleware)

    @app.exception_handler(OrderingError)
    async def ordering_error_handler(request: Request, exc: OrderingError):
        logger.warning(
            exc.message,
            extra={"status": exc.status_code, "code": exc.code, "route": request.url.path},
        )
        return error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        errors = [
            {"loc": [str(part) for part in e.get("loc", ())], "msg": e.get("msg")}
            for e in exc.errors()
        ]
        return JSONResponse(
            err("VALIDATION_ERROR", "Invalid request", {"errors": errors}),
            status_code=400,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        logger.warning(
            exc.detail,
            extra={"status": exc.status_code, "route": request.url.path},
        )
        return JSONResponse(
            err(exc.status_code, str(exc.detail)),
            status_code=exc.status_code,
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_error_handler(request: Request, exc: Exception):
        logger.exception(
            "unhandled_error",
            extra={"status": 500, "route": request.url.path},
        )
        return JSONResponse(err("INTERNAL", "Internal Server Error"), status_code=500)

    @app.get("/health")
    async def health() -> dict:
        return ok({"status": "ok"})

    app.include_router(guest_menu_router)
    app.include_router(guest_order_router)
    app.include_router(orders_sse_router)
    app.include_router(orders_router)
    app.include_router(tables_qr_router)
    app.include_router(metrics_router)
    return app


app = create_app()
