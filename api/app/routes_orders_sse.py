"""Server-Sent Events streams of the live order boards.

Each stream opens with ``event: snapshot`` carrying the full board and then
emits ``event: orders`` only when the board changed, with a monotonically
increasing ``id``. Idle periods are filled with keep-alive comments.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import StreamingResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import get_settings

from .db import get_sessionmaker
from .deps.services import orders_repo
from .deps.tenant import owner_tenant, staff_tenant
from .repos_sqlalchemy import OrdersRepoSQL
from .routes_metrics import sse_clients_gauge
from .services.order_feed import VIEW_OWNER, VIEW_STAFF, OrderFeed

router = APIRouter()

SSE_HEADERS = {"Cache-Control": "no-cache", "X-Accel-Buffering": "no"}


def _stream(request: Request, feed: OrderFeed) -> StreamingResponse:
    async def event_gen():
        sse_clients_gauge.inc()
        try:
            async for frame in feed.stream(request.is_disconnected):
                yield frame
        finally:
            sse_clients_gauge.dec()

    return StreamingResponse(event_gen(), media_type="text/event-stream", headers=SSE_HEADERS)


def _feed(
    factory: async_sessionmaker[AsyncSession],
    repo: OrdersRepoSQL,
    tenant_id: str,
    view: str,
) -> OrderFeed:
    settings = get_settings()
    return OrderFeed(
        factory,
        tenant_id,
        view=view,
        repo=repo,
        poll_interval=settings.feed_poll_interval_secs,
        keepalive=settings.feed_keepalive_secs,
        recent_completed=settings.feed_recent_completed,
        timezone_name=settings.order_day_timezone,
    )


@router.get(
    "/api/orders/stream",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def stream_owner_orders(
    request: Request,
    tenant_id: str = Depends(owner_tenant),
    factory: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
    repo: OrdersRepoSQL = Depends(orders_repo),
) -> StreamingResponse:
    """Stream the owner's active orders."""
    return _stream(request, _feed(factory, repo, tenant_id, VIEW_OWNER))


@router.get(
    "/api/staff/orders/stream",
    response_class=StreamingResponse,
    responses={200: {"content": {"text/event-stream": {}}}},
)
async def stream_staff_orders(
    request: Request,
    tenant_id: str = Depends(staff_tenant),
    factory: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
    repo: OrdersRepoSQL = Depends(orders_repo),
) -> StreamingResponse:
    """Stream active orders plus today's most recently completed ones."""
    return _stream(request, _feed(factory, repo, tenant_id, VIEW_STAFF))
