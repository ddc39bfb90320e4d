from __future__ import annotations

"""Guest-facing order placement."""

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .deps.services import get_order_service
from .schemas import OrderIn, order_out
from .services import OrderService
from .utils.responses import ok

router = APIRouter()


@router.post("/api/orders", status_code=201)
async def create_guest_order(
    payload: OrderIn,
    session: AsyncSession = Depends(get_session),
    service: OrderService = Depends(get_order_service),
) -> dict:
    """Create a new order for the table in ``payload``.

    Prices come from the live menu; the whole cart is rejected if any line
    is invalid.
    """

    lines = [line.model_dump() for line in payload.items]
    order = await service.place_order(
        session,
        payload.tenant_code,
        payload.table_identifier,
        lines,
        customer_note=payload.customer_note,
    )
    return ok(order_out(order))
