"""Owner and staff order management routes.

Owners and staff share the lifecycle rules; the tenant is always taken from
the caller's token.
"""

from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from .auth import ROLE_OWNER, ROLE_STAFF, Principal, require_roles
from .db import get_session
from .deps.services import client_ip, get_order_service
from .schemas import AvailabilityIn, StatusIn, menu_item_out, order_out
from .services import OrderService
from .utils.responses import ok

router = APIRouter()

owner_only = require_roles(ROLE_OWNER)
staff_only = require_roles(ROLE_STAFF)
owner_or_staff = require_roles(ROLE_OWNER, ROLE_STAFF)


@router.get("/api/orders")
async def list_orders(
    status: Optional[str] = Query(default=None),
    date: Optional[str] = Query(default=None),
    principal: Principal = Depends(owner_only),
    session: AsyncSession = Depends(get_session),
    service: OrderService = Depends(get_order_service),
) -> dict:
    """Return the owner's orders newest first, filtered by status and day."""
    orders = await service.list_orders(session, principal, status=status, day=date)
    return ok([order_out(o) for o in orders])


@router.patch("/api/orders/{order_id}/status")
async def owner_update_status(
    order_id: str,
    payload: StatusIn,
    request: Request,
    principal: Principal = Depends(owner_only),
    session: AsyncSession = Depends(get_session),
    service: OrderService = Depends(get_order_service),
) -> dict:
    order = await service.transition(
        session, principal, order_id, payload.status, client_ip(request)
    )
    return ok(order_out(order))


@router.get("/api/staff/orders")
async def staff_list_orders(
    status: Optional[str] = Query(default=None),
    principal: Principal = Depends(staff_only),
    session: AsyncSession = Depends(get_session),
    service: OrderService = Depends(get_order_service),
) -> dict:
    orders = await service.list_orders(session, principal, status=status)
    return ok([order_out(o) for o in orders])


@router.patch("/api/staff/orders/{order_id}/status")
async def staff_update_status(
    order_id: str,
    payload: StatusIn,
    request: Request,
    principal: Principal = Depends(staff_only),
    session: AsyncSession = Depends(get_session),
    service: OrderService = Depends(get_order_service),
) -> dict:
    """Advance an order of the staff member's restaurant."""
    order = await service.transition(
        session, principal, order_id, payload.status, client_ip(request)
    )
    return ok(order_out(order))


@router.patch("/api/staff/items/{item_id}/availability")
async def set_item_availability(
    item_id: str,
    payload: AvailabilityIn,
    request: Request,
    principal: Principal = Depends(owner_or_staff),
    session: AsyncSession = Depends(get_session),
    service: OrderService = Depends(get_order_service),
) -> dict:
    """Mark a menu item available or sold out."""
    item = await service.set_item_availability(
        session, principal, item_id, payload.active, client_ip(request)
    )
    return ok(menu_item_out(item))
