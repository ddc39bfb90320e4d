"""Order placement and lifecycle transitions.

Both operations are bounded by the storage timeout; a timeout surfaces as
:class:`TransientError` and the request's session is rolled back when it
closes. Event publication and audit entries happen after the commit and are
best effort.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Any, Awaitable, Mapping, Optional, Sequence, TypeVar

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .. import audit
from ..auth import ROLE_OWNER, ROLE_STAFF, Principal
from ..domain import (
    ConflictError,
    Forbidden,
    InvalidTransition,
    NotFound,
    OrderStatus,
    TransientError,
    ValidationError,
    can_transition,
    parse_status,
)
from ..events import EventBus, event_bus, orders_topic
from ..models import MenuItem, Order
from ..pricing import price_line
from ..repos_sqlalchemy import (
    MenuRepoSQL,
    OrdersRepoSQL,
    TablesRepoSQL,
    TenantGuard,
    TenantsRepoSQL,
)
from ..routes_metrics import order_status_transitions_total, orders_created_total
from .table_registry import normalize_identifier

logger = logging.getLogger("api.orders")

T = TypeVar("T")


async def with_storage_timeout(awaitable: Awaitable[T], timeout: float) -> T:
    """Await ``awaitable`` for at most ``timeout`` seconds."""

    try:
        return await asyncio.wait_for(awaitable, timeout=timeout)
    except asyncio.TimeoutError as exc:
        logger.warning("storage timeout after %.1fs", timeout)
        raise TransientError("Storage did not respond in time") from exc


async def notify(bus: EventBus, tenant_id: str, payload: dict[str, Any]) -> None:
    """Nudge live feeds of ``tenant_id``; failures are only logged."""

    try:
        await bus.publish(orders_topic(tenant_id), payload)
    except Exception:  # pragma: no cover - in-memory queues do not fail
        logger.exception("order event publish failed", extra={"tenant": tenant_id})


class OrderService:
    """Coordinates pricing, numbering and transitions over the repositories."""

    def __init__(
        self,
        orders: OrdersRepoSQL,
        storage_timeout: float = 10.0,
        bus: EventBus | None = None,
        audit_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        self.orders = orders
        self.menu = MenuRepoSQL()
        self.tables = TablesRepoSQL()
        self.tenants = TenantsRepoSQL()
        self.storage_timeout = storage_timeout
        self.bus = bus or event_bus
        self.audit_factory = audit_factory

    # -- placement -------------------------------------------------------

    async def place_order(
        self,
        session: AsyncSession,
        tenant_code: str,
        table_identifier: str,
        lines: Sequence[Mapping[str, Any]],
        customer_note: Optional[str] = None,
    ) -> Order:
        """Validate, price and number a customer order.

        ``lines`` holds ``item_id``, ``quantity`` and ``customizations``
        mappings. Any invalid line aborts the whole order and nothing is
        written.
        """

        order = await with_storage_timeout(
            self._place(session, tenant_code, table_identifier, lines, customer_note),
            self.storage_timeout,
        )
        orders_created_total.inc()
        logger.info(
            "order.created",
            extra={
                "tenant": order.tenant_id,
                "order_id": order.id,
                "display_code": order.display_code,
            },
        )
        await notify(
            self.bus,
            order.tenant_id,
            {"type": "order.created", "order_id": order.id},
        )
        return order

    async def _place(
        self,
        session: AsyncSession,
        tenant_code: str,
        table_identifier: str,
        lines: Sequence[Mapping[str, Any]],
        customer_note: Optional[str],
    ) -> Order:
        tenant = await self.tenants.get_by_code(session, tenant_code)
        if tenant is None:
            raise NotFound("Restaurant not found")
        table = await self.tables.get_by_identifier(
            session, tenant.id, normalize_identifier(table_identifier)
        )
        if table is None:
            raise NotFound("Invalid table")
        if not lines:
            raise ValidationError("Order must contain at least one item")
        if customer_note is not None and len(customer_note) > 500:
            raise ValidationError("Customer note is too long", {"max_length": 500})

        items = await self.menu.get_items(
            session, tenant.id, [line["item_id"] for line in lines]
        )
        priced = []
        for line in lines:
            item: MenuItem | None = items.get(str(line["item_id"]))
            if item is None or not item.active:
                raise NotFound(
                    "Some items are no longer available",
                    {"item_id": line["item_id"]},
                )
            priced.append(
                price_line(item, line["quantity"], line.get("customizations") or ())
            )
        return await self.orders.create_order(
            session, tenant, table, priced, customer_note=customer_note
        )

    # -- lifecycle -------------------------------------------------------

    async def transition(
        self,
        session: AsyncSession,
        principal: Principal,
        order_id: str,
        target_status: str | OrderStatus,
        ip_address: Optional[str] = None,
    ) -> Order:
        """Move an order of the principal's tenant to ``target_status``."""

        if principal.role not in (ROLE_OWNER, ROLE_STAFF):
            raise Forbidden("Only restaurant owners and staff may update orders")
        tenant_id = TenantGuard.assert_tenant(principal.tenant_id)
        target = (
            target_status
            if isinstance(target_status, OrderStatus)
            else parse_status(str(target_status))
        )
        if target is None:
            raise ValidationError(
                "Invalid status",
                {"status": target_status, "allowed": [s.value for s in OrderStatus]},
            )

        order, current = await with_storage_timeout(
            self._transition(session, tenant_id, order_id, target),
            self.storage_timeout,
        )
        order_status_transitions_total.labels(status=target.value).inc()
        logger.info(
            "order.status_changed",
            extra={
                "tenant": tenant_id,
                "order_id": order.id,
                "from": current.value,
                "to": target.value,
                "actor": principal.role,
            },
        )
        await notify(
            self.bus,
            tenant_id,
            {"type": "order.status_changed", "order_id": order.id, "status": target.value},
        )
        if self.audit_factory is not None:
            await audit.record(
                self.audit_factory,
                principal,
                "order.status_changed",
                "order",
                order.id,
                {"from": current.value, "to": target.value},
                ip_address,
            )
        return order

    async def _transition(
        self,
        session: AsyncSession,
        tenant_id: str,
        order_id: str,
        target: OrderStatus,
    ) -> tuple[Order, OrderStatus]:
        order = await self.orders.get_order(session, tenant_id, order_id)
        if order is None:
            raise NotFound("Order not found")
        current = order.status
        if not can_transition(current, target):
            raise InvalidTransition(
                f"Cannot move order from {current.value} to {target.value}",
                {"from": current.value, "to": target.value},
            )
        updated = await self.orders.update_status(
            session, order, current, target, datetime.now(timezone.utc)
        )
        if updated is None:
            raise ConflictError(
                "Order was updated concurrently, reload and retry",
                {"order_id": order_id},
            )
        return updated, current

    # -- listings and availability ------------------------------------------

    async def list_orders(
        self,
        session: AsyncSession,
        principal: Principal,
        status: Optional[str] = None,
        day: Optional[str] = None,
    ) -> list[Order]:
        """Return orders of the principal's tenant, newest first."""

        tenant_id = TenantGuard.assert_tenant(principal.tenant_id)
        status_filter = None
        if status:
            status_filter = parse_status(status)
            if status_filter is None:
                raise ValidationError("Invalid status", {"status": status})
        day_filter = None
        if day:
            try:
                day_filter = datetime.strptime(day, "%Y-%m-%d").date()
            except ValueError as exc:
                raise ValidationError("Invalid date, expected YYYY-MM-DD", {"date": day}) from exc
        return await self.orders.list_orders(session, tenant_id, status_filter, day_filter)

    async def set_item_availability(
        self,
        session: AsyncSession,
        principal: Principal,
        item_id: str,
        active: bool,
        ip_address: Optional[str] = None,
    ) -> MenuItem:
        """Toggle the ``active`` flag of a menu item of the principal's tenant."""

        tenant_id = TenantGuard.assert_tenant(principal.tenant_id)
        item = await self.menu.set_active(session, tenant_id, item_id, active)
        logger.info(
            "menu_item.availability_changed",
            extra={"tenant": tenant_id, "item_id": item_id, "active": active},
        )
        if self.audit_factory is not None:
            await audit.record(
                self.audit_factory,
                principal,
                "menu_item.availability_changed",
                "menu_item",
                item_id,
                {"active": active},
                ip_address,
            )
        return item
