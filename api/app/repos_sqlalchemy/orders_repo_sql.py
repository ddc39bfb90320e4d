"""SQLAlchemy-backed repository for orders.

Order creation numbers the order and inserts it with its lines in a single
transaction. Line names and prices are snapshotted into ``order_items`` so
that historical orders keep what the customer saw even if the menu changes
later.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from typing import List, Optional

from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import ACTIVE_STATUSES, OrderStatus, TransientError
from ..models import Order, OrderItem, Table, Tenant
from ..pricing import PricedLine, order_total, quantize
from ..repos.orders_repo import OrdersRepo
from ..routes_metrics import order_sequence_conflicts_total
from ..utils.order_counter import SequenceLocks, allocate, lock_key, order_day

logger = logging.getLogger("api.orders")

SEQUENCE_CONSTRAINT = "uq_orders_tenant_day_sequence"


def _is_sequence_conflict(exc: IntegrityError) -> bool:
    text = str(exc.orig)
    return SEQUENCE_CONSTRAINT in text or "orders.daily_sequence" in text


class OrdersRepoSQL(OrdersRepo):
    """Concrete OrdersRepo using SQLAlchemy with an AsyncSession."""

    def __init__(
        self,
        locks: SequenceLocks | None = None,
        retries: int = 5,
        timezone_name: str = "UTC",
    ) -> None:
        self.locks = locks or SequenceLocks()
        self.retries = max(1, retries)
        self.timezone_name = timezone_name

    async def create_order(
        self,
        session: AsyncSession,
        tenant: Tenant,
        table: Table,
        lines: List[PricedLine],
        customer_note: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> Order:
        """Allocate the next daily sequence and persist the order.

        The allocation and the insert run under the advisory lock of the
        tenant's order day. A unique-constraint collision rolls back and
        re-reads, up to ``retries`` attempts; :class:`TransientError` is
        raised when they are exhausted and nothing is written.
        """

        # plain values survive the rollback of a failed attempt
        tenant_id, tenant_code = tenant.id, tenant.code
        table_id, table_identifier = table.id, table.table_identifier
        now = now or datetime.now(timezone.utc)
        day = order_day(now, self.timezone_name)
        total = quantize(order_total(line.subtotal for line in lines))

        async with self.locks.hold(lock_key(tenant_id, day)):
            for attempt in range(1, self.retries + 1):
                allocation = await allocate(
                    session, tenant_id, table_identifier, tenant_code, day
                )
                order = Order(
                    tenant_id=tenant_id,
                    table_id=table_id,
                    daily_sequence=allocation.sequence,
                    sequence_date=allocation.sequence_date,
                    display_code=allocation.display_code,
                    status=OrderStatus.NEW,
                    total=total,
                    customer_note=customer_note,
                    created_at=now,
                    updated_at=now,
                    items=[
                        OrderItem(
                            item_id=line.item_id,
                            position=position,
                            quantity=line.quantity,
                            customizations=line.customization_snapshots(),
                            subtotal=quantize(line.subtotal),
                            item_name_snapshot=line.item_name,
                            item_price_snapshot=quantize(line.unit_price),
                        )
                        for position, line in enumerate(lines)
                    ],
                )
                session.add(order)
                try:
                    await session.commit()
                except IntegrityError as exc:
                    await session.rollback()
                    if not _is_sequence_conflict(exc):
                        raise
                    order_sequence_conflicts_total.inc()
                    logger.warning(
                        "order sequence conflict",
                        extra={
                            "tenant": tenant_id,
                            "sequence": allocation.sequence,
                            "attempt": attempt,
                        },
                    )
                    continue
                # re-select so the table and lines are loaded for serialization
                created = await session.execute(
                    select(Order)
                    .where(Order.id == order.id)
                    .execution_options(populate_existing=True)
                )
                return created.scalar_one()

        logger.error(
            "order sequence retries exhausted",
            extra={"tenant": tenant_id, "attempts": self.retries},
        )
        raise TransientError("Could not number the order, retry shortly")

    async def get_order(
        self, session: AsyncSession, tenant_id: str, order_id: str
    ) -> Order | None:
        """Return ``order_id`` if it belongs to ``tenant_id``."""
        result = await session.execute(
            select(Order)
            .where(Order.id == order_id, Order.tenant_id == tenant_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def list_orders(
        self,
        session: AsyncSession,
        tenant_id: str,
        status: OrderStatus | None = None,
        day: date | None = None,
    ) -> list[Order]:
        """Return orders of ``tenant_id`` newest first, optionally filtered."""
        stmt = select(Order).where(Order.tenant_id == tenant_id)
        if status is not None:
            stmt = stmt.where(Order.status == status)
        if day is not None:
            stmt = stmt.where(Order.sequence_date == day)
        stmt = stmt.order_by(Order.created_at.desc(), Order.daily_sequence.desc())
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def list_active(self, session: AsyncSession, tenant_id: str) -> list[Order]:
        """Return NEW, PREPARING and READY orders newest first."""
        result = await session.execute(
            select(Order)
            .where(Order.tenant_id == tenant_id, Order.status.in_(ACTIVE_STATUSES))
            .order_by(Order.created_at.desc(), Order.daily_sequence.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def list_recent_completed(
        self,
        session: AsyncSession,
        tenant_id: str,
        since: datetime,
        limit: int = 5,
    ) -> list[Order]:
        """Return orders completed (or created) since ``since``."""
        result = await session.execute(
            select(Order)
            .where(
                Order.tenant_id == tenant_id,
                Order.status == OrderStatus.COMPLETED,
                (Order.done_at >= since) | (Order.created_at >= since),
            )
            .order_by(Order.done_at.desc(), Order.created_at.desc())
            .limit(limit)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def update_status(
        self,
        session: AsyncSession,
        order: Order,
        current: OrderStatus,
        target: OrderStatus,
        now: Optional[datetime] = None,
    ) -> Order | None:
        """Persist ``target`` only while the order is still ``current``.

        Returns the refreshed order, or ``None`` when a concurrent writer
        changed the status first. ``done_at`` is stamped on the first
        completion and never overwritten.
        """

        now = now or datetime.now(timezone.utc)
        tenant_id, order_id = order.tenant_id, order.id
        values: dict = {"status": target, "updated_at": now}
        if target is OrderStatus.COMPLETED:
            values["done_at"] = func.coalesce(Order.done_at, now)
        result = await session.execute(
            update(Order)
            .where(
                Order.id == order_id,
                Order.tenant_id == tenant_id,
                Order.status == current,
            )
            .values(**values)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await session.rollback()
            return None
        await session.commit()
        return await self.get_order(session, tenant_id, order_id)
