"""Per-tenant, per-day order sequence allocation.

Sequence numbers restart at 1 every calendar day (in the configured order-day
time zone) for every tenant. Allocation reads the highest sequence of the day
and adds one, so callers must run the read and the order insert while holding
the advisory lock returned by :meth:`SequenceLocks.hold` for
:func:`lock_key`; the ``(tenant_id, sequence_date, daily_sequence)`` unique
constraint on ``orders`` catches anything the lock does not serialise (for
example a second API process without a shared Redis).
"""

from __future__ import annotations

import asyncio
import logging
import weakref
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import AsyncIterator
from zoneinfo import ZoneInfo

from redis.exceptions import LockError
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import TransientError
from ..models import Order

logger = logging.getLogger("api.orders")

SEQUENCE_WIDTH = 4


@dataclass(frozen=True)
class Allocation:
    """Result of a sequence allocation."""

    sequence: int
    sequence_date: date
    display_code: str


def order_day(now: datetime | None = None, tz: str = "UTC") -> date:
    """Return the calendar day ``now`` falls on in time zone ``tz``."""

    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(ZoneInfo(tz)).date()


def format_display_code(tenant_code: str, table_identifier: str, sequence: int) -> str:
    """Return ``TENANT-TABLE-0001`` style codes shown to staff."""

    return f"{tenant_code}-{table_identifier}-{sequence:0{SEQUENCE_WIDTH}d}"


def lock_key(tenant_id: str, day: date) -> str:
    """Return the advisory lock name for ``tenant_id`` on ``day``."""

    return f"order-seq:{tenant_id}:{day.isoformat()}"


async def last_sequence(session: AsyncSession, tenant_id: str, day: date) -> int:
    """Return the highest sequence used by ``tenant_id`` on ``day`` or 0."""

    result = await session.execute(
        select(func.max(Order.daily_sequence)).where(
            Order.tenant_id == tenant_id, Order.sequence_date == day
        )
    )
    return result.scalar_one_or_none() or 0


async def allocate(
    session: AsyncSession,
    tenant_id: str,
    table_identifier: str,
    tenant_code: str,
    day: date,
) -> Allocation:
    """Return the next sequence and display code for ``tenant_id`` on ``day``.

    The returned number is only reserved once the order carrying it commits;
    hold the lock for :func:`lock_key` across both steps.
    """

    sequence = await last_sequence(session, tenant_id, day) + 1
    return Allocation(
        sequence=sequence,
        sequence_date=day,
        display_code=format_display_code(tenant_code, table_identifier, sequence),
    )


class SequenceLocks:
    """In-process advisory locks keyed by :func:`lock_key`."""

    def __init__(self, timeout: float = 5.0) -> None:
        self.timeout = timeout
        self._locks: "weakref.WeakValueDictionary[str, asyncio.Lock]" = (
            weakref.WeakValueDictionary()
        )

    def _lock(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for ``key``; raise :class:`TransientError` on timeout."""

        lock = self._lock(key)
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self.timeout)
        except asyncio.TimeoutError as exc:
            logger.warning("sequence lock timeout key=%s", key)
            raise TransientError("Order numbering is busy, retry shortly") from exc
        try:
            yield
        finally:
            lock.release()


class RedisSequenceLocks(SequenceLocks):
    """Advisory locks shared by every API process through Redis."""

    def __init__(self, redis, timeout: float = 5.0, lease: float = 30.0) -> None:
        super().__init__(timeout=timeout)
        self.redis = redis
        self.lease = lease

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self.redis.lock(
            f"lock:{key}",
            timeout=self.lease,
            blocking_timeout=self.timeout,
            thread_local=False,
        )
        acquired = await lock.acquire()
        if not acquired:
            logger.warning("sequence lock timeout key=%s", key)
            raise TransientError("Order numbering is busy, retry shortly")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # lease expired while held; the unique constraint still guards the insert
                logger.warning("sequence lock lease expired key=%s", key)


__all__ = [
    "Allocation",
    "RedisSequenceLocks",
    "SequenceLocks",
    "allocate",
    "format_display_code",
    "last_sequence",
    "lock_key",
    "order_day",
]
