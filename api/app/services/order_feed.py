"""Live order feed for owner and staff boards.

Each connection re-reads the tenant's orders every poll interval, or as
soon as an order event for the tenant is published on the in-process bus,
and transmits only when the snapshot changed. Change detection combines a
membership diff by order id with a per-order status/``updated_at``
fingerprint, so an in-place status change is delivered even when the set
of ids stays the same.
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass, field
from datetime import datetime, time as dtime, timezone
from typing import AsyncIterator, Awaitable, Callable, Optional
from zoneinfo import ZoneInfo

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from ..events import EventBus, event_bus, orders_topic
from ..models import Order
from ..repos_sqlalchemy import OrdersRepoSQL
from ..schemas import as_utc, order_out
from ..utils.order_counter import order_day

logger = logging.getLogger("api.feed")

VIEW_OWNER = "owner"
VIEW_STAFF = "staff"

Fingerprint = dict[str, tuple[str, Optional[str]]]


def fingerprint(orders: list[Order]) -> Fingerprint:
    """Return ``{order_id: (status, updated_at)}`` for ``orders``."""

    result: Fingerprint = {}
    for order in orders:
        updated = as_utc(order.updated_at)
        result[order.id] = (order.status.value, updated.isoformat() if updated else None)
    return result


@dataclass
class FeedDiff:
    """Difference between two fingerprints."""

    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    changed: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return bool(self.added or self.removed or self.changed)

    def as_dict(self) -> dict[str, list[str]]:
        return {"added": self.added, "removed": self.removed, "changed": self.changed}


def diff(previous: Fingerprint, current: Fingerprint) -> FeedDiff:
    """Compare two fingerprints by membership and status/recency."""

    result = FeedDiff()
    for order_id, state in current.items():
        if order_id not in previous:
            result.added.append(order_id)
        elif previous[order_id] != state:
            result.changed.append(order_id)
    result.removed = [order_id for order_id in previous if order_id not in current]
    return result


def format_event(event: str, payload: dict, event_id: int) -> str:
    """Render one ``text/event-stream`` frame."""

    return f"event: {event}\nid: {event_id}\ndata: {json.dumps(payload)}\n\n"


def start_of_day(now: datetime, tz: str = "UTC") -> datetime:
    """Return the UTC instant at which ``now``'s order day began."""

    day = order_day(now, tz)
    return datetime.combine(day, dtime.min, tzinfo=ZoneInfo(tz)).astimezone(timezone.utc)


@dataclass
class FeedSnapshot:
    active: list[Order]
    completed: list[Order]

    def fingerprint(self) -> Fingerprint:
        return fingerprint(self.active + self.completed)

    def payload(self, view: str) -> dict:
        data = {"orders": [order_out(o) for o in self.active]}
        if view == VIEW_STAFF:
            data["recentCompleted"] = [order_out(o) for o in self.completed]
        return data


class OrderFeed:
    """Per-connection feed over one tenant's orders."""

    def __init__(
        self,
        factory: async_sessionmaker[AsyncSession],
        tenant_id: str,
        view: str = VIEW_OWNER,
        repo: OrdersRepoSQL | None = None,
        poll_interval: float = 3.0,
        keepalive: float = 15.0,
        recent_completed: int = 5,
        timezone_name: str = "UTC",
        bus: EventBus | None = None,
    ) -> None:
        self.factory = factory
        self.tenant_id = tenant_id
        self.view = view
        self.repo = repo or OrdersRepoSQL()
        self.poll_interval = poll_interval
        self.keepalive = keepalive
        self.recent_completed = recent_completed
        self.timezone_name = timezone_name
        self.bus = bus or event_bus

    async def snapshot(self) -> FeedSnapshot:
        """Read the current board state in a fresh session."""

        async with self.factory() as session:
            active = await self.repo.list_active(session, self.tenant_id)
            completed: list[Order] = []
            if self.view == VIEW_STAFF and self.recent_completed > 0:
                since = start_of_day(datetime.now(timezone.utc), self.timezone_name)
                completed = await self.repo.list_recent_completed(
                    session, self.tenant_id, since, self.recent_completed
                )
        return FeedSnapshot(active=active, completed=completed)

    async def _wait_for_nudge(self, queue: asyncio.Queue) -> bool:
        """Wait up to one poll interval; return ``True`` if an event arrived."""

        try:
            await asyncio.wait_for(queue.get(), timeout=self.poll_interval)
        except asyncio.TimeoutError:
            return False
        while not queue.empty():
            queue.get_nowait()
        return True

    async def stream(
        self, is_disconnected: Callable[[], Awaitable[bool]]
    ) -> AsyncIterator[str]:
        """Yield SSE frames until the client goes away.

        The first frame is always the full snapshot. Later frames are sent
        only when the fingerprint changed; idle ticks past the keep-alive
        interval yield a comment line.
        """

        topic = orders_topic(self.tenant_id)
        queue = self.bus.subscribe(topic)
        event_id = 0
        try:
            current = await self.snapshot()
            last = current.fingerprint()
            event_id += 1
            yield format_event("snapshot", current.payload(self.view), event_id)
            last_sent = time.monotonic()

            while True:
                if await is_disconnected():
                    break
                await self._wait_for_nudge(queue)
                if await is_disconnected():
                    break
                try:
                    current = await self.snapshot()
                except SQLAlchemyError:
                    logger.warning(
                        "feed refresh failed", exc_info=True, extra={"tenant": self.tenant_id}
                    )
                    continue
                latest = current.fingerprint()
                changes = diff(last, latest)
                now = time.monotonic()
                if changes:
                    last = latest
                    event_id += 1
                    payload = current.payload(self.view)
                    payload["changes"] = changes.as_dict()
                    yield format_event("orders", payload, event_id)
                    last_sent = now
                elif now - last_sent >= self.keepalive:
                    yield ": keepalive\n\n"
                    last_sent = now
        finally:
            self.bus.unsubscribe(topic, queue)
            logger.debug("feed closed", extra={"tenant": self.tenant_id, "view": self.view})
