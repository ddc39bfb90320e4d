# events.py

"""Simple in-memory Pub/Sub dispatcher for order change nudges."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any, Dict, List


def orders_topic(tenant_id: str) -> str:
    """Return the topic carrying order changes of ``tenant_id``."""

    return f"orders.{tenant_id}"


class EventBus:
    """Dispatch events to subscribers via :class:`asyncio.Queue` instances."""

    def __init__(self) -> None:
        self._subs: Dict[str, List[asyncio.Queue]] = defaultdict(list)

    def subscribe(self, name: str) -> asyncio.Queue:
        """Register interest in ``name`` events and return a queue."""

        queue: asyncio.Queue = asyncio.Queue()
        self._subs[name].append(queue)
        return queue

    def unsubscribe(self, name: str, queue: asyncio.Queue) -> None:
        """Drop ``queue`` from the subscribers of ``name``."""

        queues = self._subs.get(name)
        if not queues:
            return
        if queue in queues:
            queues.remove(queue)
        if not queues:
            del self._subs[name]

    def subscribers(self, name: str) -> int:
        return len(self._subs.get(name, ()))

    async def publish(self, name: str, payload: Dict[str, Any]) -> None:
        """Broadcast ``payload`` to all subscribers of ``name``."""

        for queue in list(self._subs.get(name, [])):
            await queue.put(payload)


event_bus = EventBus()
