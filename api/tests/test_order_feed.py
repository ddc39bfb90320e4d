import asyncio
import json

import pytest

from api.app.auth import ROLE_STAFF, Principal
from api.app.events import EventBus, orders_topic
from api.app.repos_sqlalchemy import OrdersRepoSQL
from api.app.services import OrderFeed, OrderService
from api.app.services.order_feed import VIEW_STAFF, diff, fingerprint, format_event


class Client:
    def __init__(self):
        self.gone = False

    async def is_disconnected(self):
        return self.gone


def parse(frame: str):
    fields = dict(line.split(": ", 1) for line in frame.strip().split("\n"))
    return fields["event"], int(fields["id"]), json.loads(fields["data"])


async def next_frame(gen, timeout=2.0):
    return await asyncio.wait_for(gen.__anext__(), timeout)


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def feed_service(locks, bus):
    return OrderService(OrdersRepoSQL(locks=locks), bus=bus)


def _feed(session_factory, seeded, bus, **kwargs):
    kwargs.setdefault("poll_interval", 0.05)
    kwargs.setdefault("keepalive", 60.0)
    return OrderFeed(session_factory, seeded.tenant.id, bus=bus, **kwargs)


def _staff(tenant):
    return Principal(sub="staff", role=ROLE_STAFF, tenant_id=tenant.id)


async def _place(factory, service, seeded, table="A1"):
    async with factory() as session:
        return await service.place_order(
            session, "1234", table, [{"item_id": seeded.burger.id, "quantity": 1}]
        )


def test_format_event_frame():
    assert format_event("orders", {"a": 1}, 7) == 'event: orders\nid: 7\ndata: {"a": 1}\n\n'


def test_diff_detects_membership_and_in_place_changes():
    prev = {"o1": ("NEW", "t1"), "o2": ("NEW", "t1")}
    cur = {"o1": ("PREPARING", "t2"), "o3": ("NEW", "t3")}
    changes = diff(prev, cur)
    assert changes.as_dict() == {"added": ["o3"], "removed": ["o2"], "changed": ["o1"]}
    assert not diff(cur, dict(cur))


@pytest.mark.anyio
async def test_snapshot_is_sent_first(session_factory, seeded, feed_service, bus):
    order = await _place(session_factory, feed_service, seeded)
    gen = _feed(session_factory, seeded, bus).stream(Client().is_disconnected)

    event, event_id, data = parse(await next_frame(gen))

    assert (event, event_id) == ("snapshot", 1)
    assert [o["id"] for o in data["orders"]] == [order.id]
    assert data["orders"][0]["displayCode"] == "1234-A1-0001"
    assert "recentCompleted" not in data
    await gen.aclose()


@pytest.mark.anyio
async def test_new_order_pushed_once(session_factory, seeded, feed_service, bus):
    gen = _feed(session_factory, seeded, bus).stream(Client().is_disconnected)
    parse(await next_frame(gen))

    order = await _place(session_factory, feed_service, seeded)
    event, event_id, data = parse(await next_frame(gen))

    assert (event, event_id) == ("orders", 2)
    assert data["changes"] == {"added": [order.id], "removed": [], "changed": []}
    await gen.aclose()


@pytest.mark.anyio
async def test_unchanged_board_only_sends_keepalive(session_factory, seeded, bus):
    gen = _feed(session_factory, seeded, bus, poll_interval=0.01, keepalive=0.05).stream(
        Client().is_disconnected
    )
    parse(await next_frame(gen))

    assert await next_frame(gen) == ": keepalive\n\n"
    await gen.aclose()


@pytest.mark.anyio
async def test_status_change_with_same_ids_is_delivered(
    session_factory, seeded, feed_service, bus
):
    order = await _place(session_factory, feed_service, seeded)
    gen = _feed(session_factory, seeded, bus).stream(Client().is_disconnected)
    parse(await next_frame(gen))

    async with session_factory() as session:
        await feed_service.transition(session, _staff(seeded.tenant), order.id, "PREPARING")
    event, _, data = parse(await next_frame(gen))

    assert event == "orders"
    assert data["changes"]["changed"] == [order.id]
    assert data["orders"][0]["status"] == "PREPARING"
    await gen.aclose()


@pytest.mark.anyio
async def test_staff_board_lists_recent_completed(session_factory, seeded, feed_service, bus):
    done = await _place(session_factory, feed_service, seeded)
    active = await _place(session_factory, feed_service, seeded, "B2")
    async with session_factory() as session:
        for status in ("PREPARING", "READY", "COMPLETED"):
            await feed_service.transition(session, _staff(seeded.tenant), done.id, status)

    gen = _feed(session_factory, seeded, bus, view=VIEW_STAFF).stream(Client().is_disconnected)
    _, _, data = parse(await next_frame(gen))

    assert [o["id"] for o in data["orders"]] == [active.id]
    assert [o["id"] for o in data["recentCompleted"]] == [done.id]
    assert data["recentCompleted"][0]["doneAt"] is not None
    await gen.aclose()


@pytest.mark.anyio
async def test_feed_ignores_other_tenants(session_factory, seeded, locks, bus):
    gen = _feed(session_factory, seeded, bus).stream(Client().is_disconnected)
    parse(await next_frame(gen))

    service = OrderService(OrdersRepoSQL(locks=locks), bus=bus)
    async with session_factory() as session:
        await service.place_order(
            session, "5678", "A1", [{"item_id": seeded.water.id, "quantity": 1}]
        )
    snapshot = await _feed(session_factory, seeded, bus).snapshot()
    assert fingerprint(snapshot.active) == {}
    await gen.aclose()


@pytest.mark.anyio
async def test_disconnect_ends_stream_and_unsubscribes(session_factory, seeded, bus):
    client = Client()
    gen = _feed(session_factory, seeded, bus).stream(client.is_disconnected)
    parse(await next_frame(gen))
    assert bus.subscribers(orders_topic(seeded.tenant.id)) == 1

    client.gone = True
    with pytest.raises(StopAsyncIteration):
        await next_frame(gen)
    assert bus.subscribers(orders_topic(seeded.tenant.id)) == 0
