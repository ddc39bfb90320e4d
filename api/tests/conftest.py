"""Test configuration for API tests."""

from __future__ import annotations

import os
from decimal import Decimal
from types import SimpleNamespace

import pytest

# Provide default settings so tests can run without a full environment.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "x" * 32)

from api.app.db import create_test_session  # noqa: E402
from api.app.models import (  # noqa: E402
    CustomizationAction,
    ItemCustomization,
    MenuItem,
    Table,
    Tenant,
)
from api.app.repos_sqlalchemy import OrdersRepoSQL  # noqa: E402
from api.app.services import OrderService  # noqa: E402
from api.app.utils.order_counter import SequenceLocks  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture
async def session_factory(tmp_path):
    """File-backed SQLite so that concurrent sessions use real connections."""
    factory, engine = await create_test_session(
        f"sqlite+aiosqlite:///{tmp_path / 'ordering.db'}"
    )
    yield factory
    await engine.dispose()


@pytest.fixture
async def session(session_factory):
    async with session_factory() as sess:
        yield sess


def _item(tenant_id, code, name, price, category, **kwargs) -> MenuItem:
    customizations = kwargs.pop("customizations", [])
    return MenuItem(
        tenant_id=tenant_id,
        item_code=code,
        name=name,
        price=Decimal(price),
        category=category,
        customizations=[
            ItemCustomization(name=n, price=Decimal(p), action=a)
            for n, p, a in customizations
        ],
        **kwargs,
    )


@pytest.fixture
async def seeded(session_factory):
    """Two restaurants with menus and tables.

    Restaurant ``1234`` has a burger with ADD/REMOVE options, fries with
    CHANGE options, an inactive soda, a hidden special and a deleted item.
    Restaurant ``5678`` has its own water and table ``A1``.
    """
    from datetime import datetime, timezone

    async with session_factory() as sess:
        t1 = Tenant(code="1234", name="Paradise Beach Bar")
        t2 = Tenant(code="5678", name="Harbour Cafe")
        sess.add_all([t1, t2])
        await sess.flush()
        burger = _item(
            t1.id,
            "100",
            "Burger",
            "10.00",
            "Mains",
            customizations=[
                ("Cheese", "1.50", CustomizationAction.ADD),
                ("No onion", "0.00", CustomizationAction.REMOVE),
                ("Bacon", "2.25", CustomizationAction.ADD),
            ],
        )
        fries = _item(
            t1.id,
            "101",
            "Fries",
            "4.00",
            "Sides",
            customizations=[
                ("Sweet potato", "1.00", CustomizationAction.CHANGE),
                ("Regular", "0.00", CustomizationAction.CHANGE),
            ],
        )
        soda = _item(t1.id, "102", "Soda", "2.50", "Drinks", active=False)
        special = _item(t1.id, "103", "Chef special", "15.00", "Mains", hidden=True)
        gone = _item(
            t1.id, "104", "Old dish", "7.00", "Mains", deleted_at=datetime.now(timezone.utc)
        )
        water = _item(t2.id, "100", "Water", "1.00", "Drinks")
        a1 = Table(tenant_id=t1.id, table_identifier="A1")
        b2 = Table(tenant_id=t1.id, table_identifier="B2")
        other_a1 = Table(tenant_id=t2.id, table_identifier="A1")
        sess.add_all([burger, fries, soda, special, gone, water, a1, b2, other_a1])
        await sess.commit()
        return SimpleNamespace(
            tenant=t1,
            other=t2,
            burger=burger,
            fries=fries,
            soda=soda,
            special=special,
            gone=gone,
            water=water,
            a1=a1,
            b2=b2,
            other_a1=other_a1,
            opt={c.name: c for c in burger.customizations + fries.customizations},
        )


@pytest.fixture
def locks() -> SequenceLocks:
    return SequenceLocks(timeout=5.0)


@pytest.fixture
def service(locks, session_factory) -> OrderService:
    return OrderService(OrdersRepoSQL(locks=locks), audit_factory=session_factory)


@pytest.fixture
async def client(session_factory):
    """HTTP client for the application bound to the test database."""
    from httpx import ASGITransport, AsyncClient

    from api.app.db import get_sessionmaker
    from api.app.main import app

    app.dependency_overrides[get_sessionmaker] = lambda: session_factory
    app.state.sequence_locks = SequenceLocks(timeout=5.0)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
