#!/usr/bin/env python3
"""Seed a demo restaurant with a menu, tables and access tokens.

Creates one tenant with a random public code, a small menu with
customizations, six tables (A1-A3, B1-B3) and a staff credential, then
prints the identifiers together with owner and staff bearer tokens. Pass
``--reset`` to drop and recreate every table first.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from decimal import Decimal

from sqlalchemy.ext.asyncio import AsyncSession

from api.app import db
from api.app.auth import ROLE_OWNER, ROLE_STAFF, create_access_token
from api.app.models import Base, CustomizationAction, ItemCustomization, MenuItem
from api.app.qr import table_url
from api.app.repos_sqlalchemy import TenantsRepoSQL
from api.app.services import TableRegistry
from config import get_settings

MENU = {
    "Cocktails": [
        ("Mojito", "9.50", "Fresh mint, lime, rum, and soda water"),
        ("Pina Colada", "10.00", "Coconut cream, pineapple juice, and rum"),
        ("Aperol Spritz", "8.50", "Aperol, prosecco, and soda water"),
    ],
    "Beers": [
        ("Mythos", "4.50", "Greek lager beer"),
        ("Fix Hellas", "4.50", "Premium Greek beer"),
        ("Corona", "5.50", "Mexican lager with lime"),
    ],
    "Snacks": [
        ("Greek Salad", "8.00", "Tomatoes, cucumber, feta, olives, onion"),
        ("French Fries", "4.00", "Crispy golden fries with seasoning"),
        ("Calamari", "12.00", "Fried squid rings with tzatziki"),
    ],
}

CUSTOMIZATIONS = {
    "Mojito": [
        ("Extra rum", "2.00", CustomizationAction.ADD),
        ("No sugar", "0.00", CustomizationAction.REMOVE),
    ],
    "French Fries": [
        ("Cheese sauce", "1.50", CustomizationAction.ADD),
        ("Sweet potato", "1.00", CustomizationAction.CHANGE),
        ("Regular potato", "0.00", CustomizationAction.CHANGE),
    ],
}

TABLES = ["A1", "A2", "A3", "B1", "B2", "B3"]


async def _reset() -> None:
    """Drop and recreate the ordering schema."""

    async with db.get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)


async def _seed(session: AsyncSession, name: str) -> dict[str, object]:
    """Insert demo data and return created identifiers."""

    tenants = TenantsRepoSQL()
    tenant = await tenants.create_tenant(session, name)
    credential = await tenants.issue_staff_token(session, tenant.id)

    items = []
    code = 100
    for category, entries in MENU.items():
        for item_name, price, description in entries:
            item = MenuItem(
                tenant_id=tenant.id,
                item_code=str(code),
                name=item_name,
                price=Decimal(price),
                description=description,
                category=category,
                customizations=[
                    ItemCustomization(name=c_name, price=Decimal(c_price), action=action)
                    for c_name, c_price, action in CUSTOMIZATIONS.get(item_name, [])
                ],
            )
            session.add(item)
            code += 1
            items.append(item)
    await session.commit()

    result = await TableRegistry().create_or_restore(session, tenant.id, TABLES)
    base_url = get_settings().public_base_url
    return {
        "tenant": {"id": tenant.id, "code": tenant.code, "name": tenant.name},
        "items": [{"id": i.id, "code": i.item_code, "name": i.name} for i in items],
        "tables": [
            {
                "id": t.id,
                "identifier": t.table_identifier,
                "url": table_url(base_url, tenant.code, t.table_identifier),
            }
            for t in result.tables
        ],
        "staff_token": credential.staff_token,
        "owner_bearer": create_access_token(
            {"sub": f"owner:{tenant.id}", "role": ROLE_OWNER, "tenant_id": tenant.id}
        ),
        "staff_bearer": create_access_token(
            {
                "sub": f"staff:{credential.id}",
                "role": ROLE_STAFF,
                "tenant_id": tenant.id,
                "staff_id": credential.id,
            }
        ),
    }


async def main(name: str, reset: bool) -> None:
    if reset:
        await _reset()
    else:
        await db.create_all()
    async with db.get_sessionmaker()() as session:
        data = await _seed(session, name)
    await db.dispose()
    print(json.dumps(data, indent=2))


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed a demo restaurant")
    parser.add_argument("--name", default="Paradise Beach Bar", help="Restaurant name")
    parser.add_argument(
        "--reset", action="store_true", help="Drop and recreate all tables before seeding"
    )
    args = parser.parse_args()
    asyncio.run(main(args.name, args.reset))
