"""SQLAlchemy implementation of the menu repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import NotFound
from ..models import MenuItem
from ..repos.menu_repo import MenuRepo
from ..utils.soft_delete import scoped


class MenuRepoSQL(MenuRepo):
    """Concrete MenuRepo using SQLAlchemy with an AsyncSession."""

    async def list_items(
        self,
        session: AsyncSession,
        tenant_id: str,
        include_hidden: bool = False,
        include_deleted: bool = False,
    ) -> list[MenuItem]:
        """Return menu items ordered by category then name.

        Inactive items are included so the customer menu can show them as
        unavailable; hidden and deleted ones only on request.
        """
        stmt = scoped(
            select(MenuItem).where(MenuItem.tenant_id == tenant_id),
            MenuItem,
            include_deleted,
        )
        if not include_hidden:
            stmt = stmt.where(MenuItem.hidden.is_(False))
        stmt = stmt.order_by(MenuItem.category, MenuItem.name)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def get_items(
        self,
        session: AsyncSession,
        tenant_id: str,
        item_ids: Iterable[str],
        include_deleted: bool = False,
    ) -> dict[str, MenuItem]:
        """Return the items among ``item_ids`` owned by ``tenant_id`` keyed by id."""
        ids = {str(i) for i in item_ids}
        if not ids:
            return {}
        stmt = scoped(
            select(MenuItem).where(
                MenuItem.tenant_id == tenant_id, MenuItem.id.in_(ids)
            ),
            MenuItem,
            include_deleted,
        )
        result = await session.execute(stmt)
        return {item.id: item for item in result.scalars()}

    async def set_active(
        self, session: AsyncSession, tenant_id: str, item_id: str, active: bool
    ) -> MenuItem:
        """Set the availability flag of a menu item."""
        result = await session.execute(
            update(MenuItem)
            .where(
                MenuItem.id == item_id,
                MenuItem.tenant_id == tenant_id,
                MenuItem.deleted_at.is_(None),
            )
            .values(active=active, updated_at=datetime.now(timezone.utc))
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            await session.rollback()
            raise NotFound("Menu item not found")
        await session.commit()
        refreshed = await session.execute(
            select(MenuItem)
            .where(MenuItem.id == item_id)
            .execution_options(populate_existing=True)
        )
        return refreshed.scalar_one()
