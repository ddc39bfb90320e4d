"""SQLAlchemy implementation of the table identity repository."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.attributes import set_committed_value

from ..domain import ConflictError, NotFound
from ..models import Order, Table
from ..repos.tables_repo import TablesRepo
from ..utils.soft_delete import is_deleted, scoped
from ..utils.soft_delete import soft_delete as mark_deleted


class TablesRepoSQL(TablesRepo):
    """Concrete TablesRepo; reads hide deleted rows unless asked not to."""

    async def get(
        self,
        session: AsyncSession,
        tenant_id: str,
        table_id: str,
        include_deleted: bool = False,
    ) -> Table | None:
        stmt = scoped(
            select(Table).where(Table.id == table_id, Table.tenant_id == tenant_id),
            Table,
            include_deleted,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_identifier(
        self,
        session: AsyncSession,
        tenant_id: str,
        table_identifier: str,
        include_deleted: bool = False,
    ) -> Table | None:
        stmt = scoped(
            select(Table).where(
                Table.tenant_id == tenant_id,
                Table.table_identifier == table_identifier,
            ),
            Table,
            include_deleted,
        )
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_tables(
        self, session: AsyncSession, tenant_id: str, include_deleted: bool = False
    ) -> list[Table]:
        stmt = scoped(
            select(Table).where(Table.tenant_id == tenant_id), Table, include_deleted
        ).order_by(Table.table_identifier)
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def find_by_identifiers(
        self,
        session: AsyncSession,
        tenant_id: str,
        identifiers: Iterable[str],
        include_deleted: bool = False,
    ) -> list[Table]:
        idents = list(identifiers)
        if not idents:
            return []
        stmt = scoped(
            select(Table).where(
                Table.tenant_id == tenant_id, Table.table_identifier.in_(idents)
            ),
            Table,
            include_deleted,
        )
        result = await session.execute(stmt)
        return list(result.scalars().all())

    async def restore(self, session: AsyncSession, table: Table) -> bool:
        """Clear ``deleted_at`` only while the row is still deleted.

        Returns ``False`` when a concurrent transaction restored the table
        first; the caller owns the transaction and rolls it back.
        """
        result = await session.execute(
            update(Table)
            .where(
                Table.id == table.id,
                Table.tenant_id == table.tenant_id,
                Table.deleted_at.is_not(None),
            )
            .values(deleted_at=None)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount != 1:
            return False
        set_committed_value(table, "deleted_at", None)
        return True

    async def soft_delete(
        self, session: AsyncSession, tenant_id: str, table_id: str
    ) -> Table:
        """Set ``deleted_at``; orders that reference the table are untouched.

        Deleting an already deleted table is a no-op that keeps the original
        timestamp.
        """
        table = await self.get(session, tenant_id, table_id, include_deleted=True)
        if table is None:
            raise NotFound("Table not found")
        if not is_deleted(table):
            mark_deleted(table, datetime.now(timezone.utc))
            await session.commit()
        return table

    async def hard_delete(
        self, session: AsyncSession, tenant_id: str, table_id: str
    ) -> None:
        """Physically remove a table that no order references."""
        table = await self.get(session, tenant_id, table_id, include_deleted=True)
        if table is None:
            raise NotFound("Table not found")
        referenced = await session.execute(
            select(Order.id).where(Order.table_id == table_id).limit(1)
        )
        if referenced.first() is not None:
            raise ConflictError(
                "Table is referenced by orders and can only be soft-deleted",
                {"table_id": table_id},
            )
        await session.execute(
            delete(Table).where(Table.id == table_id, Table.tenant_id == tenant_id)
        )
        await session.commit()
