"""Durable table identities behind printed QR codes.

A table's ``id`` is embedded in its QR URL, so recreating a deleted table
restores the existing row in place instead of inserting a new one. The
whole batch is validated before anything is written and is committed in
one transaction.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .. import audit
from ..auth import Principal
from ..domain import ConflictError, ValidationError
from ..models import Table
from ..repos_sqlalchemy import TablesRepoSQL
from ..routes_metrics import tables_restored_total
from ..utils.soft_delete import is_deleted

logger = logging.getLogger("api.tables")

IDENTIFIER_RE = re.compile(r"^[A-Z0-9]{1,10}$")
DEFAULT_BATCH_LIMIT = 100


def normalize_identifier(raw: str) -> str:
    """Trim and uppercase a table identifier."""

    return str(raw).strip().upper()


def validate_batch(identifiers: Iterable[str], limit: int = DEFAULT_BATCH_LIMIT) -> list[str]:
    """Return the normalized batch or raise :class:`ValidationError`.

    The batch is rejected as a whole when it is empty, larger than
    ``limit``, contains an identifier outside ``[A-Z0-9]{1,10}`` or repeats
    an identifier.
    """

    normalized = [normalize_identifier(raw) for raw in identifiers]
    if not normalized:
        raise ValidationError("At least one table identifier is required")
    if len(normalized) > limit:
        raise ValidationError(
            f"At most {limit} tables can be created at once",
            {"limit": limit, "received": len(normalized)},
        )
    invalid = [ident for ident in normalized if not IDENTIFIER_RE.match(ident)]
    if invalid:
        raise ValidationError(
            "Table identifiers must be 1-10 letters or digits",
            {"invalid": invalid},
        )
    seen: set[str] = set()
    duplicates: list[str] = []
    for ident in normalized:
        if ident in seen and ident not in duplicates:
            duplicates.append(ident)
        seen.add(ident)
    if duplicates:
        raise ValidationError("Duplicate table identifiers in request", {"duplicates": duplicates})
    return normalized


@dataclass
class RegistryResult:
    """Tables returned in request order, split by how they were obtained."""

    tables: list[Table] = field(default_factory=list)
    created: list[str] = field(default_factory=list)
    restored: list[str] = field(default_factory=list)


class TableRegistry:
    """Create, restore, list and delete table identities of a tenant."""

    def __init__(
        self,
        repo: TablesRepoSQL | None = None,
        batch_limit: int = DEFAULT_BATCH_LIMIT,
        audit_factory: async_sessionmaker[AsyncSession] | None = None,
    ) -> None:
        self.repo = repo or TablesRepoSQL()
        self.batch_limit = batch_limit
        self.audit_factory = audit_factory

    async def create_or_restore(
        self,
        session: AsyncSession,
        tenant_id: str,
        identifiers: Iterable[str],
        principal: Optional[Principal] = None,
    ) -> RegistryResult:
        """Create new tables and restore soft-deleted ones in one transaction.

        Raises :class:`ConflictError` naming every identifier that is
        already active; nothing is written in that case.
        """

        batch = validate_batch(identifiers, self.batch_limit)
        existing = {
            t.table_identifier: t
            for t in await self.repo.find_by_identifiers(
                session, tenant_id, batch, include_deleted=True
            )
        }
        conflicts = [i for i in batch if i in existing and not is_deleted(existing[i])]
        if conflicts:
            raise ConflictError(
                "Tables already exist: " + ", ".join(conflicts),
                {"conflicts": conflicts},
            )

        result = RegistryResult()
        for ident in batch:
            table = existing.get(ident)
            if table is not None:
                if not await self.repo.restore(session, table):
                    await session.rollback()
                    logger.warning(
                        "table restore raced with another request",
                        extra={"tenant": tenant_id, "table_identifier": ident},
                    )
                    raise ConflictError(
                        f"Tables already exist: {ident}", {"conflicts": [ident]}
                    )
                result.restored.append(ident)
            else:
                table = Table(tenant_id=tenant_id, table_identifier=ident)
                session.add(table)
                result.created.append(ident)
            result.tables.append(table)

        try:
            await session.commit()
        except IntegrityError as exc:
            await session.rollback()
            logger.warning(
                "table create raced with another request",
                extra={"tenant": tenant_id, "identifiers": batch},
            )
            raise ConflictError(
                "Tables were created concurrently, reload and retry",
                {"identifiers": batch},
            ) from exc

        if result.restored:
            tables_restored_total.inc(len(result.restored))
        logger.info(
            "table.create_or_restore",
            extra={
                "tenant": tenant_id,
                "created_tables": result.created,
                "restored_tables": result.restored,
            },
        )
        if principal is not None and self.audit_factory is not None:
            await audit.record(
                self.audit_factory,
                principal,
                "table.create_or_restore",
                "table",
                None,
                {"created": result.created, "restored": result.restored},
            )
        return result

    async def list_tables(
        self, session: AsyncSession, tenant_id: str, include_deleted: bool = False
    ) -> list[Table]:
        return await self.repo.list_tables(session, tenant_id, include_deleted=include_deleted)

    async def soft_delete(
        self,
        session: AsyncSession,
        tenant_id: str,
        table_id: str,
        principal: Optional[Principal] = None,
    ) -> Table:
        """Soft-delete a table; its orders and printed QR id are kept."""

        table = await self.repo.soft_delete(session, tenant_id, table_id)
        logger.info("table.deleted", extra={"tenant": tenant_id, "table_id": table_id})
        if principal is not None and self.audit_factory is not None:
            await audit.record(
                self.audit_factory, principal, "table.deleted", "table", table_id
            )
        return table

    async def hard_delete(self, session: AsyncSession, tenant_id: str, table_id: str) -> None:
        """Physically remove a table that no order references."""

        await self.repo.hard_delete(session, tenant_id, table_id)
        logger.warning("table.hard_deleted", extra={"tenant": tenant_id, "table_id": table_id})
