from __future__ import annotations

"""Owner routes managing table identities and their QR targets."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from config import get_settings

from .auth import ROLE_OWNER, Principal, require_roles
from .db import get_session
from .deps.services import get_table_registry
from .domain import NotFound
from .qr import qr_data_url, table_url
from .repos_sqlalchemy import TenantGuard, TenantsRepoSQL
from .schemas import TablesIn, table_out
from .services import TableRegistry
from .utils.responses import ok

router = APIRouter()

owner_only = require_roles(ROLE_OWNER)


async def _tenant_code(session: AsyncSession, tenant_id: str) -> str:
    tenant = await TenantsRepoSQL().get(session, tenant_id)
    if tenant is None:
        raise NotFound("Restaurant not found")
    return tenant.code


def _render(tables, tenant_code: str, with_qr: bool) -> list[dict]:
    base = get_settings().public_base_url
    out = []
    for table in tables:
        url = table_url(base, tenant_code, table.table_identifier)
        out.append(table_out(table, url, qr_data_url(url) if with_qr else None))
    return out


@router.get("/api/tables")
async def list_tables(
    qr: bool = Query(default=False),
    principal: Principal = Depends(owner_only),
    session: AsyncSession = Depends(get_session),
    registry: TableRegistry = Depends(get_table_registry),
) -> dict:
    """Return active tables with their QR target URL and optional PNG."""
    tenant_id = TenantGuard.assert_tenant(principal.tenant_id)
    code = await _tenant_code(session, tenant_id)
    tables = await registry.list_tables(session, tenant_id)
    return ok(_render(tables, code, qr))


@router.post("/api/tables", status_code=201)
async def create_tables(
    payload: TablesIn,
    principal: Principal = Depends(owner_only),
    session: AsyncSession = Depends(get_session),
    registry: TableRegistry = Depends(get_table_registry),
) -> dict:
    """Create tables, restoring previously deleted ones with their old ids."""
    tenant_id = TenantGuard.assert_tenant(principal.tenant_id)
    code = await _tenant_code(session, tenant_id)
    result = await registry.create_or_restore(
        session, tenant_id, payload.identifiers, principal=principal
    )
    return ok(
        {
            "tables": _render(result.tables, code, True),
            "created": result.created,
            "restored": result.restored,
        }
    )


@router.delete("/api/tables/{table_id}")
async def delete_table(
    table_id: str,
    principal: Principal = Depends(owner_only),
    session: AsyncSession = Depends(get_session),
    registry: TableRegistry = Depends(get_table_registry),
) -> dict:
    """Soft-delete a table; printed codes work again once it is restored."""
    tenant_id = TenantGuard.assert_tenant(principal.tenant_id)
    table = await registry.soft_delete(session, tenant_id, table_id, principal=principal)
    return ok({"id": table.id, "deleted": True})
