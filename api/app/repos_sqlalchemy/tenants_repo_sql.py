"""SQLAlchemy implementation of the tenant repository."""

from __future__ import annotations

import secrets

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..domain import ConflictError
from ..models import StaffCredential, Tenant
from ..repos.tenants_repo import TenantsRepo
from ..utils.soft_delete import scoped

CODE_ATTEMPTS = 20


def generate_tenant_code() -> str:
    """Return a random four digit public code."""

    return f"{secrets.randbelow(9000) + 1000}"


def generate_staff_token() -> str:
    """Return a 24 character hex staff token."""

    return secrets.token_hex(12)


class TenantsRepoSQL(TenantsRepo):
    """Concrete TenantsRepo using SQLAlchemy with an AsyncSession."""

    async def get(
        self, session: AsyncSession, tenant_id: str, include_deleted: bool = False
    ) -> Tenant | None:
        stmt = scoped(select(Tenant).where(Tenant.id == tenant_id), Tenant, include_deleted)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def get_by_code(
        self, session: AsyncSession, code: str, include_deleted: bool = False
    ) -> Tenant | None:
        stmt = scoped(select(Tenant).where(Tenant.code == code), Tenant, include_deleted)
        result = await session.execute(stmt)
        return result.scalar_one_or_none()

    async def create_tenant(
        self, session: AsyncSession, name: str, code: str | None = None
    ) -> Tenant:
        """Create a tenant, drawing a public code unused by any tenant."""
        if code is None:
            for _ in range(CODE_ATTEMPTS):
                candidate = generate_tenant_code()
                if await self.get_by_code(session, candidate, include_deleted=True) is None:
                    code = candidate
                    break
            else:
                raise ConflictError("No free tenant code available")
        tenant = Tenant(name=name, code=code)
        session.add(tenant)
        await session.commit()
        return tenant

    async def issue_staff_token(self, session: AsyncSession, tenant_id: str) -> StaffCredential:
        """Create the tenant's staff credential or rotate its token."""
        result = await session.execute(
            select(StaffCredential).where(StaffCredential.tenant_id == tenant_id)
        )
        credential = result.scalar_one_or_none()
        if credential is None:
            credential = StaffCredential(tenant_id=tenant_id)
            session.add(credential)
        credential.staff_token = generate_staff_token()
        await session.commit()
        return credential
