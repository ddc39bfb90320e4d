"""Dependency helpers for tenant resolution."""

from fastapi import Depends

from ..auth import ROLE_OWNER, ROLE_STAFF, Principal, require_roles
from ..repos_sqlalchemy import TenantGuard


def owner_tenant(principal: Principal = Depends(require_roles(ROLE_OWNER))) -> str:
    """Return the tenant the owner token is bound to."""
    return TenantGuard.assert_tenant(principal.tenant_id)


def staff_tenant(principal: Principal = Depends(require_roles(ROLE_STAFF))) -> str:
    """Return the tenant the staff token is bound to.

    The tenant always comes from the token, never from the request, so a
    staff token of another restaurant only ever sees its own orders.
    """
    return TenantGuard.assert_tenant(principal.tenant_id)
