"""SQLAlchemy-backed repository implementations.

Every helper takes the tenant id explicitly and scopes its statements on it;
``TenantGuard`` rejects calls that arrive without one.
"""

from .menu_repo_sql import MenuRepoSQL
from .orders_repo_sql import OrdersRepoSQL
from .tables_repo_sql import TablesRepoSQL
from .tenants_repo_sql import TenantsRepoSQL


class TenantGuard:
    """Utility mixin providing tenant scoping assertions."""

    @staticmethod
    def assert_tenant(tenant_id: str | None) -> str:
        """Return ``tenant_id`` or raise ``PermissionError`` when it is blank."""

        if not tenant_id:
            raise PermissionError("tenant scope required")
        return tenant_id


__all__ = [
    "MenuRepoSQL",
    "OrdersRepoSQL",
    "TablesRepoSQL",
    "TenantGuard",
    "TenantsRepoSQL",
]
