"""Repository interface for menu operations."""

from abc import ABC, abstractmethod


class MenuRepo(ABC):
    """Contract for menu-related persistence operations."""

    @abstractmethod
    def list_items(self, session, tenant_id, include_hidden=False, include_deleted=False):
        """Return menu items of a tenant."""
        raise NotImplementedError

    @abstractmethod
    def get_items(self, session, tenant_id, item_ids, include_deleted=False):
        """Return the items among ``item_ids`` owned by the tenant."""
        raise NotImplementedError

    @abstractmethod
    def set_active(self, session, tenant_id, item_id, active):
        """Toggle the availability of a menu item."""
        raise NotImplementedError
