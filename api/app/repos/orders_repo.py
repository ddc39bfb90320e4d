"""Repository interface for order operations."""

from abc import ABC, abstractmethod


class OrdersRepo(ABC):
    """Contract for order persistence and manipulation."""

    @abstractmethod
    def create_order(self, session, tenant, table, lines, customer_note=None):
        """Number and persist a priced order for ``table``."""
        raise NotImplementedError

    @abstractmethod
    def get_order(self, session, tenant_id, order_id):
        """Return one order of ``tenant_id`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    def list_orders(self, session, tenant_id, status=None, day=None):
        """List orders of a tenant, newest first."""
        raise NotImplementedError

    @abstractmethod
    def list_active(self, session, tenant_id):
        """List all active orders."""
        raise NotImplementedError

    @abstractmethod
    def list_recent_completed(self, session, tenant_id, since, limit):
        """List orders completed since ``since``, most recent first."""
        raise NotImplementedError

    @abstractmethod
    def update_status(self, session, order, current, target, now):
        """Move ``order`` from ``current`` to ``target`` if nobody else did."""
        raise NotImplementedError
