"""Repository interface for table identities."""

from abc import ABC, abstractmethod


class TablesRepo(ABC):
    """Contract for table identity persistence."""

    @abstractmethod
    def get(self, session, tenant_id, table_id, include_deleted=False):
        """Return one table of the tenant or ``None``."""
        raise NotImplementedError

    @abstractmethod
    def get_by_identifier(self, session, tenant_id, table_identifier, include_deleted=False):
        """Return the table with ``table_identifier`` or ``None``."""
        raise NotImplementedError

    @abstractmethod
    def list_tables(self, session, tenant_id, include_deleted=False):
        """Return the tables of a tenant ordered by identifier."""
        raise NotImplementedError

    @abstractmethod
    def find_by_identifiers(self, session, tenant_id, identifiers, include_deleted=False):
        """Return tables whose identifier is in ``identifiers``."""
        raise NotImplementedError

    @abstractmethod
    def restore(self, session, table):
        """Clear ``deleted_at`` if the table is still deleted; return success."""
        raise NotImplementedError

    @abstractmethod
    def soft_delete(self, session, tenant_id, table_id):
        """Mark a table as deleted."""
        raise NotImplementedError

    @abstractmethod
    def hard_delete(self, session, tenant_id, table_id):
        """Physically remove a table row."""
        raise NotImplementedError
