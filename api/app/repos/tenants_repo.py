"""Repository interface for tenants and their staff credentials."""

from abc import ABC, abstractmethod


class TenantsRepo(ABC):
    """Contract for tenant lookups and provisioning."""

    @abstractmethod
    def get(self, session, tenant_id, include_deleted=False):
        """Return a tenant by id or ``None``."""
        raise NotImplementedError

    @abstractmethod
    def get_by_code(self, session, code, include_deleted=False):
        """Return a tenant by its public code or ``None``."""
        raise NotImplementedError

    @abstractmethod
    def create_tenant(self, session, name):
        """Create a tenant with a fresh public code."""
        raise NotImplementedError

    @abstractmethod
    def issue_staff_token(self, session, tenant_id):
        """Create or rotate the staff credential of a tenant."""
        raise NotImplementedError
