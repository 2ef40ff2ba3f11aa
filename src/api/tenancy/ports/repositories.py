"""Repository protocols (ports) for the tenancy bounded context.

The tenant directory is the read side the resolver depends on. The tenant
store is the write side used by tenant administration. Implementations
coordinate PostgreSQL; the directory may be fronted by a read-through cache.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from shared_kernel.tenancy.value_objects import PrincipalId, TenantId
from tenancy.domain.aggregates import Membership, Tenant


@runtime_checkable
class ITenantDirectory(Protocol):
    """Read access to tenant and membership records."""

    async def get_tenant(self, tenant_id: TenantId) -> Tenant | None:
        """Retrieve a tenant by id, whatever its status.

        Args:
            tenant_id: The tenant identifier

        Returns:
            The Tenant, or None if not found
        """
        ...

    async def get_membership(
        self, tenant_id: TenantId, principal_id: PrincipalId
    ) -> Membership | None:
        """Retrieve the principal's active membership in a tenant.

        Inactive (revoked) memberships are never returned.

        Args:
            tenant_id: The tenant identifier
            principal_id: The principal identifier

        Returns:
            The active Membership, or None if there is none
        """
        ...

    async def list_memberships_for_principal(
        self, principal_id: PrincipalId
    ) -> list[Membership]:
        """List the principal's active memberships, oldest first.

        The first entry is the principal's primary tenant.
        """
        ...


@runtime_checkable
class ITenantStore(ITenantDirectory, Protocol):
    """Write access to tenants and memberships."""

    async def save_tenant(self, tenant: Tenant) -> None:
        """Insert or update a tenant.

        Tenants are never deleted; deactivation is a status change.
        """
        ...

    async def save_membership(self, membership: Membership) -> None:
        """Insert or update a membership.

        Raises:
            DuplicateMembershipError: If it would create a second active
                membership for the same principal and tenant.
        """
        ...


@runtime_checkable
class ITenantDirectoryCache(Protocol):
    """Invalidation hooks of a cached tenant directory."""

    async def invalidate_tenant(self, tenant_id: TenantId) -> None:
        """Drop the cached tenant record."""
        ...

    async def invalidate_membership(
        self, tenant_id: TenantId, principal_id: PrincipalId
    ) -> None:
        """Drop the cached membership and the principal's membership list."""
        ...
