"""Tenant-scoped repository port.

Defines the contract every repository of tenant-owned entities honours.
Each operation takes an optional tenant context; when omitted, the context
bound to the current execution scope is used. Either way an unresolved or
absent context fails closed before storage is touched.
"""

from __future__ import annotations

from typing import Any, Protocol, TypeVar, runtime_checkable

from shared_kernel.tenancy.context import TenantContext


@runtime_checkable
class TenantOwned(Protocol):
    """Any entity whose identity is the composite ``(tenant_id, id)``."""

    tenant_id: Any
    id: Any


EntityT = TypeVar("EntityT", bound=TenantOwned)


@runtime_checkable
class ITenantScopedRepository(Protocol[EntityT]):
    """Repository contract for tenant-owned entities.

    Implementations enforce the tenant boundary themselves; callers never
    add a tenant filter by hand.
    """

    async def get_all(self, ctx: TenantContext | None = None) -> list[EntityT]:
        """Return every entity owned by the context's tenant."""
        ...

    async def get_by_id(
        self, entity_id: Any, ctx: TenantContext | None = None
    ) -> EntityT | None:
        """Look up an entity by the composite key ``(ctx.tenant_id, entity_id)``.

        Returns:
            The entity, or None if the tenant owns no entity with that id.
        """
        ...

    async def add(self, entity: EntityT, ctx: TenantContext | None = None) -> EntityT:
        """Persist a new entity, stamping the context's tenant if unset.

        Raises:
            TenantOwnershipViolationError: If the entity names another tenant.
        """
        ...

    async def update(
        self, entity: EntityT, ctx: TenantContext | None = None
    ) -> EntityT:
        """Persist changes to an entity owned by the context's tenant.

        Raises:
            EntityNotFoundError: If the tenant owns no entity with that id.
            TenantOwnershipViolationError: If the entity belongs to another tenant.
        """
        ...

    async def delete(self, entity: EntityT, ctx: TenantContext | None = None) -> bool:
        """Delete an entity owned by the context's tenant.

        Returns:
            True if deleted, False if the tenant owns no such entity.

        Raises:
            TenantOwnershipViolationError: If the entity belongs to another tenant.
        """
        ...
