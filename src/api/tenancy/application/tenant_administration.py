"""Tenant administration application service.

Provisions tenants, changes their status and manages memberships. Tenants
are never deleted. Every mutation drops the directory cache entries it
affects once the transaction has committed.
"""

from __future__ import annotations

from sqlalchemy.ext.asyncio import AsyncSession

from shared_kernel.tenancy.value_objects import PrincipalId, TenantId
from tenancy.application.observability import (
    DefaultTenantAdministrationProbe,
    TenantAdministrationProbe,
)
from tenancy.domain.aggregates import Membership, Tenant
from tenancy.domain.exceptions import (
    DuplicateMembershipError,
    TenantDeactivatedError,
    TenantNotFoundError,
)
from tenancy.domain.value_objects import TenantRole, TenantStatus
from tenancy.ports.repositories import ITenantDirectoryCache, ITenantStore


class TenantAdministrationService:
    """Application service for tenant and membership administration.

    Runs each operation in its own transaction on the given session.
    """

    def __init__(
        self,
        store: ITenantStore,
        session: AsyncSession,
        cache: ITenantDirectoryCache | None = None,
        probe: TenantAdministrationProbe | None = None,
    ):
        """Initialize TenantAdministrationService with dependencies.

        Args:
            store: Tenant and membership persistence
            session: Database session for transaction management
            cache: Optional directory cache to invalidate after changes
            probe: Optional domain probe for observability
        """
        self._store = store
        self._session = session
        self._cache = cache
        self._probe = probe or DefaultTenantAdministrationProbe()

    async def provision_tenant(
        self,
        name: str,
        subdomain: str | None = None,
        subscription_tier: str | None = None,
        admin_principal_id: PrincipalId | None = None,
    ) -> Tenant:
        """Provision a new active tenant.

        Args:
            name: Display name
            subdomain: Optional subdomain
            subscription_tier: Optional subscription tier
            admin_principal_id: Principal to make the tenant's first admin

        Returns:
            The provisioned Tenant
        """
        tenant = Tenant.provision(
            name=name, subdomain=subdomain, subscription_tier=subscription_tier
        )
        async with self._session.begin():
            await self._store.save_tenant(tenant)
            if admin_principal_id is not None:
                await self._store.save_membership(
                    Membership.grant(tenant.id, admin_principal_id, TenantRole.ADMIN)
                )

        self._probe.tenant_provisioned(tenant_id=str(tenant.id), name=tenant.name)
        if admin_principal_id is not None:
            self._probe.membership_granted(
                tenant_id=str(tenant.id),
                principal_id=admin_principal_id.value,
                role=TenantRole.ADMIN.value,
            )
            await self._invalidate_membership(tenant.id, admin_principal_id)
        return tenant

    async def suspend_tenant(self, tenant_id: TenantId) -> Tenant:
        """Suspend an active tenant. Its members can no longer resolve it."""
        return await self._change_status(tenant_id, TenantStatus.SUSPENDED)

    async def reactivate_tenant(self, tenant_id: TenantId) -> Tenant:
        """Reactivate a suspended tenant."""
        return await self._change_status(tenant_id, TenantStatus.ACTIVE)

    async def deactivate_tenant(self, tenant_id: TenantId) -> Tenant:
        """Deactivate a tenant permanently. The record is kept."""
        return await self._change_status(tenant_id, TenantStatus.INACTIVE)

    async def grant_membership(
        self,
        tenant_id: TenantId,
        principal_id: PrincipalId,
        role: TenantRole,
    ) -> Membership:
        """Grant a principal membership in a tenant.

        Raises:
            TenantNotFoundError: If the tenant does not exist
            TenantDeactivatedError: If the tenant is inactive
            DuplicateMembershipError: If the principal is already an active member
        """
        async with self._session.begin():
            tenant = await self._require_tenant(tenant_id)
            if tenant.status is TenantStatus.INACTIVE:
                raise TenantDeactivatedError(f"Tenant {tenant_id} is deactivated")

            if await self._store.get_membership(tenant_id, principal_id) is not None:
                self._probe.duplicate_membership(
                    tenant_id=str(tenant_id), principal_id=principal_id.value
                )
                raise DuplicateMembershipError(
                    f"{principal_id} is already a member of tenant {tenant_id}"
                )

            membership = Membership.grant(tenant_id, principal_id, role)
            await self._store.save_membership(membership)

        self._probe.membership_granted(
            tenant_id=str(tenant_id),
            principal_id=principal_id.value,
            role=membership.role.value,
        )
        await self._invalidate_membership(tenant_id, principal_id)
        return membership

    async def revoke_membership(
        self, tenant_id: TenantId, principal_id: PrincipalId
    ) -> bool:
        """Revoke a principal's active membership.

        Returns:
            True if a membership was revoked, False if there was none
        """
        async with self._session.begin():
            membership = await self._store.get_membership(tenant_id, principal_id)
            if membership is None:
                return False
            await self._store.save_membership(membership.revoke())

        self._probe.membership_revoked(
            tenant_id=str(tenant_id), principal_id=principal_id.value
        )
        await self._invalidate_membership(tenant_id, principal_id)
        return True

    async def list_memberships(self, principal_id: PrincipalId) -> list[Membership]:
        """List a principal's active memberships, primary tenant first."""
        async with self._session.begin():
            return await self._store.list_memberships_for_principal(principal_id)

    async def _change_status(self, tenant_id: TenantId, status: TenantStatus) -> Tenant:
        async with self._session.begin():
            tenant = await self._require_tenant(tenant_id)
            updated = tenant.transition_to(status)
            await self._store.save_tenant(updated)

        self._probe.tenant_status_changed(
            tenant_id=str(tenant_id),
            previous_status=tenant.status.value,
            status=updated.status.value,
        )
        if self._cache is not None:
            await self._cache.invalidate_tenant(tenant_id)
        return updated

    async def _require_tenant(self, tenant_id: TenantId) -> Tenant:
        tenant = await self._store.get_tenant(tenant_id)
        if tenant is None:
            self._probe.tenant_not_found(tenant_id=str(tenant_id))
            raise TenantNotFoundError(f"Tenant {tenant_id} not found")
        return tenant

    async def _invalidate_membership(
        self, tenant_id: TenantId, principal_id: PrincipalId
    ) -> None:
        if self._cache is not None:
            await self._cache.invalidate_membership(tenant_id, principal_id)
