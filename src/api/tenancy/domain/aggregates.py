"""Tenant and Membership aggregates.

Both are immutable. State changes return new instances, which the tenant
store persists; nothing is changed in place.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import UTC, datetime
from uuid import UUID, uuid4

from shared_kernel.tenancy.value_objects import PrincipalId, TenantId
from tenancy.domain.exceptions import (
    InvalidTenantStatusTransitionError,
    TenantDeactivatedError,
)
from tenancy.domain.value_objects import TenantRole, TenantStatus

_ALLOWED_TRANSITIONS: dict[TenantStatus, frozenset[TenantStatus]] = {
    TenantStatus.ACTIVE: frozenset({TenantStatus.SUSPENDED, TenantStatus.INACTIVE}),
    TenantStatus.SUSPENDED: frozenset({TenantStatus.ACTIVE, TenantStatus.INACTIVE}),
    TenantStatus.INACTIVE: frozenset(),
}


@dataclass(frozen=True)
class Tenant:
    """Tenant aggregate representing a client organization.

    Tenants are the top-level isolation boundary in the system. They are
    created by provisioning, changed only through status transitions, and
    never deleted: an ``INACTIVE`` tenant is retained and immutable.

    Attributes:
        id: The tenant identifier.
        name: Display name, denormalized into resolved tenant contexts.
        status: Lifecycle status.
        subdomain: Optional subdomain the tenant is served under.
        subscription_tier: Optional informational subscription tier.
        created_at: When the tenant was provisioned.
    """

    id: TenantId
    name: str
    status: TenantStatus = TenantStatus.ACTIVE
    subdomain: str | None = None
    subscription_tier: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))

    @classmethod
    def provision(
        cls,
        name: str,
        subdomain: str | None = None,
        subscription_tier: str | None = None,
    ) -> Tenant:
        """Factory method for provisioning a new, active tenant.

        Raises:
            ValueError: If the name is blank.
        """
        name = name.strip()
        if not name:
            raise ValueError("Tenant name must not be empty")
        return cls(
            id=TenantId.generate(),
            name=name,
            status=TenantStatus.ACTIVE,
            subdomain=subdomain.strip().lower() if subdomain else None,
            subscription_tier=subscription_tier,
        )

    @property
    def is_active(self) -> bool:
        return self.status is TenantStatus.ACTIVE

    def transition_to(self, status: TenantStatus) -> Tenant:
        """Return this tenant in a new status.

        Raises:
            TenantDeactivatedError: If the tenant is already inactive.
            InvalidTenantStatusTransitionError: If the transition is not allowed.
        """
        if self.status is TenantStatus.INACTIVE:
            raise TenantDeactivatedError(f"Tenant {self.id} is deactivated")
        if status not in _ALLOWED_TRANSITIONS[self.status]:
            raise InvalidTenantStatusTransitionError(
                f"Cannot change tenant {self.id} from {self.status} to {status}"
            )
        return replace(self, status=status)

    def suspend(self) -> Tenant:
        return self.transition_to(TenantStatus.SUSPENDED)

    def reactivate(self) -> Tenant:
        return self.transition_to(TenantStatus.ACTIVE)

    def deactivate(self) -> Tenant:
        return self.transition_to(TenantStatus.INACTIVE)


@dataclass(frozen=True)
class Membership:
    """A principal's membership in a tenant.

    A principal holds at most one active membership per tenant. Revoked
    memberships are kept with ``is_active=False``.
    """

    tenant_id: TenantId
    principal_id: PrincipalId
    role: TenantRole
    is_active: bool = True
    joined_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    id: UUID = field(default_factory=uuid4)

    @classmethod
    def grant(
        cls, tenant_id: TenantId, principal_id: PrincipalId, role: TenantRole
    ) -> Membership:
        """Factory method for a new active membership."""
        return cls(tenant_id=tenant_id, principal_id=principal_id, role=TenantRole(role))

    def revoke(self) -> Membership:
        return replace(self, is_active=False)
