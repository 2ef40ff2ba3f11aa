"""Error taxonomy for tenant isolation.

Every failure of the isolation pipeline is raised as a subclass of
``TenantIsolationError`` so callers can distinguish isolation failures from
transient storage errors, which are never reported through this hierarchy.
"""

from __future__ import annotations

from enum import StrEnum


class RejectionReason(StrEnum):
    """Machine-readable reasons the tenant resolver rejects a request."""

    TENANT_CLAIM_MISSING = "tenant_claim_missing"
    TENANT_MISMATCH = "tenant_mismatch"
    TENANT_INACTIVE = "tenant_inactive"
    MEMBERSHIP_NOT_FOUND = "membership_not_found"


class TenantIsolationError(Exception):
    """Base exception for tenant isolation failures."""

    pass


class TenantResolutionError(TenantIsolationError):
    """Raised when a tenant context cannot be resolved for a request."""

    reason: RejectionReason

    def __init__(self, message: str, reason: RejectionReason | None = None):
        super().__init__(message)
        if reason is not None:
            self.reason = reason


class TenantClaimMissingError(TenantResolutionError):
    """The verified claim set carries no usable tenant identifier."""

    reason = RejectionReason.TENANT_CLAIM_MISSING


class TenantMismatchError(TenantResolutionError):
    """An explicit tenant header disagrees with the tenant claim."""

    reason = RejectionReason.TENANT_MISMATCH


class TenantInactiveError(TenantResolutionError):
    """The claimed tenant does not exist or is not active."""

    reason = RejectionReason.TENANT_INACTIVE


class MembershipNotFoundError(TenantResolutionError):
    """The principal holds no active membership in the claimed tenant."""

    reason = RejectionReason.MEMBERSHIP_NOT_FOUND


class TenantOwnershipViolationError(TenantIsolationError):
    """An entity's tenant disagrees with the active tenant context.

    This is always a programming error or an attack. It is audited, never
    retried, and never silently corrected.
    """

    def __init__(
        self,
        message: str,
        resource_type: str,
        resource_id: str | None,
        expected_tenant_id: str,
        actual_tenant_id: str | None,
    ):
        super().__init__(message)
        self.resource_type = resource_type
        self.resource_id = resource_id
        self.expected_tenant_id = expected_tenant_id
        self.actual_tenant_id = actual_tenant_id


class TenantContextUnresolvedError(TenantIsolationError):
    """A tenant-dependent operation ran without a resolved tenant context."""

    pass


class InvalidContextTransitionError(TenantIsolationError):
    """A tenant context lifecycle transition is not permitted."""

    pass


class InsufficientTenantRoleError(TenantIsolationError):
    """The principal's role in the resolved tenant does not satisfy a requirement."""

    def __init__(self, message: str, required_roles: frozenset[str], actual_role: str | None):
        super().__init__(message)
        self.required_roles = required_roles
        self.actual_role = actual_role


class EntityNotFoundError(LookupError):
    """The active tenant owns no entity with the requested id.

    Deliberately not a ``TenantIsolationError``: another tenant's entity with
    the same id is indistinguishable from no entity at all.
    """

    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} {resource_id} not found")
        self.resource_type = resource_type
        self.resource_id = resource_id
