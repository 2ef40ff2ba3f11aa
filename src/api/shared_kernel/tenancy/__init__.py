"""Tenant isolation primitives shared by every bounded context."""

from shared_kernel.tenancy.audit import AuditSink, CrossTenantAccessEvent
from shared_kernel.tenancy.context import (
    TenantContext,
    TenantContextState,
    require_resolved,
)
from shared_kernel.tenancy.exceptions import (
    EntityNotFoundError,
    InsufficientTenantRoleError,
    InvalidContextTransitionError,
    MembershipNotFoundError,
    RejectionReason,
    TenantClaimMissingError,
    TenantContextUnresolvedError,
    TenantInactiveError,
    TenantIsolationError,
    TenantMismatchError,
    TenantOwnershipViolationError,
    TenantResolutionError,
)
from shared_kernel.tenancy.scope import (
    current_tenant_context,
    effective_tenant_context,
    peek_tenant_context,
    tenant_scope,
)
from shared_kernel.tenancy.value_objects import PrincipalId, TenantId

__all__ = [
    "AuditSink",
    "CrossTenantAccessEvent",
    "EntityNotFoundError",
    "InsufficientTenantRoleError",
    "InvalidContextTransitionError",
    "MembershipNotFoundError",
    "PrincipalId",
    "RejectionReason",
    "TenantClaimMissingError",
    "TenantContext",
    "TenantContextState",
    "TenantContextUnresolvedError",
    "TenantId",
    "TenantInactiveError",
    "TenantIsolationError",
    "TenantMismatchError",
    "TenantOwnershipViolationError",
    "TenantResolutionError",
    "current_tenant_context",
    "effective_tenant_context",
    "peek_tenant_context",
    "require_resolved",
    "tenant_scope",
]
