"""Tenant context value object for resolved tenant identification.

This module contains the pure value object that represents the tenant a
request or operation runs under. It is framework-agnostic and contains no
resolution logic, making it safe for the shared kernel.

The actual resolution logic (claim parsing, header cross-validation,
membership checks) lives in the tenancy bounded context's application layer.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum

from shared_kernel.tenancy.exceptions import TenantContextUnresolvedError
from shared_kernel.tenancy.value_objects import TenantId


class TenantContextState(StrEnum):
    """Lifecycle states of a tenant context.

    ``UNRESOLVED -> RESOLVING -> RESOLVED | REJECTED``. Both ``RESOLVED`` and
    ``REJECTED`` are terminal; nothing returns to ``UNRESOLVED``.
    """

    UNRESOLVED = "unresolved"
    RESOLVING = "resolving"
    RESOLVED = "resolved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class TenantContext:
    """Resolved tenant context for one request or operation.

    Constructed once per request by the tenant resolver and passed explicitly
    (or through the execution-scoped carrier) to everything that touches
    tenant-owned data. It is never cached or reused across requests.

    An unresolved context has no tenant id. Every tenant-dependent operation
    must call ``require_tenant_id()``, which fails rather than defaulting.

    Attributes:
        tenant_id: The validated tenant identifier, or None when unresolved.
        principal_id: The authenticated principal the context was resolved for.
        tenant_name: Denormalized tenant display name.
        role: The principal's role within the tenant.
    """

    tenant_id: TenantId | None
    principal_id: str | None = None
    tenant_name: str | None = None
    role: str | None = None

    @classmethod
    def resolved(
        cls,
        tenant_id: TenantId,
        principal_id: str,
        tenant_name: str | None = None,
        role: str | None = None,
    ) -> TenantContext:
        """Build a resolved context. A tenant id is mandatory."""
        if not isinstance(tenant_id, TenantId):
            raise TypeError("A resolved TenantContext requires a TenantId")
        return cls(
            tenant_id=tenant_id,
            principal_id=principal_id,
            tenant_name=tenant_name,
            role=role,
        )

    @classmethod
    def unresolved(cls, principal_id: str | None = None) -> TenantContext:
        """Build a context that makes every dependent operation fail."""
        return cls(tenant_id=None, principal_id=principal_id)

    @property
    def is_resolved(self) -> bool:
        """Whether the context carries a validated tenant id."""
        return self.tenant_id is not None

    @property
    def state(self) -> TenantContextState:
        """Lifecycle state this value represents."""
        if self.is_resolved:
            return TenantContextState.RESOLVED
        return TenantContextState.UNRESOLVED

    def require_tenant_id(self) -> TenantId:
        """Return the tenant id or fail closed.

        Raises:
            TenantContextUnresolvedError: If the context is unresolved.
        """
        if self.tenant_id is None:
            raise TenantContextUnresolvedError(
                "Tenant context is unresolved; refusing tenant-scoped operation"
            )
        return self.tenant_id


def require_resolved(context: TenantContext | None) -> TenantContext:
    """Return the context if it is resolved, otherwise fail closed.

    Accepts None so call sites can pass through an absent context without
    branching.

    Raises:
        TenantContextUnresolvedError: If the context is missing or unresolved.
    """
    if context is None:
        raise TenantContextUnresolvedError(
            "No tenant context is available; refusing tenant-scoped operation"
        )
    context.require_tenant_id()
    return context
