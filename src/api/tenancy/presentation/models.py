"""Pydantic models for tenancy API responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from shared_kernel.tenancy.context import TenantContext
from tenancy.domain.aggregates import Membership, Tenant


class TenantContextResponse(BaseModel):
    """Response model for the caller's resolved tenant context."""

    tenant_id: str = Field(..., description="Resolved tenant ID (UUID)")
    tenant_name: str | None = Field(None, description="Tenant display name")
    principal_id: str = Field(..., description="Authenticated principal")
    role: str | None = Field(None, description="Principal's role in the tenant")

    @classmethod
    def from_context(cls, context: TenantContext) -> TenantContextResponse:
        """Convert a resolved TenantContext to an API response."""
        return cls(
            tenant_id=str(context.require_tenant_id()),
            tenant_name=context.tenant_name,
            principal_id=context.principal_id or "",
            role=context.role,
        )


class MembershipResponse(BaseModel):
    """Response model for one of the caller's memberships."""

    tenant_id: str = Field(..., description="Tenant ID (UUID)")
    role: str = Field(..., description="Role in the tenant")
    joined_at: datetime = Field(..., description="When the membership was granted")
    tenant_status: str | None = Field(
        None, description="Tenant lifecycle status, null if the tenant is unknown"
    )
    is_primary: bool = Field(..., description="Whether this is the primary tenant")

    @classmethod
    def from_domain(
        cls, membership: Membership, tenant: Tenant | None, is_primary: bool
    ) -> MembershipResponse:
        """Convert a domain Membership and its tenant to an API response."""
        return cls(
            tenant_id=str(membership.tenant_id),
            role=membership.role.value,
            joined_at=membership.joined_at,
            tenant_status=None if tenant is None else tenant.status.value,
            is_primary=is_primary,
        )
