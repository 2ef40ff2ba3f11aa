"""Tenancy domain layer: tenants, memberships and their lifecycle rules."""

from tenancy.domain.aggregates import Membership, Tenant
from tenancy.domain.value_objects import TenantRole, TenantStatus

__all__ = [
    "Membership",
    "Tenant",
    "TenantRole",
    "TenantStatus",
]
