"""Tenancy application layer."""

from tenancy.application.authorization import ensure_tenant_role
from tenancy.application.claims import VerifiedClaims, parse_claims
from tenancy.application.lifecycle import TenantContextLifecycle
from tenancy.application.resolver import TenantResolver
from tenancy.application.tenant_administration import TenantAdministrationService

__all__ = [
    "TenantAdministrationService",
    "TenantContextLifecycle",
    "TenantResolver",
    "VerifiedClaims",
    "ensure_tenant_role",
    "parse_claims",
]
