"""HTTP routes for the caller's tenancy."""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends

from shared_kernel.tenancy.context import TenantContext
from shared_kernel.tenancy.exceptions import TenantClaimMissingError
from tenancy.application.claims import VerifiedClaims
from tenancy.dependencies import (
    get_tenant_context,
    get_tenant_directory,
    get_verified_claims,
)
from tenancy.ports.repositories import ITenantDirectory
from tenancy.presentation.models import MembershipResponse, TenantContextResponse

router = APIRouter(
    prefix="/tenancy",
    tags=["tenancy"],
)


@router.get("/context")
async def get_context(
    context: Annotated[TenantContext, Depends(get_tenant_context)],
) -> TenantContextResponse:
    """Return the caller's resolved tenant context.

    Runs the full resolution pipeline: claim parsing, header cross-check,
    tenant status and membership validation.
    """
    return TenantContextResponse.from_context(context)


@router.get("/memberships")
async def list_memberships(
    claims: Annotated[VerifiedClaims, Depends(get_verified_claims)],
    directory: Annotated[ITenantDirectory, Depends(get_tenant_directory)],
) -> list[MembershipResponse]:
    """List the tenants the caller is an active member of.

    Needs only an authenticated subject, not a resolved tenant. The oldest
    membership in an active tenant is the caller's primary tenant; a
    membership in a suspended or inactive tenant is listed with its status
    but is never primary.
    """
    if claims.principal_id is None:
        raise TenantClaimMissingError("The verified claim set carries no subject")
    memberships = await directory.list_memberships_for_principal(claims.principal_id)

    responses = []
    primary_found = False
    for membership in memberships:
        tenant = await directory.get_tenant(membership.tenant_id)
        is_primary = not primary_found and tenant is not None and tenant.is_active
        primary_found = primary_found or is_primary
        responses.append(
            MembershipResponse.from_domain(membership, tenant, is_primary=is_primary)
        )
    return responses
