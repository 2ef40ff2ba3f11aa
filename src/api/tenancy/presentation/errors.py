"""HTTP mapping of tenant isolation errors.

Resolver rejections become client errors carrying a machine-readable
``reason``. Ownership violations and unresolved contexts are server-side
failures; their details are logged and audited, never echoed to the client.
"""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from infrastructure.database.exceptions import DatabaseError
from shared_kernel.tenancy.exceptions import (
    EntityNotFoundError,
    InsufficientTenantRoleError,
    TenantClaimMissingError,
    TenantContextUnresolvedError,
    TenantOwnershipViolationError,
    TenantResolutionError,
)

_RESOLUTION_MESSAGES = {
    "tenant_claim_missing": "The request carries no usable tenant assertion",
    "tenant_mismatch": "The tenant header does not match your tenant",
    "tenant_inactive": "The tenant is not active",
    "membership_not_found": "You are not a member of this tenant",
}


def _error(status_code: int, detail: str, reason: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": detail, "reason": reason},
    )


async def handle_tenant_resolution_error(
    request: Request, exc: TenantResolutionError
) -> JSONResponse:
    """400 for a missing tenant claim, 403 for every other rejection."""
    reason = exc.reason.value
    status_code = (
        status.HTTP_400_BAD_REQUEST
        if isinstance(exc, TenantClaimMissingError)
        else status.HTTP_403_FORBIDDEN
    )
    return _error(status_code, _RESOLUTION_MESSAGES.get(reason, str(exc)), reason)


async def handle_insufficient_role(
    request: Request, exc: InsufficientTenantRoleError
) -> JSONResponse:
    return _error(
        status.HTTP_403_FORBIDDEN,
        "Your role in this tenant does not permit this operation",
        "insufficient_role",
    )


async def handle_ownership_violation(
    request: Request, exc: TenantOwnershipViolationError
) -> JSONResponse:
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Tenant ownership violation",
        "tenant_ownership_violation",
    )


async def handle_unresolved_context(
    request: Request, exc: TenantContextUnresolvedError
) -> JSONResponse:
    return _error(
        status.HTTP_500_INTERNAL_SERVER_ERROR,
        "Tenant context unavailable",
        "tenant_context_unresolved",
    )


async def handle_entity_not_found(
    request: Request, exc: EntityNotFoundError
) -> JSONResponse:
    return _error(
        status.HTTP_404_NOT_FOUND,
        f"{exc.resource_type} not found",
        "not_found",
    )


async def handle_database_error(request: Request, exc: DatabaseError) -> JSONResponse:
    """503 for storage failures, kept apart from isolation violations."""
    return _error(
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "Storage is temporarily unavailable",
        "storage_unavailable",
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Register the tenant isolation exception handlers on an application."""
    app.add_exception_handler(TenantResolutionError, handle_tenant_resolution_error)
    app.add_exception_handler(InsufficientTenantRoleError, handle_insufficient_role)
    app.add_exception_handler(
        TenantOwnershipViolationError, handle_ownership_violation
    )
    app.add_exception_handler(TenantContextUnresolvedError, handle_unresolved_context)
    app.add_exception_handler(EntityNotFoundError, handle_entity_not_found)
    app.add_exception_handler(DatabaseError, handle_database_error)
