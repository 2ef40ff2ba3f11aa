"""FastAPI dependency wiring for the tenancy bounded context.

The verified claim set comes from a ``ClaimsVerifier``, the plug-in point
for the external identity provider. By default it is read from
``request.state.verified_claims``. This module parses it once and resolves
the request's tenant context.

Usage in FastAPI routes:
    @router.get("/example")
    async def example(
        ctx: Annotated[TenantContext, Depends(get_tenant_context)],
        session: Annotated[AsyncSession, Depends(get_write_session)],
    ):
        async with session.begin(), tenant_session_scope(session, ctx):
            ...
"""

from __future__ import annotations

from collections.abc import Callable, Coroutine, Mapping
from functools import lru_cache
from typing import Annotated, Any, Protocol

from fastapi import Depends, FastAPI, Request
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.dependencies import (
    get_read_session,
    get_write_sessionmaker,
)
from infrastructure.settings import get_tenancy_settings
from shared_kernel.tenancy.audit import AuditSink
from shared_kernel.tenancy.context import TenantContext
from shared_kernel.tenancy.exceptions import TenantClaimMissingError
from tenancy.application.authorization import ensure_tenant_role
from tenancy.application.claims import VerifiedClaims, parse_claims
from tenancy.application.resolver import TenantResolver
from tenancy.domain.value_objects import TenantRole
from tenancy.infrastructure.audit import SqlAuditSink
from tenancy.infrastructure.directory_cache import (
    CachedTenantDirectory,
    DirectoryCache,
)
from tenancy.infrastructure.tenant_store import SqlTenantDirectory
from tenancy.ports.repositories import ITenantDirectory


class ClaimsVerifier(Protocol):
    """Identity-provider integration that produces a request's verified claims.

    Implementations authenticate the request (bearer token, session cookie,
    gateway header) and return the verified claim set, or None when the
    request carries no verifiable identity.
    """

    async def __call__(self, request: Request) -> Mapping[str, Any] | None: ...


class RequestStateClaimsVerifier:
    """Reads claims an upstream middleware placed on ``request.state.verified_claims``."""

    async def __call__(self, request: Request) -> Mapping[str, Any] | None:
        claims = getattr(request.state, "verified_claims", None)
        return claims if isinstance(claims, Mapping) else None


@lru_cache
def get_claims_verifier() -> ClaimsVerifier:
    """Get the identity-provider integration.

    Defaults to reading ``request.state.verified_claims``. Deployments plug
    their identity provider in with ``use_claims_verifier``.
    """
    return RequestStateClaimsVerifier()


def use_claims_verifier(app: FastAPI, verifier: ClaimsVerifier) -> None:
    """Install an identity-provider integration on the application."""
    app.dependency_overrides[get_claims_verifier] = lambda: verifier


async def get_raw_claims(
    request: Request,
    verifier: Annotated[ClaimsVerifier, Depends(get_claims_verifier)],
) -> Mapping[str, Any]:
    """Return the request's verified claim set.

    Raises:
        TenantClaimMissingError: If the verifier finds no claim set.
    """
    claims = await verifier(request)
    if not isinstance(claims, Mapping):
        raise TenantClaimMissingError("Request carries no verified claim set")
    return claims


def get_verified_claims(
    raw: Annotated[Mapping[str, Any], Depends(get_raw_claims)],
) -> VerifiedClaims:
    """Parse the request's claim set into typed claims."""
    settings = get_tenancy_settings()
    return parse_claims(
        raw,
        tenant_claim_names=settings.tenant_claim_names,
        subject_claim_names=settings.subject_claim_names,
    )


@lru_cache
def get_directory_cache() -> DirectoryCache:
    """Get the process-wide tenant directory cache.

    Uses lru_cache to ensure a single cache is shared across requests.
    """
    settings = get_tenancy_settings()
    return DirectoryCache(
        ttl_seconds=settings.directory_cache_ttl_seconds,
        max_entries=settings.directory_cache_max_entries,
    )


def get_tenant_directory(
    session: Annotated[AsyncSession, Depends(get_read_session)],
) -> ITenantDirectory:
    """Get the request's tenant directory, fronted by the shared cache."""
    return CachedTenantDirectory(
        inner=SqlTenantDirectory(session),
        cache=get_directory_cache(),
    )


def get_audit_sink() -> AuditSink:
    """Get the audit sink for cross-tenant access events."""
    return SqlAuditSink(session_factory=get_write_sessionmaker())


def get_tenant_resolver(
    directory: Annotated[ITenantDirectory, Depends(get_tenant_directory)],
    audit_sink: Annotated[AuditSink, Depends(get_audit_sink)],
) -> TenantResolver:
    """Get a TenantResolver for the request."""
    return TenantResolver(directory=directory, audit_sink=audit_sink)


async def get_tenant_context(
    request: Request,
    claims: Annotated[VerifiedClaims, Depends(get_verified_claims)],
    resolver: Annotated[TenantResolver, Depends(get_tenant_resolver)],
) -> TenantContext:
    """Resolve the request's tenant context.

    The optional tenant header is only cross-checked against the claim.

    Raises:
        TenantResolutionError: If the tenant cannot be resolved.
    """
    header = request.headers.get(get_tenancy_settings().tenant_header_name)
    return await resolver.resolve(claims, explicit_tenant_header=header)


def require_tenant_role(
    *roles: TenantRole | str,
) -> Callable[..., Coroutine[Any, Any, TenantContext]]:
    """Build a dependency requiring the caller to hold one of ``roles``.

    Admin satisfies every requirement.

    Usage:
        @router.delete("/rooms/{room_id}")
        async def delete_room(
            ctx: Annotated[TenantContext, Depends(require_tenant_role(TenantRole.MODERATOR))],
        ): ...
    """
    required = tuple(TenantRole(role) for role in roles)

    async def _require_role(
        context: Annotated[TenantContext, Depends(get_tenant_context)],
    ) -> TenantContext:
        ensure_tenant_role(context, *required)
        return context

    return _require_role
