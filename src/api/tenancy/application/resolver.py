"""Tenant resolver: verified claims in, tenant context or rejection out.

Resolution steps, in order:

1. The claim set must carry a tenant id and a subject.
2. An explicit tenant header, when present and parseable, must equal the
   claimed tenant. The claim is authoritative; the header is only checked.
3. The tenant must exist and be active.
4. The principal must hold an active membership in the tenant.

Each failure raises the matching ``TenantResolutionError``. Mismatches and
missing memberships are attack signals and are also written to the audit
sink; a missing claim or an inactive tenant is only logged.
"""

from __future__ import annotations

from shared_kernel.tenancy.audit import AuditSink, CrossTenantAccessEvent
from shared_kernel.tenancy.context import TenantContext
from shared_kernel.tenancy.exceptions import (
    MembershipNotFoundError,
    RejectionReason,
    TenantClaimMissingError,
    TenantInactiveError,
    TenantMismatchError,
    TenantResolutionError,
)
from shared_kernel.tenancy.value_objects import PrincipalId, TenantId
from tenancy.application.claims import VerifiedClaims
from tenancy.application.lifecycle import TenantContextLifecycle
from tenancy.application.observability import (
    DefaultTenantResolverProbe,
    TenantResolverProbe,
)
from tenancy.domain.aggregates import Membership, Tenant
from tenancy.ports.repositories import ITenantDirectory


class TenantResolver:
    """Resolves the tenant context of one request.

    The resolver holds no per-request state; each call runs its own
    lifecycle and returns a fresh context.
    """

    def __init__(
        self,
        directory: ITenantDirectory,
        audit_sink: AuditSink,
        probe: TenantResolverProbe | None = None,
    ) -> None:
        """Initialize the resolver.

        Args:
            directory: Read access to tenants and memberships
            audit_sink: Destination for cross-tenant access events
            probe: Optional domain probe for observability
        """
        self._directory = directory
        self._audit_sink = audit_sink
        self._probe = probe or DefaultTenantResolverProbe()

    async def resolve(
        self,
        claims: VerifiedClaims,
        explicit_tenant_header: str | None = None,
    ) -> TenantContext:
        """Resolve a tenant context.

        Args:
            claims: The verified claim set, already parsed
            explicit_tenant_header: Raw value of the optional tenant header

        Returns:
            A resolved, immutable TenantContext

        Raises:
            TenantClaimMissingError: No usable tenant or subject claim.
            TenantMismatchError: The header names a different tenant.
            TenantInactiveError: The tenant is unknown, suspended or inactive.
            MembershipNotFoundError: The principal is not an active member.
        """
        lifecycle = TenantContextLifecycle()
        lifecycle.begin()
        try:
            context = await self._resolve(claims, explicit_tenant_header)
        except TenantResolutionError as e:
            lifecycle.reject(e)
            raise
        return lifecycle.resolve(context)

    async def _resolve(
        self, claims: VerifiedClaims, explicit_tenant_header: str | None
    ) -> TenantContext:
        principal_id = claims.principal_id
        tenant_id = claims.tenant_id

        if tenant_id is None or principal_id is None:
            self._probe.tenant_claim_missing(
                principal_id=None if principal_id is None else principal_id.value,
                raw_tenant_claim=claims.raw_tenant_claim,
            )
            raise TenantClaimMissingError(
                "The verified claim set carries no usable tenant assertion"
            )

        header_tenant_id = self._parse_header(explicit_tenant_header, principal_id)
        if header_tenant_id is not None and header_tenant_id != tenant_id:
            self._probe.tenant_mismatch(
                claim_tenant_id=str(tenant_id),
                header_tenant_id=str(header_tenant_id),
                principal_id=principal_id.value,
            )
            await self._audit(
                CrossTenantAccessEvent(
                    principal_id=principal_id.value,
                    attempted_tenant_id=str(header_tenant_id),
                    actual_tenant_id=str(tenant_id),
                    resource_type="tenant",
                    resource_id=str(header_tenant_id),
                    reason=RejectionReason.TENANT_MISMATCH.value,
                )
            )
            raise TenantMismatchError("Tenant header does not match the tenant claim")

        tenant = await self._get_tenant(tenant_id)
        if tenant is None or not tenant.is_active:
            self._probe.tenant_inactive(
                tenant_id=str(tenant_id),
                principal_id=principal_id.value,
                status=None if tenant is None else tenant.status.value,
            )
            raise TenantInactiveError("Tenant is not active")

        membership = await self._get_membership(tenant_id, principal_id)
        if membership is None or not membership.is_active:
            self._probe.membership_not_found(
                tenant_id=str(tenant_id), principal_id=principal_id.value
            )
            await self._audit(
                CrossTenantAccessEvent(
                    principal_id=principal_id.value,
                    attempted_tenant_id=str(tenant_id),
                    actual_tenant_id=None,
                    resource_type="tenant",
                    resource_id=str(tenant_id),
                    reason=RejectionReason.MEMBERSHIP_NOT_FOUND.value,
                )
            )
            raise MembershipNotFoundError("Principal is not a member of the tenant")

        self._probe.tenant_resolved(
            tenant_id=str(tenant_id),
            principal_id=principal_id.value,
            role=membership.role.value,
        )
        return TenantContext.resolved(
            tenant_id=tenant_id,
            principal_id=principal_id.value,
            tenant_name=tenant.name,
            role=membership.role.value,
        )

    def _parse_header(
        self, raw_value: str | None, principal_id: PrincipalId
    ) -> TenantId | None:
        """Parse the explicit tenant header; an unparseable value is ignored."""
        if raw_value is None or not raw_value.strip():
            return None
        try:
            return TenantId.from_string(raw_value)
        except ValueError:
            self._probe.tenant_header_unparseable(
                raw_value=raw_value, principal_id=principal_id.value
            )
            return None

    async def _get_tenant(self, tenant_id: TenantId) -> Tenant | None:
        try:
            return await self._directory.get_tenant(tenant_id)
        except Exception as e:
            self._probe.directory_lookup_failed(tenant_id=str(tenant_id), error=e)
            raise

    async def _get_membership(
        self, tenant_id: TenantId, principal_id: PrincipalId
    ) -> Membership | None:
        try:
            return await self._directory.get_membership(tenant_id, principal_id)
        except Exception as e:
            self._probe.directory_lookup_failed(tenant_id=str(tenant_id), error=e)
            raise

    async def _audit(self, event: CrossTenantAccessEvent) -> None:
        """Record an audit event. A request whose audit fails does not proceed."""
        try:
            await self._audit_sink.record(event)
        except Exception as e:
            self._probe.audit_emission_failed(reason=event.reason, error=e)
            raise
