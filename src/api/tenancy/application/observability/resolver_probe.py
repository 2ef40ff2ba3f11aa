"""Domain probe for the tenant resolver.

Rejections are logged as request failures here. Only mismatches and missing
memberships are additionally sent to the audit sink by the resolver.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantResolverProbe(Protocol):
    """Domain probe for tenant resolution."""

    def tenant_resolved(self, tenant_id: str, principal_id: str, role: str) -> None:
        """Record that a tenant context was resolved."""
        ...

    def tenant_claim_missing(
        self, principal_id: str | None, raw_tenant_claim: str | None
    ) -> None:
        """Record that the claim set carried no usable tenant or subject."""
        ...

    def tenant_header_unparseable(self, raw_value: str, principal_id: str) -> None:
        """Record that an explicit tenant header was ignored as unparseable."""
        ...

    def tenant_mismatch(
        self, claim_tenant_id: str, header_tenant_id: str, principal_id: str
    ) -> None:
        """Record that the tenant header disagreed with the tenant claim."""
        ...

    def tenant_inactive(
        self, tenant_id: str, principal_id: str, status: str | None
    ) -> None:
        """Record that the claimed tenant is missing or not active."""
        ...

    def membership_not_found(self, tenant_id: str, principal_id: str) -> None:
        """Record that the principal has no active membership in the tenant."""
        ...

    def audit_emission_failed(self, reason: str, error: Exception) -> None:
        """Record that a cross-tenant access event could not be recorded."""
        ...

    def directory_lookup_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that the tenant directory could not be queried."""
        ...

    def with_context(self, context: ObservationContext) -> TenantResolverProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantResolverProbe:
    """Default implementation of TenantResolverProbe using structlog."""

    def __init__(
        self,
        logger: structlog.stdlib.BoundLogger | None = None,
        context: ObservationContext | None = None,
    ):
        self._logger = logger or structlog.get_logger()
        self._context = context

    def _get_context_kwargs(self) -> dict[str, Any]:
        """Get context metadata as kwargs for logging."""
        if self._context is None:
            return {}
        return self._context.as_dict()

    def with_context(self, context: ObservationContext) -> DefaultTenantResolverProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantResolverProbe(logger=self._logger, context=context)

    def tenant_resolved(self, tenant_id: str, principal_id: str, role: str) -> None:
        """Record that a tenant context was resolved."""
        self._logger.debug(
            "tenant_context_resolved",
            tenant_id=tenant_id,
            principal_id=principal_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def tenant_claim_missing(
        self, principal_id: str | None, raw_tenant_claim: str | None
    ) -> None:
        """Record that the claim set carried no usable tenant or subject."""
        self._logger.info(
            "tenant_claim_missing",
            principal_id=principal_id,
            raw_tenant_claim=raw_tenant_claim,
            **self._get_context_kwargs(),
        )

    def tenant_header_unparseable(self, raw_value: str, principal_id: str) -> None:
        """Record that an explicit tenant header was ignored as unparseable."""
        self._logger.info(
            "tenant_header_unparseable",
            raw_value=raw_value,
            principal_id=principal_id,
            **self._get_context_kwargs(),
        )

    def tenant_mismatch(
        self, claim_tenant_id: str, header_tenant_id: str, principal_id: str
    ) -> None:
        """Record that the tenant header disagreed with the tenant claim."""
        self._logger.warning(
            "tenant_mismatch",
            claim_tenant_id=claim_tenant_id,
            header_tenant_id=header_tenant_id,
            principal_id=principal_id,
            **self._get_context_kwargs(),
        )

    def tenant_inactive(
        self, tenant_id: str, principal_id: str, status: str | None
    ) -> None:
        """Record that the claimed tenant is missing or not active."""
        self._logger.info(
            "tenant_inactive",
            tenant_id=tenant_id,
            principal_id=principal_id,
            status=status,
            **self._get_context_kwargs(),
        )

    def membership_not_found(self, tenant_id: str, principal_id: str) -> None:
        """Record that the principal has no active membership in the tenant."""
        self._logger.warning(
            "tenant_membership_not_found",
            tenant_id=tenant_id,
            principal_id=principal_id,
            **self._get_context_kwargs(),
        )

    def audit_emission_failed(self, reason: str, error: Exception) -> None:
        """Record that a cross-tenant access event could not be recorded."""
        self._logger.critical(
            "tenant_audit_emission_failed",
            reason=reason,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )

    def directory_lookup_failed(self, tenant_id: str, error: Exception) -> None:
        """Record that the tenant directory could not be queried."""
        self._logger.error(
            "tenant_directory_lookup_failed",
            tenant_id=tenant_id,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
