"""Domain probe for tenant administration."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantAdministrationProbe(Protocol):
    """Domain probe for tenant administration operations."""

    def tenant_provisioned(self, tenant_id: str, name: str) -> None:
        """Record that a tenant was provisioned."""
        ...

    def tenant_status_changed(
        self, tenant_id: str, previous_status: str, status: str
    ) -> None:
        """Record that a tenant changed status."""
        ...

    def tenant_not_found(self, tenant_id: str) -> None:
        """Record that a tenant was not found."""
        ...

    def membership_granted(self, tenant_id: str, principal_id: str, role: str) -> None:
        """Record that a membership was granted."""
        ...

    def membership_revoked(self, tenant_id: str, principal_id: str) -> None:
        """Record that a membership was revoked."""
        ...

    def duplicate_membership(self, tenant_id: str, principal_id: str) -> None:
        """Record that a second active membership was refused."""
        ...

    def with_context(self, context: ObservationContext) -> TenantAdministrationProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantAdministrationProbe:
    """Default implementation of TenantAdministrationProbe using structlog."""

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

    def with_context(
        self, context: ObservationContext
    ) -> DefaultTenantAdministrationProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantAdministrationProbe(logger=self._logger, context=context)

    def tenant_provisioned(self, tenant_id: str, name: str) -> None:
        """Record that a tenant was provisioned."""
        self._logger.info(
            "tenant_provisioned",
            tenant_id=tenant_id,
            name=name,
            **self._get_context_kwargs(),
        )

    def tenant_status_changed(
        self, tenant_id: str, previous_status: str, status: str
    ) -> None:
        """Record that a tenant changed status."""
        self._logger.info(
            "tenant_status_changed",
            tenant_id=tenant_id,
            previous_status=previous_status,
            status=status,
            **self._get_context_kwargs(),
        )

    def tenant_not_found(self, tenant_id: str) -> None:
        """Record that a tenant was not found."""
        self._logger.debug(
            "tenant_not_found",
            tenant_id=tenant_id,
            **self._get_context_kwargs(),
        )

    def membership_granted(self, tenant_id: str, principal_id: str, role: str) -> None:
        """Record that a membership was granted."""
        self._logger.info(
            "tenant_membership_granted",
            tenant_id=tenant_id,
            principal_id=principal_id,
            role=role,
            **self._get_context_kwargs(),
        )

    def membership_revoked(self, tenant_id: str, principal_id: str) -> None:
        """Record that a membership was revoked."""
        self._logger.info(
            "tenant_membership_revoked",
            tenant_id=tenant_id,
            principal_id=principal_id,
            **self._get_context_kwargs(),
        )

    def duplicate_membership(self, tenant_id: str, principal_id: str) -> None:
        """Record that a second active membership was refused."""
        self._logger.warning(
            "tenant_duplicate_membership",
            tenant_id=tenant_id,
            principal_id=principal_id,
            **self._get_context_kwargs(),
        )
