"""Domain probe for tenant-scoped repository operations.

Following Domain-Oriented Observability patterns, this probe captures
domain-significant events of the generic tenant-scoped repository, most
importantly ownership violations, which are always a bug or an attack.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantScopedRepositoryProbe(Protocol):
    """Domain probe for tenant-scoped repository operations."""

    def entities_listed(self, resource_type: str, tenant_id: str, count: int) -> None:
        """Record that a tenant's entities were listed."""
        ...

    def entity_retrieved(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that an entity was retrieved by composite key."""
        ...

    def entity_not_found(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that a tenant owns no entity with the given id."""
        ...

    def entity_added(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that an entity was added."""
        ...

    def entity_updated(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that an entity was updated."""
        ...

    def entity_deleted(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that an entity was deleted."""
        ...

    def ownership_violation(
        self,
        resource_type: str,
        entity_id: str | None,
        expected_tenant_id: str,
        actual_tenant_id: str | None,
        operation: str,
    ) -> None:
        """Record that an entity's tenant disagreed with the active context."""
        ...

    def unresolved_context_rejected(self, resource_type: str, operation: str) -> None:
        """Record that an operation was refused for lack of a resolved context."""
        ...

    def audit_emission_failed(self, resource_type: str, error: Exception) -> None:
        """Record that a detected violation could not be written to the audit sink."""
        ...

    def with_context(self, context: ObservationContext) -> TenantScopedRepositoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantScopedRepositoryProbe:
    """Default implementation of TenantScopedRepositoryProbe using structlog."""

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
    ) -> DefaultTenantScopedRepositoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantScopedRepositoryProbe(logger=self._logger, context=context)

    def entities_listed(self, resource_type: str, tenant_id: str, count: int) -> None:
        """Record that a tenant's entities were listed."""
        self._logger.debug(
            "tenant_entities_listed",
            resource_type=resource_type,
            tenant_id=tenant_id,
            count=count,
            **self._get_context_kwargs(),
        )

    def entity_retrieved(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that an entity was retrieved by composite key."""
        self._logger.debug(
            "tenant_entity_retrieved",
            resource_type=resource_type,
            tenant_id=tenant_id,
            entity_id=entity_id,
            **self._get_context_kwargs(),
        )

    def entity_not_found(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that a tenant owns no entity with the given id."""
        self._logger.debug(
            "tenant_entity_not_found",
            resource_type=resource_type,
            tenant_id=tenant_id,
            entity_id=entity_id,
            **self._get_context_kwargs(),
        )

    def entity_added(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that an entity was added."""
        self._logger.info(
            "tenant_entity_added",
            resource_type=resource_type,
            tenant_id=tenant_id,
            entity_id=entity_id,
            **self._get_context_kwargs(),
        )

    def entity_updated(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that an entity was updated."""
        self._logger.info(
            "tenant_entity_updated",
            resource_type=resource_type,
            tenant_id=tenant_id,
            entity_id=entity_id,
            **self._get_context_kwargs(),
        )

    def entity_deleted(self, resource_type: str, tenant_id: str, entity_id: str) -> None:
        """Record that an entity was deleted."""
        self._logger.info(
            "tenant_entity_deleted",
            resource_type=resource_type,
            tenant_id=tenant_id,
            entity_id=entity_id,
            **self._get_context_kwargs(),
        )

    def ownership_violation(
        self,
        resource_type: str,
        entity_id: str | None,
        expected_tenant_id: str,
        actual_tenant_id: str | None,
        operation: str,
    ) -> None:
        """Record that an entity's tenant disagreed with the active context."""
        self._logger.error(
            "tenant_ownership_violation",
            resource_type=resource_type,
            entity_id=entity_id,
            expected_tenant_id=expected_tenant_id,
            actual_tenant_id=actual_tenant_id,
            operation=operation,
            **self._get_context_kwargs(),
        )

    def unresolved_context_rejected(self, resource_type: str, operation: str) -> None:
        """Record that an operation was refused for lack of a resolved context."""
        self._logger.error(
            "tenant_context_unresolved",
            resource_type=resource_type,
            operation=operation,
            **self._get_context_kwargs(),
        )

    def audit_emission_failed(self, resource_type: str, error: Exception) -> None:
        """Record that a detected violation could not be written to the audit sink."""
        self._logger.critical(
            "tenant_audit_emission_failed",
            resource_type=resource_type,
            error=str(error),
            error_type=type(error).__name__,
            **self._get_context_kwargs(),
        )
