"""Domain probe for the storage enforcement layer.

Captures events from the tenant session scope (session variable lifecycle)
and from the default-scope predicate filter applied to ORM statements.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantSessionProbe(Protocol):
    """Domain probe for tenant-bound database sessions."""

    def session_variable_set(self, tenant_id: str, variable: str) -> None:
        """Record that the row-security session variable was set."""
        ...

    def session_variable_cleared(self, tenant_id: str, variable: str) -> None:
        """Record that the row-security session variable was cleared."""
        ...

    def session_variable_clear_failed(
        self, tenant_id: str, variable: str, error: Exception
    ) -> None:
        """Record that clearing failed and the connection was invalidated."""
        ...

    def tenant_filter_applied(self, tenant_id: str, statement_kind: str) -> None:
        """Record that the tenant predicate was injected into a statement."""
        ...

    def tenant_filter_failed_closed(self, statement_kind: str) -> None:
        """Record that a statement ran with no bound tenant and matched nothing."""
        ...

    def tenant_filter_bypassed(self, statement_kind: str) -> None:
        """Record that an administrative path bypassed the tenant filter."""
        ...

    def with_context(self, context: ObservationContext) -> TenantSessionProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantSessionProbe:
    """Default implementation of TenantSessionProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenantSessionProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantSessionProbe(logger=self._logger, context=context)

    def session_variable_set(self, tenant_id: str, variable: str) -> None:
        """Record that the row-security session variable was set."""
        self._logger.debug(
            "tenant_session_variable_set",
            tenant_id=tenant_id,
            variable=variable,
            **self._get_context_kwargs(),
        )

    def session_variable_cleared(self, tenant_id: str, variable: str) -> None:
        """Record that the row-security session variable was cleared."""
        self._logger.debug(
            "tenant_session_variable_cleared",
            tenant_id=tenant_id,
            variable=variable,
            **self._get_context_kwargs(),
        )

    def session_variable_clear_failed(
        self, tenant_id: str, variable: str, error: Exception
    ) -> None:
        """Record that clearing failed and the connection was invalidated."""
        self._logger.error(
            "tenant_session_variable_clear_failed",
            tenant_id=tenant_id,
            variable=variable,
            error=str(error),
            error_type=type(error).__name__,
            message="Connection invalidated instead of being returned to the pool",
            **self._get_context_kwargs(),
        )

    def tenant_filter_applied(self, tenant_id: str, statement_kind: str) -> None:
        """Record that the tenant predicate was injected into a statement."""
        self._logger.debug(
            "tenant_filter_applied",
            tenant_id=tenant_id,
            statement_kind=statement_kind,
            **self._get_context_kwargs(),
        )

    def tenant_filter_failed_closed(self, statement_kind: str) -> None:
        """Record that a statement ran with no bound tenant and matched nothing."""
        self._logger.warning(
            "tenant_filter_failed_closed",
            statement_kind=statement_kind,
            message="No tenant bound to session; tenant-owned rows are hidden",
            **self._get_context_kwargs(),
        )

    def tenant_filter_bypassed(self, statement_kind: str) -> None:
        """Record that an administrative path bypassed the tenant filter."""
        self._logger.warning(
            "tenant_filter_bypassed",
            statement_kind=statement_kind,
            **self._get_context_kwargs(),
        )
