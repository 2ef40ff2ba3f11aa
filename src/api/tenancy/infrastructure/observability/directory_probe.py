"""Domain probe for the cached tenant directory."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Protocol

import structlog

if TYPE_CHECKING:
    from shared_kernel.observability_context import ObservationContext


class TenantDirectoryProbe(Protocol):
    """Domain probe for tenant directory cache behaviour."""

    def cache_hit(self, kind: str, key: str) -> None:
        """Record that a lookup was served from the cache."""
        ...

    def cache_miss(self, kind: str, key: str) -> None:
        """Record that a lookup went through to the directory."""
        ...

    def cache_invalidated(self, kind: str, key: str) -> None:
        """Record that a cache entry was dropped after a change."""
        ...

    def cache_evicted(self, count: int) -> None:
        """Record that entries were evicted to respect the size bound."""
        ...

    def with_context(self, context: ObservationContext) -> TenantDirectoryProbe:
        """Create a new probe with observation context bound."""
        ...


class DefaultTenantDirectoryProbe:
    """Default implementation of TenantDirectoryProbe using structlog."""

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

    def with_context(self, context: ObservationContext) -> DefaultTenantDirectoryProbe:
        """Create a new probe with observation context bound."""
        return DefaultTenantDirectoryProbe(logger=self._logger, context=context)

    def cache_hit(self, kind: str, key: str) -> None:
        """Record that a lookup was served from the cache."""
        self._logger.debug(
            "tenant_directory_cache_hit",
            kind=kind,
            key=key,
            **self._get_context_kwargs(),
        )

    def cache_miss(self, kind: str, key: str) -> None:
        """Record that a lookup went through to the directory."""
        self._logger.debug(
            "tenant_directory_cache_miss",
            kind=kind,
            key=key,
            **self._get_context_kwargs(),
        )

    def cache_invalidated(self, kind: str, key: str) -> None:
        """Record that a cache entry was dropped after a change."""
        self._logger.info(
            "tenant_directory_cache_invalidated",
            kind=kind,
            key=key,
            **self._get_context_kwargs(),
        )

    def cache_evicted(self, count: int) -> None:
        """Record that entries were evicted to respect the size bound."""
        self._logger.debug(
            "tenant_directory_cache_evicted",
            count=count,
            **self._get_context_kwargs(),
        )
