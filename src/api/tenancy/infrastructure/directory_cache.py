"""Read-through cache in front of the tenant directory.

``DirectoryCache`` is process-wide and shared by concurrent requests; it
stores immutable ``Tenant`` and ``Membership`` snapshots for a short TTL.
Only positive lookups are cached, so a newly provisioned tenant or granted
membership is visible immediately, and tenant administration invalidates
the entries it changes. Resolved tenant contexts are never cached.

``CachedTenantDirectory`` wraps one request's directory with the shared
cache.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Hashable
from typing import Any

from shared_kernel.tenancy.value_objects import PrincipalId, TenantId
from tenancy.domain.aggregates import Membership, Tenant
from tenancy.infrastructure.observability import (
    DefaultTenantDirectoryProbe,
    TenantDirectoryProbe,
)
from tenancy.ports.repositories import ITenantDirectory

_MISSING = object()


class DirectoryCache:
    """Bounded TTL cache safe for concurrent readers.

    Reads take no lock. Writes and invalidations take a lock so eviction and
    insertion happen as one step.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._ttl = ttl_seconds
        self._max_entries = max_entries
        self._clock = clock
        self._entries: dict[Hashable, tuple[float, Any]] = {}
        self._lock = threading.Lock()

    @property
    def enabled(self) -> bool:
        return self._ttl > 0

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, key: Hashable) -> Any:
        """Return the cached value, or ``_MISSING`` if absent or expired."""
        entry = self._entries.get(key)
        if entry is None:
            return _MISSING
        expires_at, value = entry
        if self._clock() >= expires_at:
            return _MISSING
        return value

    def put(self, key: Hashable, value: Any) -> int:
        """Cache a value. Returns how many entries were evicted to make room."""
        if not self.enabled:
            return 0
        with self._lock:
            evicted = 0
            if key not in self._entries and len(self._entries) >= self._max_entries:
                evicted = self._evict()
            self._entries[key] = (self._clock() + self._ttl, value)
            return evicted

    def invalidate(self, key: Hashable) -> bool:
        with self._lock:
            return self._entries.pop(key, None) is not None

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def _evict(self) -> int:
        now = self._clock()
        expired = [k for k, (expires_at, _) in self._entries.items() if expires_at <= now]
        for key in expired:
            del self._entries[key]
        if len(self._entries) < self._max_entries:
            return len(expired)
        # Oldest insertion first.
        oldest = next(iter(self._entries))
        del self._entries[oldest]
        return len(expired) + 1


def _tenant_key(tenant_id: TenantId) -> tuple[str, str]:
    return ("tenant", str(tenant_id))


def _membership_key(tenant_id: TenantId, principal_id: PrincipalId) -> tuple[str, str, str]:
    return ("membership", str(tenant_id), principal_id.value)


def _principal_key(principal_id: PrincipalId) -> tuple[str, str]:
    return ("memberships", principal_id.value)


class CachedTenantDirectory:
    """ITenantDirectory that reads through a shared DirectoryCache."""

    def __init__(
        self,
        inner: ITenantDirectory,
        cache: DirectoryCache,
        probe: TenantDirectoryProbe | None = None,
    ) -> None:
        """Initialize the cached directory.

        Args:
            inner: The directory to read through to on a miss
            cache: The process-wide cache
            probe: Optional domain probe for observability
        """
        self._inner = inner
        self._cache = cache
        self._probe = probe or DefaultTenantDirectoryProbe()

    async def get_tenant(self, tenant_id: TenantId) -> Tenant | None:
        key = _tenant_key(tenant_id)
        cached = self._cache.get(key)
        if cached is not _MISSING:
            self._probe.cache_hit(kind="tenant", key=str(tenant_id))
            return cached

        self._probe.cache_miss(kind="tenant", key=str(tenant_id))
        tenant = await self._inner.get_tenant(tenant_id)
        if tenant is not None:
            self._store(key, tenant)
        return tenant

    async def get_membership(
        self, tenant_id: TenantId, principal_id: PrincipalId
    ) -> Membership | None:
        key = _membership_key(tenant_id, principal_id)
        label = f"{tenant_id}:{principal_id}"
        cached = self._cache.get(key)
        if cached is not _MISSING:
            self._probe.cache_hit(kind="membership", key=label)
            return cached

        self._probe.cache_miss(kind="membership", key=label)
        membership = await self._inner.get_membership(tenant_id, principal_id)
        if membership is not None and membership.is_active:
            self._store(key, membership)
        return membership

    async def list_memberships_for_principal(
        self, principal_id: PrincipalId
    ) -> list[Membership]:
        key = _principal_key(principal_id)
        cached = self._cache.get(key)
        if cached is not _MISSING:
            self._probe.cache_hit(kind="memberships", key=principal_id.value)
            return list(cached)

        self._probe.cache_miss(kind="memberships", key=principal_id.value)
        memberships = await self._inner.list_memberships_for_principal(principal_id)
        if memberships:
            self._store(key, tuple(memberships))
        return memberships

    async def invalidate_tenant(self, tenant_id: TenantId) -> None:
        self._cache.invalidate(_tenant_key(tenant_id))
        self._probe.cache_invalidated(kind="tenant", key=str(tenant_id))

    async def invalidate_membership(
        self, tenant_id: TenantId, principal_id: PrincipalId
    ) -> None:
        self._cache.invalidate(_membership_key(tenant_id, principal_id))
        self._cache.invalidate(_principal_key(principal_id))
        self._probe.cache_invalidated(
            kind="membership", key=f"{tenant_id}:{principal_id}"
        )

    def _store(self, key: Hashable, value: Any) -> None:
        evicted = self._cache.put(key, value)
        if evicted:
            self._probe.cache_evicted(count=evicted)
