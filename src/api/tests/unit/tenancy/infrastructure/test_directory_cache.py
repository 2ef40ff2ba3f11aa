"""Unit tests for the tenant directory cache."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from shared_kernel.tenancy.value_objects import PrincipalId, TenantId
from tenancy.domain.aggregates import Membership, Tenant
from tenancy.domain.value_objects import TenantRole
from tenancy.infrastructure.directory_cache import (
    _MISSING,
    CachedTenantDirectory,
    DirectoryCache,
)
from tenancy.infrastructure.observability import TenantDirectoryProbe

ALICE = PrincipalId("alice")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self) -> None:
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def cache(clock) -> DirectoryCache:
    return DirectoryCache(ttl_seconds=30, max_entries=3, clock=clock)


@pytest.fixture
def tenant() -> Tenant:
    return Tenant.provision(name="Acme")


@pytest.fixture
def inner(tenant) -> AsyncMock:
    inner = AsyncMock()
    inner.get_tenant.return_value = tenant
    inner.get_membership.return_value = Membership.grant(
        tenant.id, ALICE, TenantRole.MEMBER
    )
    inner.list_memberships_for_principal.return_value = [
        inner.get_membership.return_value
    ]
    return inner


@pytest.fixture
def probe() -> MagicMock:
    return MagicMock(spec=TenantDirectoryProbe)


@pytest.fixture
def directory(inner, cache, probe) -> CachedTenantDirectory:
    return CachedTenantDirectory(inner=inner, cache=cache, probe=probe)


class TestDirectoryCache:
    """Tests for the TTL cache itself."""

    def test_returns_cached_value_until_expiry(self, cache, clock):
        cache.put("key", "value")

        clock.now = 29.9
        assert cache.get("key") == "value"

        clock.now = 30.0
        assert cache.get("key") is _MISSING

    def test_miss_for_unknown_key(self, cache):
        assert cache.get("unknown") is _MISSING

    def test_evicts_oldest_when_full(self, cache):
        for key in ("a", "b", "c"):
            cache.put(key, key)

        evicted = cache.put("d", "d")

        assert evicted == 1
        assert cache.get("a") is _MISSING
        assert cache.get("d") == "d"
        assert len(cache) == 3

    def test_evicts_expired_entries_first(self, cache, clock):
        cache.put("a", "a")
        clock.now = 10
        cache.put("b", "b")
        cache.put("c", "c")
        clock.now = 31

        evicted = cache.put("d", "d")

        assert evicted == 1
        assert cache.get("b") == "b"
        assert cache.get("c") == "c"

    def test_overwriting_key_does_not_evict(self, cache):
        for key in ("a", "b", "c"):
            cache.put(key, key)

        assert cache.put("a", "again") == 0
        assert cache.get("a") == "again"

    def test_invalidate_and_clear(self, cache):
        cache.put("a", "a")
        cache.put("b", "b")

        assert cache.invalidate("a") is True
        assert cache.invalidate("a") is False
        cache.clear()
        assert len(cache) == 0

    def test_zero_ttl_disables_caching(self, clock):
        cache = DirectoryCache(ttl_seconds=0, max_entries=3, clock=clock)

        cache.put("a", "a")

        assert not cache.enabled
        assert cache.get("a") is _MISSING


class TestCachedTenantDirectory:
    """Tests for read-through behaviour."""

    @pytest.mark.asyncio
    async def test_tenant_lookup_is_cached(self, directory, inner, tenant, probe):
        assert await directory.get_tenant(tenant.id) == tenant
        assert await directory.get_tenant(tenant.id) == tenant

        inner.get_tenant.assert_awaited_once_with(tenant.id)
        probe.cache_miss.assert_called_once_with(kind="tenant", key=str(tenant.id))
        probe.cache_hit.assert_called_once_with(kind="tenant", key=str(tenant.id))

    @pytest.mark.asyncio
    async def test_missing_tenant_is_not_cached(self, directory, inner):
        inner.get_tenant.return_value = None
        tenant_id = TenantId.generate()

        assert await directory.get_tenant(tenant_id) is None
        assert await directory.get_tenant(tenant_id) is None

        assert inner.get_tenant.await_count == 2

    @pytest.mark.asyncio
    async def test_membership_lookup_is_cached(self, directory, inner, tenant):
        await directory.get_membership(tenant.id, ALICE)
        membership = await directory.get_membership(tenant.id, ALICE)

        assert membership.principal_id == ALICE
        inner.get_membership.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_missing_membership_is_not_cached(self, directory, inner, tenant):
        """A newly granted membership is visible immediately."""
        inner.get_membership.return_value = None
        assert await directory.get_membership(tenant.id, ALICE) is None

        granted = Membership.grant(tenant.id, ALICE, TenantRole.MEMBER)
        inner.get_membership.return_value = granted

        assert await directory.get_membership(tenant.id, ALICE) == granted

    @pytest.mark.asyncio
    async def test_memberships_list_is_cached(self, directory, inner):
        first = await directory.list_memberships_for_principal(ALICE)
        second = await directory.list_memberships_for_principal(ALICE)

        assert first == second
        inner.list_memberships_for_principal.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_invalidate_tenant_forces_reload(self, directory, inner, tenant, probe):
        await directory.get_tenant(tenant.id)
        suspended = tenant.suspend()
        inner.get_tenant.return_value = suspended

        await directory.invalidate_tenant(tenant.id)

        assert await directory.get_tenant(tenant.id) == suspended
        probe.cache_invalidated.assert_called_once_with(kind="tenant", key=str(tenant.id))

    @pytest.mark.asyncio
    async def test_invalidate_membership_drops_lookup_and_list(
        self, directory, inner, tenant
    ):
        await directory.get_membership(tenant.id, ALICE)
        await directory.list_memberships_for_principal(ALICE)

        await directory.invalidate_membership(tenant.id, ALICE)
        await directory.get_membership(tenant.id, ALICE)
        await directory.list_memberships_for_principal(ALICE)

        assert inner.get_membership.await_count == 2
        assert inner.list_memberships_for_principal.await_count == 2

    @pytest.mark.asyncio
    async def test_eviction_is_reported(self, inner, clock, probe):
        cache = DirectoryCache(ttl_seconds=30, max_entries=1, clock=clock)
        directory = CachedTenantDirectory(inner=inner, cache=cache, probe=probe)

        await directory.get_tenant(TenantId.generate())
        await directory.get_tenant(TenantId.generate())

        probe.cache_evicted.assert_called_once_with(count=1)
