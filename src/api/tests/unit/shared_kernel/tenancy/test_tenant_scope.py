"""Unit tests for the execution-scoped tenant context carrier.

Covers binding and restoring, explicit-context precedence, and isolation
between concurrent tasks serving different tenants.
"""

import asyncio

import pytest
import structlog

from shared_kernel.tenancy.context import TenantContext
from shared_kernel.tenancy.exceptions import TenantContextUnresolvedError
from shared_kernel.tenancy.scope import (
    current_tenant_context,
    effective_tenant_context,
    peek_tenant_context,
    tenant_scope,
)
from shared_kernel.tenancy.value_objects import TenantId


def _context(principal_id: str = "alice") -> TenantContext:
    return TenantContext.resolved(tenant_id=TenantId.generate(), principal_id=principal_id)


class TestTenantScope:
    """Tests for tenant_scope()."""

    def test_binds_context_for_block(self):
        ctx = _context()

        with tenant_scope(ctx):
            assert current_tenant_context() is ctx

        assert peek_tenant_context() is None

    def test_restores_binding_after_exception(self):
        ctx = _context()

        with pytest.raises(RuntimeError):
            with tenant_scope(ctx):
                raise RuntimeError("boom")

        assert peek_tenant_context() is None

    def test_nested_scope_restores_outer_binding(self):
        outer, inner = _context("outer"), _context("inner")

        with tenant_scope(outer):
            with tenant_scope(inner):
                assert current_tenant_context() is inner
            assert current_tenant_context() is outer

    def test_rejects_unresolved_context(self):
        with pytest.raises(TenantContextUnresolvedError):
            with tenant_scope(TenantContext.unresolved()):
                pass

        assert peek_tenant_context() is None

    def test_binds_tenant_into_log_context(self):
        ctx = _context()

        with tenant_scope(ctx):
            bound = structlog.contextvars.get_contextvars()
            assert bound["tenant_id"] == str(ctx.tenant_id)
            assert bound["principal_id"] == "alice"

        assert "tenant_id" not in structlog.contextvars.get_contextvars()


class TestCurrentTenantContext:
    """Tests for current_tenant_context() and effective_tenant_context()."""

    def test_fails_closed_when_nothing_is_bound(self):
        with pytest.raises(TenantContextUnresolvedError):
            current_tenant_context()

    def test_explicit_context_wins_over_bound_context(self):
        bound, explicit = _context("bound"), _context("explicit")

        with tenant_scope(bound):
            assert effective_tenant_context(explicit) is explicit

    def test_falls_back_to_bound_context(self):
        bound = _context()

        with tenant_scope(bound):
            assert effective_tenant_context() is bound

    def test_explicit_unresolved_context_is_rejected_even_when_bound(self):
        with tenant_scope(_context()):
            with pytest.raises(TenantContextUnresolvedError):
                effective_tenant_context(TenantContext.unresolved())


class TestConcurrentScopes:
    """Concurrent requests for different tenants never see each other's context."""

    @pytest.mark.asyncio
    async def test_concurrent_tasks_observe_their_own_tenant(self):
        first, second = _context("first"), _context("second")
        observed: dict[str, list[TenantId]] = {"first": [], "second": []}

        async def serve(name: str, ctx: TenantContext) -> None:
            with tenant_scope(ctx):
                for _ in range(20):
                    await asyncio.sleep(0)
                    observed[name].append(current_tenant_context().tenant_id)

        await asyncio.gather(serve("first", first), serve("second", second))

        assert set(observed["first"]) == {first.tenant_id}
        assert set(observed["second"]) == {second.tenant_id}
        assert peek_tenant_context() is None

    @pytest.mark.asyncio
    async def test_child_task_does_not_leak_back_to_parent(self):
        ctx = _context()

        async def child() -> None:
            with tenant_scope(ctx):
                await asyncio.sleep(0)

        await asyncio.create_task(child())

        assert peek_tenant_context() is None
