"""Execution-scoped carrier for the tenant context.

The tenant context can be passed explicitly to every call, or bound once for
the duration of a request with ``tenant_scope()``. Binding uses a
``contextvars.ContextVar``: each asyncio task (and each thread) observes its
own value, so concurrent requests for different tenants on the same worker
never see each other's context. The module never stores a tenant anywhere
else.

Example:
    with tenant_scope(ctx):
        rooms = await room_repository.get_all()
"""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar

import structlog

from shared_kernel.tenancy.context import TenantContext, require_resolved

_current_tenant: ContextVar[TenantContext | None] = ContextVar(
    "current_tenant_context", default=None
)


@contextmanager
def tenant_scope(context: TenantContext) -> Iterator[TenantContext]:
    """Bind a resolved tenant context for the enclosed block.

    The previous binding (normally none) is restored on every exit path,
    including exceptions and cancellation. The tenant and principal ids are
    also bound into structlog's context variables for the same span.

    Raises:
        TenantContextUnresolvedError: If the context is not resolved.
    """
    require_resolved(context)
    token = _current_tenant.set(context)
    try:
        with structlog.contextvars.bound_contextvars(
            tenant_id=str(context.tenant_id),
            principal_id=context.principal_id,
        ):
            yield context
    finally:
        _current_tenant.reset(token)


def current_tenant_context() -> TenantContext:
    """Return the tenant context bound to the current execution scope.

    Raises:
        TenantContextUnresolvedError: If no resolved context is bound.
    """
    return require_resolved(_current_tenant.get())


def peek_tenant_context() -> TenantContext | None:
    """Return the bound context, or None, without enforcing resolution."""
    return _current_tenant.get()


def effective_tenant_context(explicit: TenantContext | None = None) -> TenantContext:
    """Pick the explicitly passed context, falling back to the bound one.

    An explicit context always wins. Either way the result must be resolved.

    Raises:
        TenantContextUnresolvedError: If neither source yields a resolved context.
    """
    if explicit is not None:
        return require_resolved(explicit)
    return current_tenant_context()
