"""Scoped binding of a tenant to an AsyncSession.

``tenant_session_scope`` is the only place a tenant is attached to a database
session. For the enclosed block it:

- binds the tenant in ``session.info`` so the default-scope filter applies it
  to every ORM statement;
- sets the row-security session variable on the current transaction, and on
  every transaction begun inside the block (see ``tenant_filter``);
- binds the tenant context to the execution scope and to structlog.

On every exit path the binding is removed and the variable cleared. If the
variable cannot be cleared the connection is invalidated so it is discarded
rather than returned to the pool.

Example:
    async with session.begin():
        async with tenant_session_scope(session, ctx):
            rooms = await repository.get_all(ctx)
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.exceptions import DatabaseConnectionError
from infrastructure.database.tenant_filter import (
    SESSION_VARIABLE_KEY,
    bind_session_tenant,
    bound_session_tenant,
    unbind_session_tenant,
)
from infrastructure.observability.tenant_session_probe import (
    DefaultTenantSessionProbe,
    TenantSessionProbe,
)
from shared_kernel.tenancy.context import TenantContext, require_resolved
from shared_kernel.tenancy.scope import tenant_scope

_SET_VARIABLE = text("SELECT set_config(:name, :value, true)")


def _uses_row_security(session: AsyncSession) -> str | None:
    """Return the session variable name if this session must maintain it."""
    variable = session.info.get(SESSION_VARIABLE_KEY)
    if variable is None:
        return None
    if session.get_bind().dialect.name != "postgresql":
        return None
    return variable


@asynccontextmanager
async def tenant_session_scope(
    session: AsyncSession,
    context: TenantContext,
    probe: TenantSessionProbe | None = None,
) -> AsyncIterator[AsyncSession]:
    """Bind a resolved tenant context to a session for the enclosed block.

    Args:
        session: The session to bind. It must not already be bound.
        context: A resolved tenant context.
        probe: Optional domain probe for observability.

    Raises:
        TenantContextUnresolvedError: If the context is not resolved.
        RuntimeError: If the session is already bound to a tenant.
        DatabaseConnectionError: If the session variable cannot be set.
    """
    probe = probe or DefaultTenantSessionProbe()
    tenant_id = require_resolved(context).require_tenant_id()

    if bound_session_tenant(session) is not None:
        raise RuntimeError("Session is already bound to a tenant")

    variable = _uses_row_security(session)
    bind_session_tenant(session, tenant_id)
    try:
        # Transactions begun later pick the variable up in after_begin.
        if variable is not None and session.in_transaction():
            try:
                await session.execute(
                    _SET_VARIABLE, {"name": variable, "value": str(tenant_id)}
                )
            except SQLAlchemyError as e:
                raise DatabaseConnectionError(
                    "Could not set the tenant session variable"
                ) from e
            probe.session_variable_set(tenant_id=str(tenant_id), variable=variable)

        with tenant_scope(context):
            yield session
    finally:
        unbind_session_tenant(session)
        if variable is not None and session.in_transaction():
            try:
                await session.execute(_SET_VARIABLE, {"name": variable, "value": ""})
                probe.session_variable_cleared(
                    tenant_id=str(tenant_id), variable=variable
                )
            except SQLAlchemyError as e:
                probe.session_variable_clear_failed(
                    tenant_id=str(tenant_id), variable=variable, error=e
                )
                await session.invalidate()
