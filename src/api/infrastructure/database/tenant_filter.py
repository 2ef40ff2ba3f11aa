"""Default-scope tenant filtering for ORM statements.

Every ``AsyncSession`` in the application is backed by ``TenantFilteredSession``.
Before an ORM SELECT, UPDATE or DELETE touching a tenant-owned entity is
executed, ``apply_tenant_filter`` adds ``tenant_id = <bound tenant>`` as loader
criteria for every ``TenantOwnedMixin`` subclass, including aliases and
relationship loads. The tenant comes from ``session.info`` and is placed there
only by ``tenant_session_scope``.

With no bound tenant the criteria become ``false``: tenant-owned reads return
nothing rather than every tenant's rows. Internal administrative paths that
have been separately authorised can opt out per statement with
``.execution_options(bypass_tenant_filter=True)``.
"""

from __future__ import annotations

from typing import Any
from uuid import UUID

from sqlalchemy import ColumnElement, event, false, text
from sqlalchemy.orm import ORMExecuteState, Session, with_loader_criteria

from infrastructure.database.models import TenantOwnedMixin
from infrastructure.observability.tenant_session_probe import (
    DefaultTenantSessionProbe,
    TenantSessionProbe,
)
from shared_kernel.tenancy.value_objects import TenantId

BYPASS_TENANT_FILTER = "bypass_tenant_filter"

# session.info keys
SESSION_TENANT_KEY = "tenant_id"
SESSION_VARIABLE_KEY = "tenant_session_variable"

_probe: TenantSessionProbe = DefaultTenantSessionProbe()


def tenant_predicate(model: Any, tenant_id: TenantId | UUID | str) -> ColumnElement[bool]:
    """Return the ``model.tenant_id == tenant_id`` criterion.

    Raises:
        ValueError: If the model has no tenant_id column.
    """
    if not hasattr(model, "tenant_id"):
        name = getattr(model, "__name__", str(model))
        raise ValueError(f"{name} does not define tenant_id and cannot be tenant-scoped.")
    return model.tenant_id == TenantId.coerce(tenant_id).value


def bind_session_tenant(session: Any, tenant_id: TenantId) -> None:
    """Bind a tenant to a (sync or async) session's info dictionary."""
    session.info[SESSION_TENANT_KEY] = tenant_id


def unbind_session_tenant(session: Any) -> None:
    """Remove any tenant bound to a session."""
    session.info.pop(SESSION_TENANT_KEY, None)


def bound_session_tenant(session: Any) -> TenantId | None:
    """Return the tenant bound to a session, if any."""
    return session.info.get(SESSION_TENANT_KEY)


def _statement_kind(execute_state: ORMExecuteState) -> str:
    if execute_state.is_select:
        return "select"
    if execute_state.is_update:
        return "update"
    return "delete"


def _touches_tenant_owned(execute_state: ORMExecuteState) -> bool:
    return any(
        issubclass(mapper.class_, TenantOwnedMixin)
        for mapper in execute_state.all_mappers
    )


def apply_tenant_filter(
    execute_state: ORMExecuteState,
    probe: TenantSessionProbe | None = None,
) -> None:
    """Inject the tenant predicate into an ORM statement.

    Column and relationship loads are skipped: they inherit the criteria of
    the statement that loaded their parent.
    """
    probe = probe or _probe

    if not (
        execute_state.is_select or execute_state.is_update or execute_state.is_delete
    ):
        return
    if execute_state.is_column_load or execute_state.is_relationship_load:
        return
    if not _touches_tenant_owned(execute_state):
        return

    kind = _statement_kind(execute_state)

    if execute_state.execution_options.get(BYPASS_TENANT_FILTER, False):
        probe.tenant_filter_bypassed(statement_kind=kind)
        return

    tenant_id = bound_session_tenant(execute_state.session)

    if tenant_id is None:
        probe.tenant_filter_failed_closed(statement_kind=kind)
        execute_state.statement = execute_state.statement.options(
            with_loader_criteria(
                TenantOwnedMixin,
                lambda cls: false(),
                include_aliases=True,
            )
        )
        return

    tenant_uuid = tenant_id.value
    execute_state.statement = execute_state.statement.options(
        with_loader_criteria(
            TenantOwnedMixin,
            lambda cls: cls.tenant_id == tenant_uuid,
            include_aliases=True,
        )
    )
    probe.tenant_filter_applied(tenant_id=str(tenant_id), statement_kind=kind)


class TenantFilteredSession(Session):
    """Synchronous session class backing every application ``AsyncSession``.

    Carries the tenant filter and the per-transaction row-security session
    variable. Pass it as ``sync_session_class`` to ``async_sessionmaker``.
    """


def set_transaction_tenant_variable(
    session: Session, transaction: Any, connection: Any
) -> None:
    """Set the row-security session variable at the start of each transaction.

    The variable is set with ``is_local => true`` so PostgreSQL discards it
    when the transaction ends; a pooled connection never carries a tenant
    into another request. Non-PostgreSQL dialects have no row-security policy
    and are skipped.
    """
    tenant_id = bound_session_tenant(session)
    variable = session.info.get(SESSION_VARIABLE_KEY)
    if tenant_id is None or variable is None:
        return
    if connection.dialect.name != "postgresql":
        return
    connection.execute(
        text("SELECT set_config(:name, :value, true)"),
        {"name": variable, "value": str(tenant_id)},
    )
    _probe.session_variable_set(tenant_id=str(tenant_id), variable=variable)


event.listen(TenantFilteredSession, "do_orm_execute", apply_tenant_filter)
event.listen(TenantFilteredSession, "after_begin", set_transaction_tenant_variable)
