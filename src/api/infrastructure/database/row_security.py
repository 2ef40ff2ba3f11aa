"""PostgreSQL row-level security DDL for tenant-owned tables.

The policy compares each row's ``tenant_id`` with the session variable set by
``tenant_session_scope``. When the variable is unset or empty the comparison
is against NULL and no row qualifies, so an ad-hoc query that never set a
tenant sees nothing. ``FORCE`` makes the policy apply to the table owner too.

Migrations call these helpers with ``op.execute``.
"""

from __future__ import annotations

import re

from infrastructure.settings import get_tenancy_settings

POLICY_NAME = "tenant_isolation"

_IDENTIFIER = re.compile(r"^[a-z_][a-z0-9_]{0,62}$")
_SESSION_VARIABLE = re.compile(r"^[a-z_][a-z0-9_]*\.[a-z_][a-z0-9_]*$")


def _validate_identifier(value: str, kind: str) -> str:
    if not _IDENTIFIER.match(value):
        raise ValueError(f"Invalid {kind} identifier: {value!r}")
    return value


def _validate_session_variable(value: str) -> str:
    if not _SESSION_VARIABLE.match(value):
        raise ValueError(f"Invalid session variable name: {value!r}")
    return value


def tenant_match_expression(
    session_variable: str | None = None, column: str = "tenant_id"
) -> str:
    """SQL boolean expression matching rows of the session's tenant."""
    variable = _validate_session_variable(
        session_variable or get_tenancy_settings().session_variable
    )
    column = _validate_identifier(column, "column")
    return f"{column} = NULLIF(current_setting('{variable}', true), '')::uuid"


def tenant_isolation_policy_statements(
    table: str,
    session_variable: str | None = None,
    column: str = "tenant_id",
) -> list[str]:
    """DDL enabling and forcing the tenant isolation policy on a table.

    Args:
        table: Name of a tenant-owned table.
        session_variable: Custom setting holding the current tenant id.
            Defaults to the configured tenancy session variable.
        column: Tenant column of the table.

    Returns:
        Statements to execute in order.

    Raises:
        ValueError: If any name is not a plain lowercase identifier.
    """
    table = _validate_identifier(table, "table")
    predicate = tenant_match_expression(session_variable, column)
    return [
        f"ALTER TABLE {table} ENABLE ROW LEVEL SECURITY",
        f"ALTER TABLE {table} FORCE ROW LEVEL SECURITY",
        (
            f"CREATE POLICY {POLICY_NAME} ON {table} "
            f"USING ({predicate}) WITH CHECK ({predicate})"
        ),
    ]


def drop_tenant_isolation_policy_statements(table: str) -> list[str]:
    """DDL reverting ``tenant_isolation_policy_statements``."""
    table = _validate_identifier(table, "table")
    return [
        f"DROP POLICY IF EXISTS {POLICY_NAME} ON {table}",
        f"ALTER TABLE {table} NO FORCE ROW LEVEL SECURITY",
        f"ALTER TABLE {table} DISABLE ROW LEVEL SECURITY",
    ]
