"""create cross_tenant_access_events table

Append-only audit trail of cross-tenant access attempts. A trigger rejects
UPDATE and DELETE so recorded events cannot be altered.

Revision ID: 3c4d5e6f7a8b
Revises: 2b3c4d5e6f7a
Create Date: 2026-10-05 09:20:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "3c4d5e6f7a8b"
down_revision: Union[str, Sequence[str], None] = "2b3c4d5e6f7a"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "cross_tenant_access_events",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("principal_id", sa.String(length=255), nullable=True),
        sa.Column("attempted_tenant_id", sa.String(length=64), nullable=True),
        sa.Column("actual_tenant_id", sa.String(length=64), nullable=True),
        sa.Column("resource_type", sa.String(length=100), nullable=False),
        sa.Column("resource_id", sa.String(length=255), nullable=True),
        sa.Column("reason", sa.String(length=100), nullable=False),
        sa.Column("occurred_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_cross_tenant_access_events_attempted",
        "cross_tenant_access_events",
        ["attempted_tenant_id", "occurred_at"],
    )
    op.create_index(
        "ix_cross_tenant_access_events_principal",
        "cross_tenant_access_events",
        ["principal_id", "occurred_at"],
    )

    op.execute("""
        CREATE OR REPLACE FUNCTION reject_audit_event_change()
        RETURNS TRIGGER AS $$
        BEGIN
            RAISE EXCEPTION 'cross_tenant_access_events is append-only';
        END;
        $$ LANGUAGE plpgsql;
    """)

    op.execute("""
        CREATE TRIGGER cross_tenant_access_events_append_only
            BEFORE UPDATE OR DELETE ON cross_tenant_access_events
            FOR EACH ROW
            EXECUTE FUNCTION reject_audit_event_change();
    """)


def downgrade() -> None:
    """Downgrade schema."""
    op.execute(
        "DROP TRIGGER IF EXISTS cross_tenant_access_events_append_only "
        "ON cross_tenant_access_events;"
    )
    op.execute("DROP FUNCTION IF EXISTS reject_audit_event_change();")
    op.drop_index(
        "ix_cross_tenant_access_events_principal",
        table_name="cross_tenant_access_events",
    )
    op.drop_index(
        "ix_cross_tenant_access_events_attempted",
        table_name="cross_tenant_access_events",
    )
    op.drop_table("cross_tenant_access_events")
