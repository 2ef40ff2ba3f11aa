"""create memberships table

A principal holds at most one active membership per tenant; revoked
memberships stay as history, so uniqueness is a partial index.

Revision ID: 2b3c4d5e6f7a
Revises: 1a2b3c4d5e6f
Create Date: 2026-10-05 09:10:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "2b3c4d5e6f7a"
down_revision: Union[str, Sequence[str], None] = "1a2b3c4d5e6f"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "memberships",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("user_id", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False),
        sa.Column(
            "is_active", sa.Boolean(), nullable=False, server_default=sa.true()
        ),
        sa.Column("joined_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name="fk_memberships_tenant",
            ondelete="RESTRICT",
        ),
        sa.CheckConstraint(
            "role IN ('admin', 'moderator', 'member')",
            name="ck_memberships_role",
        ),
    )
    op.create_index(
        "uq_memberships_active_tenant_user",
        "memberships",
        ["tenant_id", "user_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )
    # Primary tenant lookup: a principal's memberships by join date
    op.create_index(
        "ix_memberships_user_joined",
        "memberships",
        ["user_id", "joined_at"],
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_memberships_user_joined", table_name="memberships")
    op.drop_index("uq_memberships_active_tenant_user", table_name="memberships")
    op.drop_table("memberships")
