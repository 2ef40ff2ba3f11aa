"""create chat_rooms and chat_messages tables

Tenant-owned tables: primary keys lead with tenant_id, messages reference
their room through the composite foreign key (tenant_id, room_id), and both
tables carry the tenant isolation row-level security policy.

Revision ID: 4d5e6f7a8b9c
Revises: 3c4d5e6f7a8b
Create Date: 2026-10-05 09:30:00.000000

"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

from infrastructure.database.row_security import (
    drop_tenant_isolation_policy_statements,
    tenant_isolation_policy_statements,
)


# revision identifiers, used by Alembic.
revision: str = "4d5e6f7a8b9c"
down_revision: Union[str, Sequence[str], None] = "3c4d5e6f7a8b"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

TENANT_OWNED_TABLES = ("chat_rooms", "chat_messages")


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "chat_rooms",
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_public", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("max_participants", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.String(length=255), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("tenant_id", "id"),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name="fk_chat_rooms_tenant",
            ondelete="RESTRICT",
        ),
    )
    op.create_index(
        "ix_chat_rooms_tenant_name", "chat_rooms", ["tenant_id", "name"]
    )

    op.create_table(
        "chat_messages",
        sa.Column("tenant_id", sa.Uuid(), nullable=False),
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("room_id", sa.Uuid(), nullable=False),
        sa.Column("author_id", sa.String(length=255), nullable=False),
        sa.Column("body", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("tenant_id", "id"),
        sa.ForeignKeyConstraint(
            ["tenant_id"],
            ["tenants.id"],
            name="fk_chat_messages_tenant",
            ondelete="RESTRICT",
        ),
        # A message can only reference a room of its own tenant
        sa.ForeignKeyConstraint(
            ["tenant_id", "room_id"],
            ["chat_rooms.tenant_id", "chat_rooms.id"],
            name="fk_chat_messages_room",
            ondelete="CASCADE",
        ),
    )
    op.create_index(
        "ix_chat_messages_tenant_room_created",
        "chat_messages",
        ["tenant_id", "room_id", "created_at"],
    )

    for table in TENANT_OWNED_TABLES:
        for statement in tenant_isolation_policy_statements(table):
            op.execute(statement)


def downgrade() -> None:
    """Downgrade schema."""
    for table in reversed(TENANT_OWNED_TABLES):
        for statement in drop_tenant_isolation_policy_statements(table):
            op.execute(statement)

    op.drop_index("ix_chat_messages_tenant_room_created", table_name="chat_messages")
    op.drop_table("chat_messages")
    op.drop_index("ix_chat_rooms_tenant_name", table_name="chat_rooms")
    op.drop_table("chat_rooms")
