"""SQLAlchemy ORM models for the tenancy bounded context.

Tenants, memberships and audit events are directory data read before a
tenant is resolved, so none of them is a tenant-owned table: they are not
subject to the default-scope filter or to row-level security.
"""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Index,
    String,
    Uuid,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import Base, TimestampMixin, utc_now


class TenantModel(Base, TimestampMixin):
    """ORM model for tenants table.

    Tenants represent client organizations and are the top-level isolation
    boundary in the system. Rows are never deleted.
    """

    __tablename__ = "tenants"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="active")
    subdomain: Mapped[str | None] = mapped_column(String(63), nullable=True, unique=True)
    subscription_tier: Mapped[str | None] = mapped_column(String(50), nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('active', 'suspended', 'inactive')",
            name="ck_tenants_status",
        ),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<TenantModel(id={self.id}, name={self.name}, status={self.status})>"


class MembershipModel(Base, TimestampMixin):
    """ORM model for memberships table.

    At most one active membership per (tenant_id, user_id), enforced by a
    partial unique index.
    """

    __tablename__ = "memberships"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    tenant_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("tenants.id", ondelete="RESTRICT"), nullable=False
    )
    user_id: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, insert_default=utc_now
    )

    __table_args__ = (
        Index(
            "uq_memberships_active_tenant_user",
            "tenant_id",
            "user_id",
            unique=True,
            postgresql_where=text("is_active"),
            sqlite_where=text("is_active = 1"),
        ),
        Index("ix_memberships_user_joined", "user_id", "joined_at"),
        CheckConstraint(
            "role IN ('admin', 'moderator', 'member')",
            name="ck_memberships_role",
        ),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<MembershipModel(tenant_id={self.tenant_id}, user_id={self.user_id}, "
            f"role={self.role}, is_active={self.is_active})>"
        )


class CrossTenantAccessEventModel(Base):
    """ORM model for the append-only cross_tenant_access_events table.

    The application only ever inserts. In PostgreSQL a trigger rejects
    UPDATE and DELETE.
    """

    __tablename__ = "cross_tenant_access_events"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    principal_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    attempted_tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    actual_tenant_id: Mapped[str | None] = mapped_column(String(64), nullable=True)
    resource_type: Mapped[str] = mapped_column(String(100), nullable=False)
    resource_id: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reason: Mapped[str] = mapped_column(String(100), nullable=False)
    occurred_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index(
            "ix_cross_tenant_access_events_attempted",
            "attempted_tenant_id",
            "occurred_at",
        ),
        Index("ix_cross_tenant_access_events_principal", "principal_id", "occurred_at"),
    )
