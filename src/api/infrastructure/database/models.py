"""SQLAlchemy declarative base and shared model utilities.

This module provides the declarative base class for all SQLAlchemy ORM models,
common mixins for timestamps, and the tenant-owned mixin that gives every
tenant-owned table its composite ``(tenant_id, id)`` identity.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import DateTime, ForeignKey, PrimaryKeyConstraint, Uuid
from sqlalchemy.orm import DeclarativeBase, Mapped, declared_attr, mapped_column


def utc_now() -> datetime:
    """Generate UTC timestamp for database defaults.

    Uses a named function instead of lambda for SQLAlchemy 2.0 compatibility.
    Ensures proper INSERT-time evaluation.
    """
    return datetime.now(timezone.utc)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy ORM models.

    All models in the application should inherit from this base class.
    It provides the declarative base functionality and type hints for SQLAlchemy 2.0.
    """

    type_annotation_map: dict[type, Any] = {}


class TimestampMixin:
    """Mixin providing created_at and updated_at timestamp columns.

    Automatically sets created_at on insert and updates updated_at on modification.
    Uses timezone-aware UTC timestamps with Python-side default generation.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=utc_now,  # Evaluated at INSERT time
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        insert_default=utc_now,  # Evaluated at INSERT time
        onupdate=utc_now,  # Evaluated at UPDATE time
        nullable=False,
    )


class TenantOwnedMixin:
    """Mixin for tables whose rows belong to exactly one tenant.

    ``id`` alone is not unique across tenants; ``(tenant_id, id)`` is the
    row's identity. Models using this mixin must declare their table args
    with ``tenant_owned_table_args()`` so the primary key leads with
    ``tenant_id``, and every foreign key to another tenant-owned table must
    be a composite ``(tenant_id, <parent>_id)`` constraint.

    All ORM statements against subclasses are filtered to the session's
    bound tenant (see ``infrastructure.database.tenant_filter``).
    """

    __resource_type__: str = "entity"

    @declared_attr
    def tenant_id(cls) -> Mapped[uuid.UUID]:
        return mapped_column(
            Uuid,
            ForeignKey("tenants.id", ondelete="RESTRICT"),
            nullable=False,
        )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False, default=uuid.uuid4)


def tenant_owned_table_args(*extra: Any) -> tuple[Any, ...]:
    """Build ``__table_args__`` for a tenant-owned model.

    Declares the composite primary key ``(tenant_id, id)``, which also serves
    as the tenant-leading index for list and by-id lookups. Extra constraints
    and indexes are appended unchanged.

    Example:
        __table_args__ = tenant_owned_table_args(
            Index("ix_chat_rooms_tenant_name", "tenant_id", "name"),
        )
    """
    return (PrimaryKeyConstraint("tenant_id", "id"), *extra)
