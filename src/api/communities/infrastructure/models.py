"""SQLAlchemy ORM models for chat rooms and chat messages.

Both tables are tenant-owned: their primary key is ``(tenant_id, id)`` and a
message references its room through the composite foreign key
``(tenant_id, room_id)``, so a message can only ever point at a room of its
own tenant.
"""

from __future__ import annotations

import uuid

from sqlalchemy import (
    Boolean,
    ForeignKeyConstraint,
    Index,
    Integer,
    String,
    Text,
    Uuid,
)
from sqlalchemy.orm import Mapped, mapped_column

from infrastructure.database.models import (
    Base,
    TenantOwnedMixin,
    TimestampMixin,
    tenant_owned_table_args,
)


class ChatRoomModel(TenantOwnedMixin, TimestampMixin, Base):
    """ORM model for chat_rooms table."""

    __tablename__ = "chat_rooms"
    __resource_type__ = "chat_room"

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_public: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    created_by: Mapped[str] = mapped_column(String(255), nullable=False)

    __table_args__ = tenant_owned_table_args(
        Index("ix_chat_rooms_tenant_name", "tenant_id", "name"),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return f"<ChatRoomModel(tenant_id={self.tenant_id}, id={self.id}, name={self.name})>"


class ChatMessageModel(TenantOwnedMixin, TimestampMixin, Base):
    """ORM model for chat_messages table.

    Deleting a room deletes its messages through the composite foreign key.
    """

    __tablename__ = "chat_messages"
    __resource_type__ = "chat_message"

    room_id: Mapped[uuid.UUID] = mapped_column(Uuid, nullable=False)
    author_id: Mapped[str] = mapped_column(String(255), nullable=False)
    body: Mapped[str] = mapped_column(Text, nullable=False)

    __table_args__ = tenant_owned_table_args(
        ForeignKeyConstraint(
            ["tenant_id", "room_id"],
            ["chat_rooms.tenant_id", "chat_rooms.id"],
            name="fk_chat_messages_room",
            ondelete="CASCADE",
        ),
        Index(
            "ix_chat_messages_tenant_room_created",
            "tenant_id",
            "room_id",
            "created_at",
        ),
    )

    def __repr__(self) -> str:
        """Return string representation."""
        return (
            f"<ChatMessageModel(tenant_id={self.tenant_id}, id={self.id}, "
            f"room_id={self.room_id})>"
        )
