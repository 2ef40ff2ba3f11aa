"""Tenant-scoped repositories for chat rooms and chat messages."""

from __future__ import annotations

import uuid

from communities.infrastructure.models import ChatMessageModel, ChatRoomModel
from infrastructure.database.tenant_scoped_repository import TenantScopedRepository
from shared_kernel.tenancy.context import TenantContext


class ChatRoomRepository(TenantScopedRepository[ChatRoomModel]):
    """Chat rooms of the active tenant, listed by name."""

    model = ChatRoomModel
    order_by = ("name", "id")


class ChatMessageRepository(TenantScopedRepository[ChatMessageModel]):
    """Chat messages of the active tenant, listed oldest first."""

    model = ChatMessageModel
    order_by = ("created_at", "id")

    async def list_for_room(
        self, room_id: uuid.UUID, ctx: TenantContext | None = None
    ) -> list[ChatMessageModel]:
        """Return the messages of one of the tenant's rooms, oldest first."""
        async with self._scoped(ctx, "list_for_room") as context:
            messages = await self._select_owned(
                context, "list_for_room", ChatMessageModel.room_id == room_id
            )
            self._probe.entities_listed(
                self.resource_type, str(context.tenant_id), len(messages)
            )
            return messages
