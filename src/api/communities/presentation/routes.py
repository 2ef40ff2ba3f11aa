"""HTTP routes for chat rooms and chat messages.

Every handler resolves the tenant context, opens a transaction and binds the
tenant to the session before calling a repository. Repositories receive the
context explicitly as well.
"""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from communities.dependencies import (
    get_chat_message_repository,
    get_chat_room_repository,
)
from communities.infrastructure.models import ChatMessageModel, ChatRoomModel
from communities.infrastructure.repositories import (
    ChatMessageRepository,
    ChatRoomRepository,
)
from communities.presentation.models import (
    ChatMessageResponse,
    ChatRoomResponse,
    CreateChatRoomRequest,
    PostChatMessageRequest,
    UpdateChatRoomRequest,
)
from infrastructure.database.dependencies import get_write_session
from infrastructure.database.session_scope import tenant_session_scope
from shared_kernel.tenancy.context import TenantContext
from tenancy.dependencies import get_tenant_context, require_tenant_role
from tenancy.domain.value_objects import TenantRole

router = APIRouter(
    prefix="/communities",
    tags=["communities"],
)


def _room_not_found(room_id: uuid.UUID) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Chat room {room_id} not found",
    )


@router.get("/rooms")
async def list_rooms(
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    session: Annotated[AsyncSession, Depends(get_write_session)],
    rooms: Annotated[ChatRoomRepository, Depends(get_chat_room_repository)],
) -> list[ChatRoomResponse]:
    """List the tenant's chat rooms."""
    async with session.begin(), tenant_session_scope(session, ctx):
        result = await rooms.get_all(ctx)
        return [ChatRoomResponse.from_model(room) for room in result]


@router.get("/rooms/{room_id}")
async def get_room(
    room_id: uuid.UUID,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    session: Annotated[AsyncSession, Depends(get_write_session)],
    rooms: Annotated[ChatRoomRepository, Depends(get_chat_room_repository)],
) -> ChatRoomResponse:
    """Get one of the tenant's chat rooms.

    Raises:
        HTTPException: 404 if the tenant has no room with this ID
    """
    async with session.begin(), tenant_session_scope(session, ctx):
        room = await rooms.get_by_id(room_id, ctx)
        if room is None:
            raise _room_not_found(room_id)
        return ChatRoomResponse.from_model(room)


@router.post("/rooms", status_code=status.HTTP_201_CREATED)
async def create_room(
    request: CreateChatRoomRequest,
    ctx: Annotated[
        TenantContext, Depends(require_tenant_role(TenantRole.MODERATOR))
    ],
    session: Annotated[AsyncSession, Depends(get_write_session)],
    rooms: Annotated[ChatRoomRepository, Depends(get_chat_room_repository)],
) -> ChatRoomResponse:
    """Create a chat room in the caller's tenant. Requires moderator or admin."""
    async with session.begin(), tenant_session_scope(session, ctx):
        room = ChatRoomModel(
            name=request.name,
            description=request.description,
            is_public=request.is_public,
            is_active=True,
            max_participants=request.max_participants,
            created_by=ctx.principal_id,
        )
        room = await rooms.add(room, ctx)
        return ChatRoomResponse.from_model(room)


@router.patch("/rooms/{room_id}")
async def update_room(
    room_id: uuid.UUID,
    request: UpdateChatRoomRequest,
    ctx: Annotated[
        TenantContext, Depends(require_tenant_role(TenantRole.MODERATOR))
    ],
    session: Annotated[AsyncSession, Depends(get_write_session)],
    rooms: Annotated[ChatRoomRepository, Depends(get_chat_room_repository)],
) -> ChatRoomResponse:
    """Update one of the tenant's chat rooms. Requires moderator or admin.

    Raises:
        HTTPException: 404 if the tenant has no room with this ID
    """
    async with session.begin(), tenant_session_scope(session, ctx):
        room = await rooms.get_by_id(room_id, ctx)
        if room is None:
            raise _room_not_found(room_id)
        for field, value in request.model_dump(exclude_unset=True).items():
            setattr(room, field, value)
        room = await rooms.update(room, ctx)
        return ChatRoomResponse.from_model(room)


@router.delete(
    "/rooms/{room_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    response_model=None,
    responses={
        204: {"description": "Room deleted successfully"},
        403: {"description": "Insufficient role to delete rooms"},
        404: {"description": "Room not found"},
    },
)
async def delete_room(
    room_id: uuid.UUID,
    ctx: Annotated[TenantContext, Depends(require_tenant_role(TenantRole.ADMIN))],
    session: Annotated[AsyncSession, Depends(get_write_session)],
    rooms: Annotated[ChatRoomRepository, Depends(get_chat_room_repository)],
) -> None:
    """Delete a chat room and its messages. Requires admin.

    Raises:
        HTTPException: 404 if the tenant has no room with this ID
    """
    async with session.begin(), tenant_session_scope(session, ctx):
        room = await rooms.get_by_id(room_id, ctx)
        if room is None or not await rooms.delete(room, ctx):
            raise _room_not_found(room_id)


@router.post("/rooms/{room_id}/messages", status_code=status.HTTP_201_CREATED)
async def post_message(
    room_id: uuid.UUID,
    request: PostChatMessageRequest,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    session: Annotated[AsyncSession, Depends(get_write_session)],
    rooms: Annotated[ChatRoomRepository, Depends(get_chat_room_repository)],
    messages: Annotated[ChatMessageRepository, Depends(get_chat_message_repository)],
) -> ChatMessageResponse:
    """Post a message to one of the tenant's chat rooms.

    Raises:
        HTTPException: 404 if the tenant has no room with this ID
        HTTPException: 409 if the room is closed
    """
    async with session.begin(), tenant_session_scope(session, ctx):
        room = await rooms.get_by_id(room_id, ctx)
        if room is None:
            raise _room_not_found(room_id)
        if not room.is_active:
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Chat room {room_id} is closed",
            )
        message = ChatMessageModel(
            room_id=room.id,
            author_id=ctx.principal_id,
            body=request.body,
        )
        message = await messages.add(message, ctx)
        return ChatMessageResponse.from_model(message)


@router.get("/rooms/{room_id}/messages")
async def list_messages(
    room_id: uuid.UUID,
    ctx: Annotated[TenantContext, Depends(get_tenant_context)],
    session: Annotated[AsyncSession, Depends(get_write_session)],
    rooms: Annotated[ChatRoomRepository, Depends(get_chat_room_repository)],
    messages: Annotated[ChatMessageRepository, Depends(get_chat_message_repository)],
) -> list[ChatMessageResponse]:
    """List the messages of one of the tenant's chat rooms, oldest first.

    Raises:
        HTTPException: 404 if the tenant has no room with this ID
    """
    async with session.begin(), tenant_session_scope(session, ctx):
        if await rooms.get_by_id(room_id, ctx) is None:
            raise _room_not_found(room_id)
        result = await messages.list_for_room(room_id, ctx)
        return [ChatMessageResponse.from_model(m) for m in result]
