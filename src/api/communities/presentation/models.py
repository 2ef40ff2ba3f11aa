"""Pydantic models for chat room and chat message API requests and responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from communities.infrastructure.models import ChatMessageModel, ChatRoomModel


class CreateChatRoomRequest(BaseModel):
    """Request model for creating a chat room."""

    name: str = Field(..., description="Room name", min_length=1, max_length=100)
    description: str | None = Field(None, description="Room description")
    is_public: bool = Field(True, description="Whether every member can join")
    max_participants: int | None = Field(
        None, description="Participant limit", ge=1
    )


class UpdateChatRoomRequest(BaseModel):
    """Request model for updating a chat room. Omitted fields are unchanged."""

    name: str | None = Field(None, description="Room name", min_length=1, max_length=100)
    description: str | None = Field(None, description="Room description")
    is_public: bool | None = Field(None, description="Whether every member can join")
    is_active: bool | None = Field(None, description="Whether the room is open")
    max_participants: int | None = Field(None, description="Participant limit", ge=1)


class ChatRoomResponse(BaseModel):
    """Response model for a chat room."""

    id: str = Field(..., description="Room ID (UUID)")
    name: str = Field(..., description="Room name")
    description: str | None = Field(None, description="Room description")
    is_public: bool = Field(..., description="Whether every member can join")
    is_active: bool = Field(..., description="Whether the room is open")
    max_participants: int | None = Field(None, description="Participant limit")
    created_by: str = Field(..., description="Principal that created the room")
    created_at: datetime = Field(..., description="Creation time")

    @classmethod
    def from_model(cls, room: ChatRoomModel) -> ChatRoomResponse:
        """Convert a ChatRoomModel to an API response."""
        return cls(
            id=str(room.id),
            name=room.name,
            description=room.description,
            is_public=room.is_public,
            is_active=room.is_active,
            max_participants=room.max_participants,
            created_by=room.created_by,
            created_at=room.created_at,
        )


class PostChatMessageRequest(BaseModel):
    """Request model for posting a message to a room."""

    body: str = Field(..., description="Message text", min_length=1, max_length=4000)


class ChatMessageResponse(BaseModel):
    """Response model for a chat message."""

    id: str = Field(..., description="Message ID (UUID)")
    room_id: str = Field(..., description="Room ID (UUID)")
    author_id: str = Field(..., description="Principal that posted the message")
    body: str = Field(..., description="Message text")
    created_at: datetime = Field(..., description="Posting time")

    @classmethod
    def from_model(cls, message: ChatMessageModel) -> ChatMessageResponse:
        """Convert a ChatMessageModel to an API response."""
        return cls(
            id=str(message.id),
            room_id=str(message.room_id),
            author_id=message.author_id,
            body=message.body,
            created_at=message.created_at,
        )
