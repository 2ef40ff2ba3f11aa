"""Communities infrastructure: tenant-owned models and repositories."""

from communities.infrastructure.models import ChatMessageModel, ChatRoomModel
from communities.infrastructure.repositories import (
    ChatMessageRepository,
    ChatRoomRepository,
)

__all__ = [
    "ChatMessageModel",
    "ChatMessageRepository",
    "ChatRoomModel",
    "ChatRoomRepository",
]
