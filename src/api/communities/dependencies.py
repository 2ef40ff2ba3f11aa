"""FastAPI dependency wiring for the communities bounded context.

Both repositories share the request's write session; routes open the
transaction and the tenant session scope around their calls.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from communities.infrastructure.repositories import (
    ChatMessageRepository,
    ChatRoomRepository,
)
from infrastructure.database.dependencies import get_write_session
from shared_kernel.tenancy.audit import AuditSink
from tenancy.dependencies import get_audit_sink


def get_chat_room_repository(
    session: Annotated[AsyncSession, Depends(get_write_session)],
    audit_sink: Annotated[AuditSink, Depends(get_audit_sink)],
) -> ChatRoomRepository:
    """Get ChatRoomRepository instance bound to the request's session."""
    return ChatRoomRepository(session=session, audit_sink=audit_sink)


def get_chat_message_repository(
    session: Annotated[AsyncSession, Depends(get_write_session)],
    audit_sink: Annotated[AuditSink, Depends(get_audit_sink)],
) -> ChatMessageRepository:
    """Get ChatMessageRepository instance bound to the request's session."""
    return ChatMessageRepository(session=session, audit_sink=audit_sink)
