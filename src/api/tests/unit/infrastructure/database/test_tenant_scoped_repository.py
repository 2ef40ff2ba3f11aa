"""Unit tests for TenantScopedRepository.

Uses the chat room and chat message repositories against SQLite to cover
tenant stamping, composite-key reads, ownership checks on writes, and the
audit trail of violations.
"""

import asyncio
import uuid
from unittest.mock import MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from communities.infrastructure.models import ChatMessageModel, ChatRoomModel
from communities.infrastructure.repositories import (
    ChatMessageRepository,
    ChatRoomRepository,
)
from infrastructure.database.session_scope import tenant_session_scope
from infrastructure.database.tenant_filter import BYPASS_TENANT_FILTER
from infrastructure.observability.tenant_repository_probe import (
    TenantScopedRepositoryProbe,
)
from shared_kernel.tenancy.audit import CrossTenantAccessEvent
from shared_kernel.tenancy.context import TenantContext
from shared_kernel.tenancy.exceptions import (
    EntityNotFoundError,
    TenantContextUnresolvedError,
    TenantOwnershipViolationError,
)
from shared_kernel.tenancy.repository import ITenantScopedRepository
from shared_kernel.tenancy.scope import tenant_scope


def _room(name: str, tenant_id=None, room_id=None) -> ChatRoomModel:
    room = ChatRoomModel(name=name, created_by="alice")
    if tenant_id is not None:
        room.tenant_id = tenant_id
    if room_id is not None:
        room.id = room_id
    return room


async def _all_rooms(session_factory) -> list[ChatRoomModel]:
    async with session_factory() as session:
        result = await session.execute(
            select(ChatRoomModel).execution_options(**{BYPASS_TENANT_FILTER: True})
        )
        return list(result.scalars().all())


async def _create_room(session_factory, audit_sink, ctx, name, room_id=None):
    async with session_factory() as session:
        async with session.begin():
            repo = ChatRoomRepository(session, audit_sink)
            return await repo.add(_room(name, room_id=room_id), ctx)


@pytest.fixture
def probe() -> MagicMock:
    return MagicMock(spec=TenantScopedRepositoryProbe)


@pytest_asyncio.fixture
async def room_a(session_factory, audit_sink, context_a) -> ChatRoomModel:
    """A room owned by the first tenant."""
    return await _create_room(session_factory, audit_sink, context_a, "general")


class TestAdd:
    """Tests for add()."""

    @pytest.mark.asyncio
    async def test_stamps_context_tenant(self, session, audit_sink, context_a, probe):
        repo = ChatRoomRepository(session, audit_sink, probe=probe)

        async with session.begin():
            room = await repo.add(_room("general"), context_a)

        assert room.tenant_id == context_a.tenant_id.value
        assert room.id is not None
        probe.entity_added.assert_called_once_with(
            "chat_room", str(context_a.tenant_id), str(room.id)
        )

    @pytest.mark.asyncio
    async def test_accepts_matching_explicit_tenant(self, session, audit_sink, context_a):
        repo = ChatRoomRepository(session, audit_sink)

        async with session.begin():
            room = await repo.add(
                _room("general", tenant_id=context_a.tenant_id.value), context_a
            )

        assert room.tenant_id == context_a.tenant_id.value

    @pytest.mark.asyncio
    async def test_rejects_entity_of_another_tenant(
        self, session, session_factory, audit_sink, context_a, context_b, probe
    ):
        repo = ChatRoomRepository(session, audit_sink, probe=probe)

        with pytest.raises(TenantOwnershipViolationError) as exc_info:
            async with session.begin():
                await repo.add(
                    _room("intruder", tenant_id=context_b.tenant_id.value), context_a
                )

        assert exc_info.value.expected_tenant_id == str(context_a.tenant_id)
        assert exc_info.value.actual_tenant_id == str(context_b.tenant_id)
        probe.ownership_violation.assert_called_once()
        assert await _all_rooms(session_factory) == []

    @pytest.mark.asyncio
    async def test_violation_is_audited(
        self, session, audit_sink, context_a, context_b
    ):
        repo = ChatRoomRepository(session, audit_sink)

        with pytest.raises(TenantOwnershipViolationError):
            async with session.begin():
                await repo.add(
                    _room("intruder", tenant_id=context_b.tenant_id.value), context_a
                )

        audit_sink.record.assert_awaited_once()
        event = audit_sink.record.await_args.args[0]
        assert isinstance(event, CrossTenantAccessEvent)
        assert event.principal_id == "alice"
        assert event.attempted_tenant_id == str(context_b.tenant_id)
        assert event.actual_tenant_id == str(context_a.tenant_id)
        assert event.resource_type == "chat_room"
        assert event.reason == "ownership_violation:add"

    @pytest.mark.asyncio
    async def test_violation_raised_even_when_audit_fails(
        self, session, audit_sink, context_a, context_b, probe
    ):
        audit_sink.record.side_effect = RuntimeError("audit store down")
        repo = ChatRoomRepository(session, audit_sink, probe=probe)

        with pytest.raises(TenantOwnershipViolationError) as exc_info:
            async with session.begin():
                await repo.add(
                    _room("intruder", tenant_id=context_b.tenant_id.value), context_a
                )

        assert isinstance(exc_info.value.__cause__, RuntimeError)
        probe.audit_emission_failed.assert_called_once()


class TestReads:
    """Tests for get_all() and get_by_id()."""

    @pytest.mark.asyncio
    async def test_get_all_returns_only_context_tenant(
        self, session_factory, audit_sink, context_a, context_b
    ):
        await _create_room(session_factory, audit_sink, context_a, "random")
        await _create_room(session_factory, audit_sink, context_a, "general")
        await _create_room(session_factory, audit_sink, context_b, "lobby")

        async with session_factory() as session:
            repo = ChatRoomRepository(session, audit_sink)
            rooms_a = await repo.get_all(context_a)
            rooms_b = await repo.get_all(context_b)

        assert [r.name for r in rooms_a] == ["general", "random"]
        assert [r.name for r in rooms_b] == ["lobby"]

    @pytest.mark.asyncio
    async def test_get_by_id_of_other_tenant_returns_none(
        self, session, audit_sink, room_a, context_b
    ):
        """Another tenant's entity is indistinguishable from no entity."""
        repo = ChatRoomRepository(session, audit_sink)

        assert await repo.get_by_id(room_a.id, context_b) is None
        audit_sink.record.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_get_by_id_returns_own_entity(
        self, session, audit_sink, room_a, context_a, probe
    ):
        repo = ChatRoomRepository(session, audit_sink, probe=probe)

        room = await repo.get_by_id(room_a.id, context_a)

        assert room is not None
        assert room.name == "general"
        probe.entity_retrieved.assert_called_once()

    @pytest.mark.asyncio
    async def test_same_id_may_exist_in_two_tenants(
        self, session_factory, audit_sink, context_a, context_b
    ):
        shared_id = uuid.uuid4()
        await _create_room(session_factory, audit_sink, context_a, "a", room_id=shared_id)
        await _create_room(session_factory, audit_sink, context_b, "b", room_id=shared_id)

        async with session_factory() as session:
            repo = ChatRoomRepository(session, audit_sink)
            room_a = await repo.get_by_id(shared_id, context_a)
            room_b = await repo.get_by_id(shared_id, context_b)

        assert room_a.name == "a"
        assert room_b.name == "b"

    @pytest.mark.asyncio
    async def test_duplicate_id_within_tenant_is_rejected(
        self, session_factory, audit_sink, context_a
    ):
        shared_id = uuid.uuid4()
        await _create_room(session_factory, audit_sink, context_a, "a", room_id=shared_id)

        with pytest.raises(IntegrityError):
            await _create_room(
                session_factory, audit_sink, context_a, "b", room_id=shared_id
            )

    @pytest.mark.asyncio
    async def test_uses_bound_execution_context(
        self, session, audit_sink, room_a, context_a
    ):
        repo = ChatRoomRepository(session, audit_sink)

        with tenant_scope(context_a):
            rooms = await repo.get_all()

        assert [r.id for r in rooms] == [room_a.id]

    @pytest.mark.asyncio
    async def test_fails_closed_without_context(self, session, audit_sink, probe):
        repo = ChatRoomRepository(session, audit_sink, probe=probe)

        with pytest.raises(TenantContextUnresolvedError):
            await repo.get_all()

        probe.unresolved_context_rejected.assert_called_once_with("chat_room", "get_all")

    @pytest.mark.asyncio
    async def test_rejects_unresolved_explicit_context(
        self, session, audit_sink, context_a
    ):
        repo = ChatRoomRepository(session, audit_sink)

        with tenant_scope(context_a):
            with pytest.raises(TenantContextUnresolvedError):
                await repo.get_all(TenantContext.unresolved())

    @pytest.mark.asyncio
    async def test_concurrent_tenants_see_only_their_rows(
        self, session_factory, audit_sink, context_a, context_b
    ):
        await _create_room(session_factory, audit_sink, context_a, "general")
        await _create_room(session_factory, audit_sink, context_b, "lobby")

        async def list_names(ctx):
            async with session_factory() as session:
                async with session.begin(), tenant_session_scope(session, ctx):
                    await asyncio.sleep(0)
                    rooms = await ChatRoomRepository(session, audit_sink).get_all(ctx)
                    return [room.name for room in rooms]

        names_a, names_b = await asyncio.gather(
            list_names(context_a), list_names(context_b)
        )

        assert names_a == ["general"]
        assert names_b == ["lobby"]


class TestUpdate:
    """Tests for update()."""

    @pytest.mark.asyncio
    async def test_updates_own_entity(self, session_factory, audit_sink, room_a, context_a):
        async with session_factory() as session:
            async with session.begin():
                repo = ChatRoomRepository(session, audit_sink)
                room = await repo.get_by_id(room_a.id, context_a)
                room.name = "renamed"
                await repo.update(room, context_a)

        assert [r.name for r in await _all_rooms(session_factory)] == ["renamed"]

    @pytest.mark.asyncio
    async def test_merges_detached_entity(
        self, session_factory, audit_sink, room_a, context_a
    ):
        room_a.description = "updated while detached"

        async with session_factory() as session:
            async with session.begin():
                repo = ChatRoomRepository(session, audit_sink)
                await repo.update(room_a, context_a)

        rooms = await _all_rooms(session_factory)
        assert rooms[0].description == "updated while detached"

    @pytest.mark.asyncio
    async def test_rejects_entity_of_another_tenant_without_changes(
        self, session_factory, audit_sink, room_a, context_b
    ):
        room_a.name = "hijacked"

        with pytest.raises(TenantOwnershipViolationError):
            async with session_factory() as session:
                async with session.begin():
                    repo = ChatRoomRepository(session, audit_sink)
                    await repo.update(room_a, context_b)

        assert [r.name for r in await _all_rooms(session_factory)] == ["general"]
        event = audit_sink.record.await_args.args[0]
        assert event.reason == "ownership_violation:update"
        assert event.resource_id == str(room_a.id)

    @pytest.mark.asyncio
    async def test_rejects_reassigned_tenant_on_loaded_entity(
        self, session_factory, audit_sink, room_a, context_a, context_b
    ):
        with pytest.raises(TenantOwnershipViolationError):
            async with session_factory() as session:
                async with session.begin():
                    repo = ChatRoomRepository(session, audit_sink)
                    room = await repo.get_by_id(room_a.id, context_a)
                    room.tenant_id = context_b.tenant_id.value
                    await repo.update(room, context_b)

        rooms = await _all_rooms(session_factory)
        assert rooms[0].tenant_id == context_a.tenant_id.value

    @pytest.mark.asyncio
    async def test_rejected_update_is_not_flushed_by_later_commit(
        self, session_factory, audit_sink, room_a, context_a, context_b
    ):
        async with session_factory() as session:
            async with session.begin():
                repo = ChatRoomRepository(session, audit_sink)
                room = await repo.get_by_id(room_a.id, context_a)
                room.tenant_id = context_b.tenant_id.value
                room.name = "moved"
                with pytest.raises(TenantOwnershipViolationError):
                    await repo.update(room, context_a)

        rooms = await _all_rooms(session_factory)
        assert [(r.tenant_id, r.name) for r in rooms] == [
            (context_a.tenant_id.value, "general")
        ]

    @pytest.mark.asyncio
    async def test_missing_entity_raises_not_found(
        self, session, audit_sink, context_a
    ):
        repo = ChatRoomRepository(session, audit_sink)
        ghost = _room("ghost", tenant_id=context_a.tenant_id.value, room_id=uuid.uuid4())

        with pytest.raises(EntityNotFoundError):
            async with session.begin():
                await repo.update(ghost, context_a)


class TestDelete:
    """Tests for delete()."""

    @pytest.mark.asyncio
    async def test_deletes_own_entity(self, session_factory, audit_sink, room_a, context_a):
        async with session_factory() as session:
            async with session.begin():
                repo = ChatRoomRepository(session, audit_sink)
                assert await repo.delete(room_a, context_a) is True

        assert await _all_rooms(session_factory) == []

    @pytest.mark.asyncio
    async def test_returns_false_when_absent(self, session, audit_sink, context_a):
        repo = ChatRoomRepository(session, audit_sink)
        ghost = _room("ghost", tenant_id=context_a.tenant_id.value, room_id=uuid.uuid4())

        async with session.begin():
            assert await repo.delete(ghost, context_a) is False

    @pytest.mark.asyncio
    async def test_rejects_entity_of_another_tenant(
        self, session_factory, audit_sink, room_a, context_b
    ):
        with pytest.raises(TenantOwnershipViolationError):
            async with session_factory() as session:
                async with session.begin():
                    repo = ChatRoomRepository(session, audit_sink)
                    await repo.delete(room_a, context_b)

        assert len(await _all_rooms(session_factory)) == 1

    @pytest.mark.asyncio
    async def test_rejected_delete_is_not_flushed_by_later_commit(
        self, session_factory, audit_sink, room_a, context_a, context_b
    ):
        async with session_factory() as session:
            async with session.begin():
                repo = ChatRoomRepository(session, audit_sink)
                room = await repo.get_by_id(room_a.id, context_a)
                room.tenant_id = context_b.tenant_id.value
                with pytest.raises(TenantOwnershipViolationError):
                    await repo.delete(room, context_a)

        rooms = await _all_rooms(session_factory)
        assert [r.tenant_id for r in rooms] == [context_a.tenant_id.value]


class TestSessionTenantMismatch:
    """A session serving one tenant never runs another tenant's work."""

    @pytest.mark.asyncio
    async def test_rejects_context_of_other_tenant(
        self, session, audit_sink, context_a, context_b
    ):
        repo = ChatRoomRepository(session, audit_sink)

        with pytest.raises(TenantOwnershipViolationError):
            async with session.begin(), tenant_session_scope(session, context_a):
                await repo.get_all(context_b)

        audit_sink.record.assert_awaited_once()
        event = audit_sink.record.await_args.args[0]
        assert event.reason == "ownership_violation:get_all"


class TestChatMessages:
    """Tests for ChatMessageRepository and the composite room reference."""

    @pytest.mark.asyncio
    async def test_list_for_room_is_scoped_to_room_and_tenant(
        self, session_factory, audit_sink, room_a, context_a
    ):
        other = await _create_room(session_factory, audit_sink, context_a, "other")

        async with session_factory() as session:
            async with session.begin(), tenant_session_scope(session, context_a):
                repo = ChatMessageRepository(session, audit_sink)
                await repo.add(
                    ChatMessageModel(room_id=room_a.id, author_id="alice", body="hi"),
                    context_a,
                )
                await repo.add(
                    ChatMessageModel(room_id=other.id, author_id="alice", body="elsewhere"),
                    context_a,
                )

        async with session_factory() as session:
            repo = ChatMessageRepository(session, audit_sink)
            messages = await repo.list_for_room(room_a.id, context_a)

        assert [m.body for m in messages] == ["hi"]

    @pytest.mark.asyncio
    async def test_message_cannot_reference_other_tenant_room(
        self, session_factory, audit_sink, room_a, context_b
    ):
        with pytest.raises(IntegrityError):
            async with session_factory() as session:
                async with session.begin():
                    repo = ChatMessageRepository(session, audit_sink)
                    await repo.add(
                        ChatMessageModel(room_id=room_a.id, author_id="bob", body="x"),
                        context_b,
                    )

    @pytest.mark.asyncio
    async def test_deleting_room_deletes_its_messages(
        self, session_factory, audit_sink, room_a, context_a
    ):
        async with session_factory() as session:
            async with session.begin():
                await ChatMessageRepository(session, audit_sink).add(
                    ChatMessageModel(room_id=room_a.id, author_id="alice", body="hi"),
                    context_a,
                )

        async with session_factory() as session:
            async with session.begin():
                await ChatRoomRepository(session, audit_sink).delete(room_a, context_a)

        async with session_factory() as session:
            result = await session.execute(
                select(ChatMessageModel).execution_options(
                    **{BYPASS_TENANT_FILTER: True}
                )
            )
            assert result.scalars().all() == []



class TestRepositoryContract:
    """The concrete repositories satisfy the tenant-scoped repository port."""

    @pytest.mark.parametrize("repository_class", [ChatRoomRepository, ChatMessageRepository])
    def test_implements_port(self, session, audit_sink, repository_class):
        repository = repository_class(session=session, audit_sink=audit_sink)

        assert isinstance(repository, ITenantScopedRepository)
