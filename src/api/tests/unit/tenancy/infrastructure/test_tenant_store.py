"""Unit tests for SqlTenantDirectory and SqlTenantStore against SQLite."""

from datetime import UTC, datetime, timedelta

import pytest

from shared_kernel.tenancy.value_objects import PrincipalId, TenantId
from tenancy.domain.aggregates import Membership, Tenant
from tenancy.domain.exceptions import DuplicateMembershipError
from tenancy.domain.value_objects import TenantRole, TenantStatus
from tenancy.infrastructure.tenant_store import SqlTenantDirectory, SqlTenantStore

ALICE = PrincipalId("alice")


async def _save_tenant(session_factory, tenant: Tenant) -> None:
    async with session_factory() as session:
        async with session.begin():
            await SqlTenantStore(session).save_tenant(tenant)


async def _save_membership(session_factory, membership: Membership) -> None:
    async with session_factory() as session:
        async with session.begin():
            await SqlTenantStore(session).save_membership(membership)


class TestTenants:
    """Tests for tenant persistence."""

    @pytest.mark.asyncio
    async def test_round_trips_tenant(self, session_factory):
        tenant = Tenant.provision(name="Acme", subdomain="acme", subscription_tier="pro")
        await _save_tenant(session_factory, tenant)

        async with session_factory() as session:
            loaded = await SqlTenantDirectory(session).get_tenant(tenant.id)

        assert loaded.id == tenant.id
        assert loaded.name == "Acme"
        assert loaded.status is TenantStatus.ACTIVE
        assert loaded.subdomain == "acme"
        assert loaded.subscription_tier == "pro"

    @pytest.mark.asyncio
    async def test_unknown_tenant(self, session_factory):
        async with session_factory() as session:
            assert await SqlTenantDirectory(session).get_tenant(TenantId.generate()) is None

    @pytest.mark.asyncio
    async def test_saving_existing_tenant_updates_status(self, session_factory):
        tenant = Tenant.provision(name="Acme")
        await _save_tenant(session_factory, tenant)
        await _save_tenant(session_factory, tenant.suspend())

        async with session_factory() as session:
            loaded = await SqlTenantDirectory(session).get_tenant(tenant.id)

        assert loaded.status is TenantStatus.SUSPENDED


class TestMemberships:
    """Tests for membership persistence."""

    @pytest.mark.asyncio
    async def test_get_membership_returns_active_membership(self, session_factory):
        tenant = Tenant.provision(name="Acme")
        await _save_tenant(session_factory, tenant)
        await _save_membership(
            session_factory, Membership.grant(tenant.id, ALICE, TenantRole.MODERATOR)
        )

        async with session_factory() as session:
            membership = await SqlTenantDirectory(session).get_membership(tenant.id, ALICE)

        assert membership.role is TenantRole.MODERATOR
        assert membership.is_active

    @pytest.mark.asyncio
    async def test_revoked_membership_is_not_returned(self, session_factory):
        tenant = Tenant.provision(name="Acme")
        membership = Membership.grant(tenant.id, ALICE, TenantRole.MEMBER)
        await _save_tenant(session_factory, tenant)
        await _save_membership(session_factory, membership)
        await _save_membership(session_factory, membership.revoke())

        async with session_factory() as session:
            assert await SqlTenantDirectory(session).get_membership(tenant.id, ALICE) is None

    @pytest.mark.asyncio
    async def test_second_active_membership_is_rejected(self, session_factory):
        tenant = Tenant.provision(name="Acme")
        await _save_tenant(session_factory, tenant)
        await _save_membership(
            session_factory, Membership.grant(tenant.id, ALICE, TenantRole.MEMBER)
        )

        with pytest.raises(DuplicateMembershipError):
            await _save_membership(
                session_factory, Membership.grant(tenant.id, ALICE, TenantRole.ADMIN)
            )

    @pytest.mark.asyncio
    async def test_regrant_after_revoke_is_allowed(self, session_factory):
        tenant = Tenant.provision(name="Acme")
        first = Membership.grant(tenant.id, ALICE, TenantRole.MEMBER)
        await _save_tenant(session_factory, tenant)
        await _save_membership(session_factory, first)
        await _save_membership(session_factory, first.revoke())

        await _save_membership(
            session_factory, Membership.grant(tenant.id, ALICE, TenantRole.ADMIN)
        )

        async with session_factory() as session:
            membership = await SqlTenantDirectory(session).get_membership(tenant.id, ALICE)
        assert membership.role is TenantRole.ADMIN

    @pytest.mark.asyncio
    async def test_lists_active_memberships_oldest_first(self, session_factory):
        older, newer, revoked = (Tenant.provision(name=n) for n in ("A", "B", "C"))
        now = datetime.now(UTC)
        for tenant in (older, newer, revoked):
            await _save_tenant(session_factory, tenant)
        await _save_membership(
            session_factory,
            Membership(
                tenant_id=newer.id,
                principal_id=ALICE,
                role=TenantRole.MEMBER,
                joined_at=now,
            ),
        )
        await _save_membership(
            session_factory,
            Membership(
                tenant_id=older.id,
                principal_id=ALICE,
                role=TenantRole.ADMIN,
                joined_at=now - timedelta(days=30),
            ),
        )
        await _save_membership(
            session_factory,
            Membership(
                tenant_id=revoked.id,
                principal_id=ALICE,
                role=TenantRole.MEMBER,
                is_active=False,
                joined_at=now - timedelta(days=60),
            ),
        )

        async with session_factory() as session:
            memberships = await SqlTenantDirectory(session).list_memberships_for_principal(
                ALICE
            )

        assert [m.tenant_id for m in memberships] == [older.id, newer.id]
