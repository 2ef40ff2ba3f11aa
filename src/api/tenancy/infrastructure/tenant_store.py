"""PostgreSQL implementations of ITenantDirectory and ITenantStore.

The directory reads tenants and memberships and reconstitutes immutable
domain objects. The store adds the writes used by tenant administration.
Tenants are upserted and never deleted.
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared_kernel.tenancy.value_objects import PrincipalId, TenantId
from tenancy.domain.aggregates import Membership, Tenant
from tenancy.domain.exceptions import DuplicateMembershipError
from tenancy.domain.value_objects import TenantRole, TenantStatus
from tenancy.infrastructure.models import MembershipModel, TenantModel

_ACTIVE_MEMBERSHIP_INDEX = "uq_memberships_active_tenant_user"


def _to_tenant(model: TenantModel) -> Tenant:
    return Tenant(
        id=TenantId(value=model.id),
        name=model.name,
        status=TenantStatus(model.status),
        subdomain=model.subdomain,
        subscription_tier=model.subscription_tier,
        created_at=model.created_at,
    )


def _to_membership(model: MembershipModel) -> Membership:
    return Membership(
        id=model.id,
        tenant_id=TenantId(value=model.tenant_id),
        principal_id=PrincipalId(model.user_id),
        role=TenantRole(model.role),
        is_active=model.is_active,
        joined_at=model.joined_at,
    )


def _is_active_membership_conflict(error: IntegrityError) -> bool:
    message = str(error)
    return (
        _ACTIVE_MEMBERSHIP_INDEX in message
        or "memberships.tenant_id, memberships.user_id" in message
    )


class SqlTenantDirectory:
    """Read-only tenant directory backed by PostgreSQL."""

    def __init__(self, session: AsyncSession) -> None:
        """Initialize directory with a database session.

        Args:
            session: AsyncSession from FastAPI dependency injection
        """
        self._session = session

    async def get_tenant(self, tenant_id: TenantId) -> Tenant | None:
        model = await self._session.get(TenantModel, tenant_id.value)
        if model is None:
            return None
        return _to_tenant(model)

    async def get_membership(
        self, tenant_id: TenantId, principal_id: PrincipalId
    ) -> Membership | None:
        stmt = select(MembershipModel).where(
            MembershipModel.tenant_id == tenant_id.value,
            MembershipModel.user_id == principal_id.value,
            MembershipModel.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        model = result.scalar_one_or_none()
        if model is None:
            return None
        return _to_membership(model)

    async def list_memberships_for_principal(
        self, principal_id: PrincipalId
    ) -> list[Membership]:
        stmt = (
            select(MembershipModel)
            .where(
                MembershipModel.user_id == principal_id.value,
                MembershipModel.is_active.is_(True),
            )
            .order_by(MembershipModel.joined_at, MembershipModel.id)
        )
        result = await self._session.execute(stmt)
        return [_to_membership(model) for model in result.scalars().all()]


class SqlTenantStore(SqlTenantDirectory):
    """Tenant directory with write access, used by tenant administration."""

    async def save_tenant(self, tenant: Tenant) -> None:
        """Insert or update a tenant."""
        model = await self._session.get(TenantModel, tenant.id.value)
        if model is None:
            model = TenantModel(
                id=tenant.id.value,
                name=tenant.name,
                status=tenant.status.value,
                subdomain=tenant.subdomain,
                subscription_tier=tenant.subscription_tier,
                created_at=tenant.created_at,
            )
            self._session.add(model)
        else:
            model.name = tenant.name
            model.status = tenant.status.value
            model.subdomain = tenant.subdomain
            model.subscription_tier = tenant.subscription_tier
        await self._session.flush()

    async def save_membership(self, membership: Membership) -> None:
        """Insert or update a membership.

        Raises:
            DuplicateMembershipError: If the principal already holds an
                active membership in the tenant.
        """
        model = await self._session.get(MembershipModel, membership.id)
        if model is None:
            model = MembershipModel(
                id=membership.id,
                tenant_id=membership.tenant_id.value,
                user_id=membership.principal_id.value,
                role=membership.role.value,
                is_active=membership.is_active,
                joined_at=membership.joined_at,
            )
            self._session.add(model)
        else:
            model.role = membership.role.value
            model.is_active = membership.is_active

        try:
            await self._session.flush()
        except IntegrityError as e:
            if _is_active_membership_conflict(e):
                raise DuplicateMembershipError(
                    f"{membership.principal_id} is already a member of "
                    f"tenant {membership.tenant_id}"
                ) from e
            raise
