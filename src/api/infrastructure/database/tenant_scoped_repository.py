"""Generic SQLAlchemy implementation of ITenantScopedRepository.

Concrete repositories subclass ``TenantScopedRepository`` and name their
model; they inherit the tenant boundary rather than re-implementing it:

- every operation resolves the effective tenant context first and fails
  closed if there is none;
- reads are keyed by ``(tenant_id, id)`` and every loaded row is re-checked
  against the context;
- writes verify ownership before touching storage, and a rejected entity
  has its unflushed changes discarded, so a violation never partially
  applies even if the caller later commits;
- violations are reported to the audit sink and raised as
  ``TenantOwnershipViolationError``.

Operations run inside the session's tenant scope. If the session is not yet
bound, the repository binds it to the context for the duration of the call.
"""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any, ClassVar, Generic, TypeVar

from sqlalchemy import ColumnElement, inspect, select
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.models import TenantOwnedMixin
from infrastructure.database.session_scope import tenant_session_scope
from infrastructure.database.tenant_filter import (
    bound_session_tenant,
    tenant_predicate,
)
from infrastructure.observability.tenant_repository_probe import (
    DefaultTenantScopedRepositoryProbe,
    TenantScopedRepositoryProbe,
)
from shared_kernel.tenancy.audit import AuditSink, CrossTenantAccessEvent
from shared_kernel.tenancy.context import TenantContext
from shared_kernel.tenancy.exceptions import (
    EntityNotFoundError,
    TenantContextUnresolvedError,
    TenantOwnershipViolationError,
)
from shared_kernel.tenancy.scope import effective_tenant_context
from shared_kernel.tenancy.value_objects import TenantId

ModelT = TypeVar("ModelT", bound=TenantOwnedMixin)


def _same_tenant(value: Any, tenant_id: TenantId) -> bool:
    try:
        return TenantId.coerce(value) == tenant_id
    except (TypeError, ValueError):
        return False


class TenantScopedRepository(Generic[ModelT]):
    """Tenant-scoped repository over a ``TenantOwnedMixin`` model.

    Subclasses set ``model`` and may set ``order_by`` (column names used by
    ``get_all``). The resource type reported in probes and audit events is
    the model's ``__resource_type__``.
    """

    model: ClassVar[type[Any]]
    order_by: ClassVar[tuple[str, ...]] = ("id",)

    def __init__(
        self,
        session: AsyncSession,
        audit_sink: AuditSink,
        probe: TenantScopedRepositoryProbe | None = None,
    ) -> None:
        """Initialize repository with database session and audit sink.

        Args:
            session: AsyncSession from FastAPI dependency injection
            audit_sink: Destination for cross-tenant access events
            probe: Optional domain probe for observability
        """
        self._session = session
        self._audit_sink = audit_sink
        self._probe = probe or DefaultTenantScopedRepositoryProbe()

    @property
    def resource_type(self) -> str:
        return self.model.__resource_type__

    async def get_all(self, ctx: TenantContext | None = None) -> list[ModelT]:
        """Return every entity owned by the context's tenant."""
        async with self._scoped(ctx, "get_all") as context:
            entities = await self._select_owned(context, "get_all")
            self._probe.entities_listed(
                self.resource_type, str(context.tenant_id), len(entities)
            )
            return entities

    async def get_by_id(
        self, entity_id: Any, ctx: TenantContext | None = None
    ) -> ModelT | None:
        """Look up an entity by ``(ctx.tenant_id, entity_id)``.

        Another tenant's entity with the same id is reported as not found.
        """
        async with self._scoped(ctx, "get_by_id") as context:
            entity = await self._load(context, entity_id, "get_by_id")
            if entity is None:
                self._probe.entity_not_found(
                    self.resource_type, str(context.tenant_id), str(entity_id)
                )
                return None
            self._probe.entity_retrieved(
                self.resource_type, str(context.tenant_id), str(entity_id)
            )
            return entity

    async def add(self, entity: ModelT, ctx: TenantContext | None = None) -> ModelT:
        """Persist a new entity, stamping the context's tenant if unset.

        Raises:
            TenantOwnershipViolationError: If the entity names another tenant.
        """
        async with self._scoped(ctx, "add") as context:
            tenant_id = context.require_tenant_id()
            if entity.tenant_id is None:
                entity.tenant_id = tenant_id.value
            elif not _same_tenant(entity.tenant_id, tenant_id):
                await self._violation(context, entity, "add")

            self._session.add(entity)
            await self._session.flush()
            self._probe.entity_added(
                self.resource_type, str(tenant_id), str(entity.id)
            )
            return entity

    async def update(self, entity: ModelT, ctx: TenantContext | None = None) -> ModelT:
        """Persist changes to an entity owned by the context's tenant.

        The flushed UPDATE is keyed by the full ``(tenant_id, id)`` primary key.

        Raises:
            EntityNotFoundError: If the tenant owns no entity with that id.
            TenantOwnershipViolationError: If the entity belongs to another tenant.
        """
        async with self._scoped(ctx, "update") as context:
            await self._check_ownership(context, entity, "update")

            if not inspect(entity).persistent:
                if await self._load(context, entity.id, "update") is None:
                    raise EntityNotFoundError(self.resource_type, str(entity.id))
                entity = await self._session.merge(entity)

            await self._session.flush()
            self._probe.entity_updated(
                self.resource_type, str(context.tenant_id), str(entity.id)
            )
            return entity

    async def delete(self, entity: ModelT, ctx: TenantContext | None = None) -> bool:
        """Delete an entity owned by the context's tenant.

        Returns:
            True if deleted, False if the tenant owns no such entity.

        Raises:
            TenantOwnershipViolationError: If the entity belongs to another tenant.
        """
        async with self._scoped(ctx, "delete") as context:
            await self._check_ownership(context, entity, "delete")

            if not inspect(entity).persistent:
                existing = await self._load(context, entity.id, "delete")
                if existing is None:
                    self._probe.entity_not_found(
                        self.resource_type, str(context.tenant_id), str(entity.id)
                    )
                    return False
                entity = existing

            await self._session.delete(entity)
            await self._session.flush()
            self._probe.entity_deleted(
                self.resource_type, str(context.tenant_id), str(entity.id)
            )
            return True

    @asynccontextmanager
    async def _scoped(
        self, ctx: TenantContext | None, operation: str
    ) -> AsyncIterator[TenantContext]:
        """Resolve the effective context and make sure the session is bound to it."""
        try:
            context = effective_tenant_context(ctx)
        except TenantContextUnresolvedError:
            self._probe.unresolved_context_rejected(self.resource_type, operation)
            raise

        bound = bound_session_tenant(self._session)
        if bound is None:
            async with tenant_session_scope(self._session, context):
                yield context
        elif bound != context.tenant_id:
            # A session serving one tenant must never run another tenant's work.
            await self._report_violation(
                context,
                entity_id=None,
                actual_tenant_id=str(bound),
                operation=operation,
            )
        else:
            yield context

    async def _select_owned(
        self,
        context: TenantContext,
        operation: str,
        *criteria: ColumnElement[bool],
    ) -> list[ModelT]:
        """Select the tenant's rows matching extra criteria, checking each one.

        The tenant predicate is always part of the statement.
        """
        tenant_id = context.require_tenant_id()
        stmt = (
            select(self.model)
            .where(tenant_predicate(self.model, tenant_id), *criteria)
            .order_by(*(getattr(self.model, name) for name in self.order_by))
        )
        result = await self._session.execute(stmt)
        entities = list(result.scalars().all())
        for entity in entities:
            await self._check_loaded(context, entity, operation)
        return entities

    async def _load(
        self, context: TenantContext, entity_id: Any, operation: str
    ) -> ModelT | None:
        """Load one entity by composite key."""
        tenant_id = context.require_tenant_id()
        stmt = select(self.model).where(
            tenant_predicate(self.model, tenant_id),
            self.model.id == entity_id,
        )
        result = await self._session.execute(stmt)
        entity = result.scalar_one_or_none()
        if entity is not None:
            await self._check_loaded(context, entity, operation)
        return entity

    async def _check_loaded(
        self, context: TenantContext, entity: ModelT, operation: str
    ) -> None:
        """A row that reached us from storage must belong to the context's tenant."""
        if not _same_tenant(entity.tenant_id, context.require_tenant_id()):
            await self._violation(context, entity, operation)

    async def _check_ownership(
        self, context: TenantContext, entity: ModelT, operation: str
    ) -> None:
        """Verify an entity handed to a write belongs to the context's tenant.

        For an entity already persistent in the session, the tenant recorded
        in its identity is checked too, so reassigning ``tenant_id`` on a
        loaded entity is caught.
        """
        tenant_id = context.require_tenant_id()
        if not _same_tenant(entity.tenant_id, tenant_id):
            await self._violation(context, entity, operation)

        state = inspect(entity)
        if state.persistent and state.identity is not None:
            identity_tenant = state.identity[0]
            if not _same_tenant(identity_tenant, tenant_id):
                await self._violation(
                    context, entity, operation, actual_tenant_id=identity_tenant
                )

    async def _violation(
        self,
        context: TenantContext,
        entity: ModelT,
        operation: str,
        actual_tenant_id: Any = None,
    ) -> None:
        """Discard the entity's pending changes, then report the violation."""
        entity_id = None if entity.id is None else str(entity.id)
        if actual_tenant_id is None:
            actual_tenant_id = entity.tenant_id
        self._discard_pending(entity)
        await self._report_violation(
            context,
            entity_id=entity_id,
            actual_tenant_id=None if actual_tenant_id is None else str(actual_tenant_id),
            operation=operation,
        )

    def _discard_pending(self, entity: ModelT) -> None:
        """Drop unflushed changes so a rejected write cannot reach a later flush.

        A pending entity is expunged. A persistent one is expired, which
        reverts its attributes to the stored row on next load.
        """
        if entity not in self._session:
            return
        if inspect(entity).pending:
            self._session.expunge(entity)
        else:
            self._session.expire(entity)

    async def _report_violation(
        self,
        context: TenantContext,
        entity_id: str | None,
        actual_tenant_id: str | None,
        operation: str,
    ) -> None:
        """Probe, audit and raise an ownership violation. Never returns."""
        expected = str(context.tenant_id)
        self._probe.ownership_violation(
            resource_type=self.resource_type,
            entity_id=entity_id,
            expected_tenant_id=expected,
            actual_tenant_id=actual_tenant_id,
            operation=operation,
        )
        error = TenantOwnershipViolationError(
            f"{self.resource_type} does not belong to the active tenant",
            resource_type=self.resource_type,
            resource_id=entity_id,
            expected_tenant_id=expected,
            actual_tenant_id=actual_tenant_id,
        )
        event = CrossTenantAccessEvent(
            principal_id=context.principal_id,
            attempted_tenant_id=actual_tenant_id,
            actual_tenant_id=expected,
            resource_type=self.resource_type,
            resource_id=entity_id,
            reason=f"ownership_violation:{operation}",
        )
        try:
            await self._audit_sink.record(event)
        except Exception as e:
            self._probe.audit_emission_failed(self.resource_type, e)
            raise error from e
        raise error
