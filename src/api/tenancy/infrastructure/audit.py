"""Audit sink persisting cross-tenant access events.

Each event is written in its own session and transaction, so the record
survives the rollback of the unit of work that the violation aborts.
"""

from __future__ import annotations

import structlog
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from shared_kernel.tenancy.audit import CrossTenantAccessEvent
from tenancy.infrastructure.models import CrossTenantAccessEventModel


class SqlAuditSink:
    """Append-only AuditSink backed by the cross_tenant_access_events table.

    Every recorded event is also logged at warning level so it reaches the
    log pipeline even where the table is not monitored.
    """

    def __init__(
        self,
        session_factory: async_sessionmaker[AsyncSession],
        logger: structlog.stdlib.BoundLogger | None = None,
    ) -> None:
        """Initialize the sink.

        Args:
            session_factory: Factory for the sink's own sessions
            logger: Optional structlog logger
        """
        self._session_factory = session_factory
        self._logger = logger or structlog.get_logger()

    async def record(self, event: CrossTenantAccessEvent) -> None:
        """Append an event to the audit table."""
        async with self._session_factory() as session:
            async with session.begin():
                session.add(
                    CrossTenantAccessEventModel(
                        id=event.event_id,
                        principal_id=event.principal_id,
                        attempted_tenant_id=event.attempted_tenant_id,
                        actual_tenant_id=event.actual_tenant_id,
                        resource_type=event.resource_type,
                        resource_id=event.resource_id,
                        reason=event.reason,
                        occurred_at=event.occurred_at,
                    )
                )
        self._logger.warning("cross_tenant_access_attempt", audit_event=event.as_dict())
