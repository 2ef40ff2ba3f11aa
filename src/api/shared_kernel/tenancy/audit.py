"""Cross-tenant access audit events and the audit sink port.

A cross-tenant access event is recorded whenever the isolation pipeline
detects a principal reaching for a tenant other than the one it is bound
to. Events are append-only: the core creates them and hands them to an
``AuditSink``; it never mutates or deletes them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Protocol, runtime_checkable
from uuid import UUID, uuid4


@dataclass(frozen=True)
class CrossTenantAccessEvent:
    """Audit record of an attempt to cross a tenant boundary.

    Attributes:
        principal_id: The principal that made the attempt.
        attempted_tenant_id: The tenant the principal tried to reach.
        actual_tenant_id: The tenant the principal is bound to, if known.
        resource_type: Kind of resource involved (e.g. ``tenant``, ``chat_room``).
        resource_id: Identifier of the resource involved, if any.
        reason: Short machine-readable description of the detection point.
        occurred_at: When the attempt was detected (UTC).
        event_id: Unique identifier of this audit record.
    """

    principal_id: str | None
    attempted_tenant_id: str | None
    actual_tenant_id: str | None
    resource_type: str
    resource_id: str | None
    reason: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    event_id: UUID = field(default_factory=uuid4)

    def as_dict(self) -> dict[str, Any]:
        """Serialize the event using the external audit wire shape."""
        return {
            "eventId": str(self.event_id),
            "principalId": self.principal_id,
            "attemptedTenantId": self.attempted_tenant_id,
            "actualTenantId": self.actual_tenant_id,
            "resourceType": self.resource_type,
            "resourceId": self.resource_id,
            "reason": self.reason,
            "timestamp": self.occurred_at.isoformat(),
        }


@runtime_checkable
class AuditSink(Protocol):
    """Append-only destination for cross-tenant access events."""

    async def record(self, event: CrossTenantAccessEvent) -> None:
        """Append an event to the audit trail.

        Args:
            event: The event to append. Implementations must not alter it.
        """
        ...
