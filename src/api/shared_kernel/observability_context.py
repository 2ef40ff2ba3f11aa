"""Request metadata attached to domain probe events."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class ObservationContext:
    """Metadata a probe adds to every event it emits.

    The tenant and principal of a resolved request are already bound through
    ``structlog.contextvars`` inside a tenant scope, so this carries only what
    that binding does not: correlation ids and caller-supplied fields.

    Example:
        probe = DefaultTenantResolverProbe().with_context(
            ObservationContext(request_id="req-123", extra={"route": "/tenancy/context"})
        )
    """

    request_id: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)

    def as_dict(self) -> dict[str, Any]:
        """Event fields for this context, omitting an unset request id."""
        fields = dict(self.extra)
        if self.request_id is not None:
            fields["request_id"] = self.request_id
        return fields
