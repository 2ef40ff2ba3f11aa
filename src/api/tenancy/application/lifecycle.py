"""State machine for the tenant context lifecycle.

``UNRESOLVED -> RESOLVING -> RESOLVED`` or ``UNRESOLVED -> RESOLVING -> REJECTED``.
Both end states are terminal. One lifecycle tracks one resolution attempt
and is discarded with the request.
"""

from __future__ import annotations

from shared_kernel.tenancy.context import TenantContext, TenantContextState
from shared_kernel.tenancy.exceptions import (
    InvalidContextTransitionError,
    TenantContextUnresolvedError,
    TenantResolutionError,
)

_TRANSITIONS: dict[TenantContextState, frozenset[TenantContextState]] = {
    TenantContextState.UNRESOLVED: frozenset({TenantContextState.RESOLVING}),
    TenantContextState.RESOLVING: frozenset(
        {TenantContextState.RESOLVED, TenantContextState.REJECTED}
    ),
    TenantContextState.RESOLVED: frozenset(),
    TenantContextState.REJECTED: frozenset(),
}


class TenantContextLifecycle:
    """Tracks one tenant context from creation to its terminal state."""

    def __init__(self) -> None:
        self._state = TenantContextState.UNRESOLVED
        self._context: TenantContext | None = None
        self._rejection: TenantResolutionError | None = None

    @property
    def state(self) -> TenantContextState:
        return self._state

    @property
    def rejection(self) -> TenantResolutionError | None:
        return self._rejection

    @property
    def context(self) -> TenantContext:
        """The resolved context.

        Raises:
            TenantContextUnresolvedError: If resolution has not succeeded.
        """
        if self._context is None:
            raise TenantContextUnresolvedError(
                f"Tenant context is {self._state}, not resolved"
            )
        return self._context

    def _transition(self, target: TenantContextState) -> None:
        if target not in _TRANSITIONS[self._state]:
            raise InvalidContextTransitionError(
                f"Cannot move tenant context from {self._state} to {target}"
            )
        self._state = target

    def begin(self) -> None:
        self._transition(TenantContextState.RESOLVING)

    def resolve(self, context: TenantContext) -> TenantContext:
        """Finish successfully with a resolved context."""
        if not context.is_resolved:
            raise InvalidContextTransitionError(
                "Only a context with a tenant id can be marked resolved"
            )
        self._transition(TenantContextState.RESOLVED)
        self._context = context
        return context

    def reject(self, error: TenantResolutionError) -> TenantResolutionError:
        """Finish with a rejection."""
        self._transition(TenantContextState.REJECTED)
        self._rejection = error
        return error
