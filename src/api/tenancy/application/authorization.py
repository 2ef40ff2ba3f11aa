"""Role checks against a resolved tenant context."""

from __future__ import annotations

from shared_kernel.tenancy.context import TenantContext, require_resolved
from shared_kernel.tenancy.exceptions import InsufficientTenantRoleError
from tenancy.domain.value_objects import TenantRole


def ensure_tenant_role(context: TenantContext, *required: TenantRole | str) -> TenantRole:
    """Require the context's role to satisfy one of ``required``.

    Admin satisfies every requirement. A context without a role satisfies none.

    Returns:
        The caller's role.

    Raises:
        TenantContextUnresolvedError: If the context is not resolved.
        InsufficientTenantRoleError: If the role requirement is not met.
    """
    require_resolved(context)
    required_roles = frozenset(TenantRole(role) for role in required)
    try:
        role = TenantRole(context.role) if context.role is not None else None
    except ValueError:
        role = None

    if role is None or not role.satisfies(required_roles):
        raise InsufficientTenantRoleError(
            "Your role in this tenant does not permit this operation",
            required_roles=frozenset(r.value for r in required_roles),
            actual_role=context.role,
        )
    return role
