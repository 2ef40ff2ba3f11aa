"""Value objects for the tenancy domain."""

from __future__ import annotations

from collections.abc import Iterable
from enum import StrEnum


class TenantStatus(StrEnum):
    """Lifecycle status of a tenant.

    Only ``ACTIVE`` tenants can be resolved. ``INACTIVE`` is terminal.
    """

    ACTIVE = "active"
    SUSPENDED = "suspended"
    INACTIVE = "inactive"


class TenantRole(StrEnum):
    """Role a principal holds within a tenant."""

    ADMIN = "admin"
    MODERATOR = "moderator"
    MEMBER = "member"

    def satisfies(self, required: Iterable[TenantRole | str]) -> bool:
        """Whether this role meets any of the required roles.

        Admin satisfies every requirement.
        """
        if self is TenantRole.ADMIN:
            return True
        return self in {TenantRole(role) for role in required}
