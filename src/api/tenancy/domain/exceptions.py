"""Domain exceptions for the tenancy bounded context.

These represent violations of tenant and membership business rules. They
should be caught and handled by the application layer.
"""


class TenantNotFoundError(Exception):
    """Raised when an administrative operation names a tenant that does not exist."""

    pass


class TenantDeactivatedError(Exception):
    """Raised when attempting to change a tenant that has been deactivated.

    Deactivation is terminal: an inactive tenant is kept for reference but
    never mutated again.
    """

    pass


class InvalidTenantStatusTransitionError(Exception):
    """Raised when a tenant status change is not an allowed transition."""

    pass


class DuplicateMembershipError(Exception):
    """Raised when a principal would hold two active memberships in one tenant."""

    pass
