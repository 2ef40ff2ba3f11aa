"""Value objects for tenant identity.

Value objects are immutable descriptors that provide type safety and
domain semantics for identifiers shared by every bounded context.
"""

from __future__ import annotations

from dataclasses import dataclass
from uuid import UUID, uuid4


@dataclass(frozen=True)
class TenantId:
    """Identifier for a tenant.

    Tenants are identified by UUIDs issued at provisioning time. The nil
    UUID is rejected: an empty tenant id must never stand in for a real one.
    """

    value: UUID

    def __post_init__(self) -> None:
        if not isinstance(self.value, UUID):
            raise TypeError(f"TenantId value must be a UUID, got {type(self.value).__name__}")
        if self.value.int == 0:
            raise ValueError("TenantId must not be the nil UUID")

    def __str__(self) -> str:
        """Return string representation."""
        return str(self.value)

    @classmethod
    def generate(cls) -> TenantId:
        """Generate a new random TenantId."""
        return cls(value=uuid4())

    @classmethod
    def from_string(cls, value: str) -> TenantId:
        """Create TenantId from string value.

        Accepts any textual UUID form understood by ``uuid.UUID`` after
        surrounding whitespace is stripped.

        Args:
            value: UUID string

        Returns:
            TenantId instance

        Raises:
            ValueError: If value is not a valid, non-nil UUID
        """
        if not isinstance(value, str):
            raise ValueError(f"Invalid TenantId: {value!r}")
        try:
            parsed = UUID(value.strip())
        except ValueError as e:
            raise ValueError(f"Invalid TenantId: {value}") from e

        return cls(value=parsed)

    @classmethod
    def coerce(cls, value: TenantId | UUID | str) -> TenantId:
        """Normalise the forms a tenant id may arrive in to a TenantId."""
        if isinstance(value, TenantId):
            return value
        if isinstance(value, UUID):
            return cls(value=value)
        return cls.from_string(value)


@dataclass(frozen=True)
class PrincipalId:
    """Identifier for an authenticated principal (user or service).

    Principal ids are issued by the external identity provider and are
    treated as opaque, non-empty strings.
    """

    value: str

    def __post_init__(self) -> None:
        if not isinstance(self.value, str) or not self.value.strip():
            raise ValueError("PrincipalId must be a non-empty string")

    def __str__(self) -> str:
        """Return string representation."""
        return self.value
