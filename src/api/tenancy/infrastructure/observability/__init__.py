"""Domain probes for tenancy infrastructure."""

from tenancy.infrastructure.observability.directory_probe import (
    DefaultTenantDirectoryProbe,
    TenantDirectoryProbe,
)

__all__ = [
    "DefaultTenantDirectoryProbe",
    "TenantDirectoryProbe",
]
