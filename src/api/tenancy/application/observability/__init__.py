"""Domain probes for the tenancy application layer."""

from tenancy.application.observability.administration_probe import (
    DefaultTenantAdministrationProbe,
    TenantAdministrationProbe,
)
from tenancy.application.observability.resolver_probe import (
    DefaultTenantResolverProbe,
    TenantResolverProbe,
)

__all__ = [
    "DefaultTenantAdministrationProbe",
    "DefaultTenantResolverProbe",
    "TenantAdministrationProbe",
    "TenantResolverProbe",
]
