"""Ports for the tenancy bounded context."""

from tenancy.ports.repositories import (
    ITenantDirectory,
    ITenantDirectoryCache,
    ITenantStore,
)

__all__ = [
    "ITenantDirectory",
    "ITenantDirectoryCache",
    "ITenantStore",
]
