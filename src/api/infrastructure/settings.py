"""Application settings using pydantic-settings.

Settings are loaded from environment variables with sensible defaults
for development. Production deployments should set all values explicitly.
"""

import re
from functools import lru_cache

from pydantic import Field, SecretStr, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Custom PostgreSQL settings must be namespaced ("prefix.name").
_SESSION_VARIABLE_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*\.[a-z_][a-z0-9_]*$")


class DatabaseSettings(BaseSettings):
    """Database connection settings.

    Environment variables:
        COMMUNITIES_DB_HOST: Database host (default: localhost)
        COMMUNITIES_DB_PORT: Database port (default: 5432)
        COMMUNITIES_DB_DATABASE: Database name (default: communities)
        COMMUNITIES_DB_USERNAME: Database user (default: communities)
        COMMUNITIES_DB_PASSWORD: Database password (required in production)
        COMMUNITIES_DB_POOL_MIN_CONNECTIONS: Minimum connections in pool (default: 2)
        COMMUNITIES_DB_POOL_MAX_CONNECTIONS: Maximum connections in pool (default: 10)
        COMMUNITIES_DB_ECHO: Log emitted SQL (default: false)
    """

    model_config = SettingsConfigDict(
        env_prefix="COMMUNITIES_DB_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    host: str = Field(default="localhost", description="Database host")
    port: int = Field(default=5432, description="Database port")
    database: str = Field(default="communities", description="Database name")
    username: str = Field(default="communities", description="Database user")
    password: SecretStr = Field(
        default=SecretStr(""),
        description="Database password",
    )
    pool_min_connections: int = Field(
        default=2,
        description="Minimum connections in pool",
        ge=1,
        le=100,
    )
    pool_max_connections: int = Field(
        default=10,
        description="Maximum connections in pool",
        ge=1,
        le=100,
    )
    echo: bool = Field(default=False, description="Log emitted SQL statements")

    @model_validator(mode="after")
    def validate_pool_settings(self) -> "DatabaseSettings":
        """Validate pool max >= min."""
        if self.pool_max_connections < self.pool_min_connections:
            raise ValueError(
                f"pool_max_connections ({self.pool_max_connections}) must be >= "
                f"pool_min_connections ({self.pool_min_connections})"
            )
        return self

    @property
    def connection_string(self) -> str:
        """Generate a connection string (without password for logging)."""
        return f"postgresql://{self.username}@{self.host}:{self.port}/{self.database}"


class TenancySettings(BaseSettings):
    """Tenant isolation settings.

    Environment variables:
        COMMUNITIES_TENANCY_TENANT_HEADER_NAME: Optional cross-check header (default: X-Tenant-Id)
        COMMUNITIES_TENANCY_TENANT_CLAIM_NAMES: JSON list of claims carrying the tenant id
        COMMUNITIES_TENANCY_SUBJECT_CLAIM_NAMES: JSON list of claims carrying the principal id
        COMMUNITIES_TENANCY_SESSION_VARIABLE: Storage session variable read by row-security policies
        COMMUNITIES_TENANCY_ROW_LEVEL_SECURITY_ENABLED: Set the session variable per request (default: true)
        COMMUNITIES_TENANCY_DIRECTORY_CACHE_TTL_SECONDS: Tenant/membership lookup cache TTL, 0 disables (default: 30)
        COMMUNITIES_TENANCY_DIRECTORY_CACHE_MAX_ENTRIES: Upper bound on cached lookups (default: 10000)
    """

    model_config = SettingsConfigDict(
        env_prefix="COMMUNITIES_TENANCY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    tenant_header_name: str = Field(
        default="X-Tenant-Id",
        description="Header used only to cross-check the tenant claim",
    )
    tenant_claim_names: list[str] = Field(
        default_factory=lambda: ["tenantId", "extension_TenantId"],
        description="Claims searched, in order, for the tenant id",
        min_length=1,
    )
    subject_claim_names: list[str] = Field(
        default_factory=lambda: ["sub", "oid"],
        description="Claims searched, in order, for the principal id",
        min_length=1,
    )
    session_variable: str = Field(
        default="app.current_tenant_id",
        description="Session variable consumed by row-level security policies",
    )
    row_level_security_enabled: bool = Field(
        default=True,
        description="Set the tenant session variable at the start of each request",
    )
    directory_cache_ttl_seconds: float = Field(
        default=30.0,
        description="TTL for cached tenant and membership lookups (0 disables)",
        ge=0,
    )
    directory_cache_max_entries: int = Field(
        default=10_000,
        description="Maximum number of cached tenant and membership lookups",
        ge=1,
    )

    @field_validator("session_variable")
    @classmethod
    def validate_session_variable(cls, value: str) -> str:
        """Session variables are interpolated into policy DDL; keep them plain."""
        if not _SESSION_VARIABLE_PATTERN.match(value):
            raise ValueError(
                f"session_variable must look like 'prefix.name', got: {value!r}"
            )
        return value


class Settings(BaseSettings):
    """Main application settings aggregating all configuration sections."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application metadata
    app_name: str = Field(default="Online Communities API", description="Application name")
    debug: bool = Field(default=False, description="Debug mode")

    @property
    def database(self) -> DatabaseSettings:
        """Get database settings."""
        return get_database_settings()

    @property
    def tenancy(self) -> TenancySettings:
        """Get tenancy settings."""
        return get_tenancy_settings()


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()


@lru_cache
def get_database_settings() -> DatabaseSettings:
    """Get cached database settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return DatabaseSettings()


@lru_cache
def get_tenancy_settings() -> TenancySettings:
    """Get cached tenancy settings.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return TenancySettings()
