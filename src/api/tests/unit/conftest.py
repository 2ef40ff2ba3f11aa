"""Unit test fixtures.

Storage tests run against an in-memory SQLite database holding the full
schema, with foreign keys enforced. Row-level security is PostgreSQL-only and
is covered by the session scope and DDL tests with mocks.
"""

from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool


@pytest.fixture
def mock_db_settings():
    """Provide test database settings."""
    from infrastructure.settings import DatabaseSettings

    return DatabaseSettings(
        host="testhost",
        port=5432,
        database="testdb",
        username="testuser",
        password="testpass",
    )


@pytest_asyncio.fixture
async def sqlite_engine():
    """In-memory SQLite engine with every table created."""
    import communities.infrastructure.models  # noqa: F401
    import tenancy.infrastructure.models  # noqa: F401
    from infrastructure.database.models import Base

    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _enable_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(sqlite_engine):
    """Tenant-filtered session factory over the SQLite engine."""
    from infrastructure.database.engines import create_session_factory
    from infrastructure.settings import TenancySettings

    return create_session_factory(
        sqlite_engine, TenancySettings(row_level_security_enabled=False)
    )


@pytest_asyncio.fixture
async def session(session_factory):
    """A fresh session; tests open their own transactions."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def tenant_ids(session_factory):
    """Two active tenants, seeded in the directory."""
    from shared_kernel.tenancy.value_objects import TenantId
    from tenancy.infrastructure.models import TenantModel

    first, second = TenantId.generate(), TenantId.generate()
    async with session_factory() as session:
        async with session.begin():
            session.add_all(
                [
                    TenantModel(id=first.value, name="Acme", status="active"),
                    TenantModel(id=second.value, name="Globex", status="active"),
                ]
            )
    return first, second


@pytest.fixture
def context_a(tenant_ids):
    """Resolved context for a moderator of the first tenant."""
    from shared_kernel.tenancy.context import TenantContext

    return TenantContext.resolved(
        tenant_id=tenant_ids[0],
        principal_id="alice",
        tenant_name="Acme",
        role="moderator",
    )


@pytest.fixture
def context_b(tenant_ids):
    """Resolved context for a moderator of the second tenant."""
    from shared_kernel.tenancy.context import TenantContext

    return TenantContext.resolved(
        tenant_id=tenant_ids[1],
        principal_id="bob",
        tenant_name="Globex",
        role="moderator",
    )


@pytest.fixture
def audit_sink() -> AsyncMock:
    """Audit sink recording events in memory."""
    sink = AsyncMock()
    sink.record = AsyncMock(return_value=None)
    return sink
