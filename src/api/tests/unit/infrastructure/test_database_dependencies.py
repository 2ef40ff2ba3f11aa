"""Unit tests for database dependency injection.

Tests the FastAPI dependency providers for async database sessions.
"""

import pytest
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession

from infrastructure.database.dependencies import (
    close_database_connections,
    get_read_engine,
    get_read_session,
    get_write_engine,
    get_write_session,
    get_write_sessionmaker,
)
from infrastructure.database.tenant_filter import (
    TenantFilteredSession,
    bound_session_tenant,
)


@pytest.mark.asyncio
async def test_get_write_engine():
    """Test that get_write_engine returns an AsyncEngine."""
    engine = get_write_engine()

    assert isinstance(engine, AsyncEngine)
    assert engine.url.drivername == "postgresql+asyncpg"

    await close_database_connections()


@pytest.mark.asyncio
async def test_engines_are_singletons():
    """Test that engines are cached and reused."""
    assert get_write_engine() is get_write_engine()
    assert get_read_engine() is get_read_engine()
    assert get_write_engine() is not get_read_engine()

    await close_database_connections()


@pytest.mark.asyncio
async def test_get_write_session_yields_unbound_filtered_session():
    """Sessions start without a tenant; routes bind them explicitly."""
    async for session in get_write_session():
        assert isinstance(session, AsyncSession)
        assert isinstance(session.sync_session, TenantFilteredSession)
        assert bound_session_tenant(session) is None

    await close_database_connections()


@pytest.mark.asyncio
async def test_read_session_uses_read_engine():
    """Test that read session is bound to read engine."""
    read_engine = get_read_engine()

    async for session in get_read_session():
        assert session.bind.sync_engine is read_engine.sync_engine

    await close_database_connections()


@pytest.mark.asyncio
async def test_write_sessionmaker_uses_write_engine():
    factory = get_write_sessionmaker()

    async with factory() as session:
        assert session.bind.sync_engine is get_write_engine().sync_engine

    await close_database_connections()


@pytest.mark.asyncio
async def test_close_database_connections():
    """Test that close_database_connections disposes engines."""
    write_engine = get_write_engine()
    read_engine = get_read_engine()

    await close_database_connections()

    assert get_write_engine() is not write_engine
    assert get_read_engine() is not read_engine

    # Cleanup
    await close_database_connections()
