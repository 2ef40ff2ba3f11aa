"""Database dependency injection for FastAPI.

Engines are created lazily, one per role (``write`` and ``read``), each with a
tenant-filtered session factory. Sessions handed out here are never bound to
a tenant; routes bind them with ``tenant_session_scope`` once the request's
tenant context has been resolved.
"""

from __future__ import annotations

import threading
from collections.abc import AsyncGenerator
from dataclasses import dataclass
from typing import Literal

from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from infrastructure.database.engines import (
    create_read_engine,
    create_session_factory,
    create_write_engine,
)
from infrastructure.observability import DefaultConnectionProbe
from infrastructure.settings import get_database_settings, get_tenancy_settings

EngineRole = Literal["write", "read"]

_ENGINE_BUILDERS = {
    "write": create_write_engine,
    "read": create_read_engine,
}

_probe = DefaultConnectionProbe()


@dataclass(frozen=True)
class _Database:
    engine: AsyncEngine
    sessionmaker: async_sessionmaker[AsyncSession]


_databases: dict[str, _Database] = {}
_lock = threading.Lock()


def _database(role: EngineRole) -> _Database:
    """Return the engine and session factory for a role, creating them once.

    Double-checked under a lock so concurrent first requests share one engine.
    """
    database = _databases.get(role)
    if database is not None:
        return database
    with _lock:
        database = _databases.get(role)
        if database is None:
            settings = get_database_settings()
            engine = _ENGINE_BUILDERS[role](settings)
            database = _Database(
                engine=engine,
                sessionmaker=create_session_factory(engine, get_tenancy_settings()),
            )
            _databases[role] = database
            _probe.engine_created(role=role, database=settings.database)
    return database


def get_write_engine() -> AsyncEngine:
    """Get the write database engine (singleton)."""
    return _database("write").engine


def get_read_engine() -> AsyncEngine:
    """Get the read database engine (singleton)."""
    return _database("read").engine


def get_write_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Get the write session factory.

    For components that run their own transactions independently of the
    request's session, such as the audit sink.
    """
    return _database("write").sessionmaker


async def get_write_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a write session (FastAPI dependency).

    The session does not auto-commit and carries no tenant. Callers open the
    transaction and the tenant scope themselves.

    Usage:
        @router.post("/rooms")
        async def create_room(
            session: AsyncSession = Depends(get_write_session)
        ):
            async with session.begin(), tenant_session_scope(session, ctx):
                await repository.add(room, ctx)
    """
    async with _database("write").sessionmaker() as session:
        yield session


async def get_read_session() -> AsyncGenerator[AsyncSession, None]:
    """Provide a session on the read engine (FastAPI dependency)."""
    async with _database("read").sessionmaker() as session:
        yield session


async def close_database_connections() -> None:
    """Dispose every engine created so far.

    Called on application shutdown. Engines are recreated on next use.
    """
    with _lock:
        databases = list(_databases.items())
        _databases.clear()

    for role, database in databases:
        await database.engine.dispose()
        _probe.engine_disposed(role=role)
