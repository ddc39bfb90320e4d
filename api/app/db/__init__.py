"""Async database engine and session helpers.

The engine is created lazily from :func:`config.get_settings` so importing
the application never opens a connection. Routes depend on
:func:`get_session`; long-lived consumers such as the live order feed and the
audit writer depend on :func:`get_sessionmaker` and open short sessions of
their own. Tests rebind both through :func:`configure`.
"""

from __future__ import annotations

from typing import AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from config import get_settings

from ..models import Base
from ..obs import add_query_logger

_engine: AsyncEngine | None = None
_sessionmaker: async_sessionmaker[AsyncSession] | None = None


def configure(url: str, **engine_kwargs) -> async_sessionmaker[AsyncSession]:
    """Create the process-wide engine for ``url`` and return its sessionmaker."""

    global _engine, _sessionmaker
    _engine = create_async_engine(url, **engine_kwargs)
    add_query_logger(_engine, "ordering")
    _sessionmaker = async_sessionmaker(
        _engine, expire_on_commit=False, class_=AsyncSession
    )
    return _sessionmaker


def get_engine() -> AsyncEngine:
    """Return the singleton async engine, creating it on first use."""

    if _engine is None:
        configure(get_settings().database_url)
    assert _engine is not None  # for type checkers
    return _engine


def get_sessionmaker() -> async_sessionmaker[AsyncSession]:
    """Return the session factory bound to :func:`get_engine`."""

    if _sessionmaker is None:
        get_engine()
    assert _sessionmaker is not None  # for type checkers
    return _sessionmaker


async def get_session(
    factory: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
) -> AsyncGenerator[AsyncSession, None]:
    """Yield a session and ensure it is closed afterwards."""

    async with factory() as session:
        yield session


async def create_all(engine: AsyncEngine | None = None) -> None:
    """Create every table of the ordering schema on ``engine``."""

    engine = engine or get_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def dispose() -> None:
    """Close pooled connections of the process-wide engine."""

    global _engine, _sessionmaker
    if _engine is not None:
        await _engine.dispose()
    _engine = None
    _sessionmaker = None


async def create_test_session(
    url: str = "sqlite+aiosqlite://",
) -> tuple[async_sessionmaker[AsyncSession], AsyncEngine]:
    """Return a session factory and engine with the schema created.

    The default in-memory URL uses a static pool so that every session sees
    the same data; pass a file URL when sessions must run concurrently.
    """

    kwargs: dict = {}
    if url in {"sqlite+aiosqlite://", "sqlite+aiosqlite:///:memory:"}:
        kwargs = {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    engine = create_async_engine(url, **kwargs)
    add_query_logger(engine, "test")
    await create_all(engine)
    factory = async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)
    return factory, engine


__all__ = [
    "configure",
    "create_all",
    "create_test_session",
    "dispose",
    "get_engine",
    "get_session",
    "get_sessionmaker",
]
