from __future__ import annotations

import asyncio
import sys
from logging.config import fileConfig
from pathlib import Path

from alembic import context
from sqlalchemy import engine_from_config, pool
from sqlalchemy.engine import make_url
from sqlalchemy.exc import NoSuchModuleError
from sqlalchemy.ext.asyncio import async_engine_from_config

BASE_DIR = Path(__file__).resolve().parents[2]
sys.path.append(str(BASE_DIR))

# Import models to register them with SQLAlchemy's metadata for Alembic.
from api.app.models import Base  # noqa: E402

from config import get_settings  # noqa: E402

config = context.config
if config.config_file_name is not None:
    fileConfig(config.config_file_name)

target_metadata = Base.metadata


def _get_url() -> str:
    x_args = context.get_x_argument(as_dictionary=True)
    if "db_url" in x_args:
        return x_args["db_url"]
    return get_settings().database_url


def _coerce_sync_url(url: str) -> str:
    """Return a synchronous variant of an async DSN for offline SQL output."""

    if url.startswith("postgresql+asyncpg"):
        return url.replace("postgresql+asyncpg", "postgresql")
    if url.startswith("sqlite+aiosqlite"):
        return url.replace("sqlite+aiosqlite", "sqlite")
    return url


def _is_async_url(url: str) -> bool:
    """Return True if URL requests an async driver and it's available."""

    parsed = make_url(url)
    driver = parsed.drivername
    if driver.endswith("+asyncpg") or driver.endswith("+aiosqlite"):
        try:
            dialect = parsed.get_dialect()
        except NoSuchModuleError as exc:
            raise RuntimeError(
                "Async database driver not installed. Install asyncpg or aiosqlite."
            ) from exc
        return bool(getattr(dialect, "is_async", False))
    return False


def _configure(connection) -> None:
    context.configure(
        connection=connection,
        target_metadata=target_metadata,
        render_as_batch=connection.dialect.name == "sqlite",
    )


def run_migrations_offline() -> None:
    url = _coerce_sync_url(_get_url())
    context.configure(url=url, target_metadata=target_metadata, literal_binds=True)
    with context.begin_transaction():
        context.run_migrations()


def _run_sync(connection) -> None:
    _configure(connection)
    with context.begin_transaction():
        context.run_migrations()


async def run_migrations_online() -> None:
    """Run migrations in 'online' mode supporting async and sync URLs."""

    url = _get_url()
    configuration = {"sqlalchemy.url": url}
    if _is_async_url(url):
        connectable = async_engine_from_config(
            configuration, prefix="sqlalchemy.", poolclass=pool.NullPool
        )
        async with connectable.connect() as connection:
            await connection.run_sync(_run_sync)
        await connectable.dispose()
    else:
        connectable = engine_from_config(
            configuration, prefix="sqlalchemy.", poolclass=pool.NullPool
        )
        with connectable.connect() as connection:
            _run_sync(connection)


if context.is_offline_mode():
    run_migrations_offline()
else:
    asyncio.run(run_migrations_online())
