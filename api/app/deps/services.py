"""Dependency helpers wiring repositories and services to settings."""

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from config import get_settings

from ..db import get_sessionmaker
from ..repos_sqlalchemy import OrdersRepoSQL
from ..services import OrderService, TableRegistry
from ..utils.order_counter import SequenceLocks


def orders_repo(request: Request) -> OrdersRepoSQL:
    """Return an orders repository sharing the app's sequence locks."""
    settings = get_settings()
    locks: SequenceLocks = request.app.state.sequence_locks
    return OrdersRepoSQL(
        locks=locks,
        retries=settings.order_sequence_retries,
        timezone_name=settings.order_day_timezone,
    )


def get_order_service(
    repo: OrdersRepoSQL = Depends(orders_repo),
    factory: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
) -> OrderService:
    return OrderService(
        repo,
        storage_timeout=get_settings().storage_timeout_secs,
        audit_factory=factory,
    )


def get_table_registry(
    factory: async_sessionmaker[AsyncSession] = Depends(get_sessionmaker),
) -> TableRegistry:
    return TableRegistry(batch_limit=get_settings().table_batch_limit, audit_factory=factory)


def client_ip(request: Request) -> str | None:
    return request.client.host if request.client else None
