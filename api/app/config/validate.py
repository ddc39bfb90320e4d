"""Startup configuration validation utilities."""

from __future__ import annotations

import logging
import os
from urllib.parse import urlparse
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from config import Settings

logger = logging.getLogger("api.config")

DEFAULT_SECRET = "change-me"


def _mask(value: str) -> str:
    """Return a masked representation of ``value`` for logging."""
    if len(value) <= 4:
        return "*" * len(value)
    return value[:2] + "*" * (len(value) - 4) + value[-2:]


def _mask_url(value: str) -> str:
    parsed = urlparse(value)
    if parsed.password:
        return value.replace(parsed.password, _mask(parsed.password))
    return value


def validate_on_boot(settings: Settings) -> None:
    """Validate settings before the app starts serving.

    Logs masked values for audit and raises :class:`RuntimeError` when a
    value is missing or malformed. In ``APP_ENV=prod`` the secret key must
    be changed from the default and be at least 32 characters long.
    """

    env = os.getenv("APP_ENV", "dev")

    if not settings.database_url or "://" not in settings.database_url:
        raise RuntimeError("DATABASE_URL must be a SQLAlchemy URL")
    logger.info("DATABASE_URL=%s", _mask_url(settings.database_url))

    if settings.redis_url:
        parsed = urlparse(settings.redis_url)
        if parsed.scheme not in {"redis", "rediss", "unix"}:
            raise RuntimeError("REDIS_URL must use redis://, rediss:// or unix://")
        logger.info("REDIS_URL=%s", _mask_url(settings.redis_url))

    if env == "prod":
        if settings.secret_key == DEFAULT_SECRET or len(settings.secret_key) < 32:
            raise RuntimeError("SECRET_KEY must be at least 32 characters long")
    elif settings.secret_key == DEFAULT_SECRET:
        logger.warning("SECRET_KEY is the development default")
    logger.info("SECRET_KEY=%s", _mask(settings.secret_key))

    try:
        ZoneInfo(settings.order_day_timezone)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise RuntimeError(
            f"ORDER_DAY_TIMEZONE {settings.order_day_timezone!r} is not a known time zone"
        ) from exc

    if settings.order_sequence_retries < 1:
        raise RuntimeError("ORDER_SEQUENCE_RETRIES must be at least 1")
    if settings.feed_poll_interval_secs <= 0:
        raise RuntimeError("FEED_POLL_INTERVAL_SECS must be positive")
