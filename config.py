# config.py

"""Application configuration utilities.

Values are primarily loaded from environment variables (and an optional
``.env`` file). An optional ``config.json`` next to this file may provide
defaults; environment variables always win. :func:`get_settings` merges the
two sources and caches the result.
"""

from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings merged from JSON and environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = "sqlite+aiosqlite:///./ordering.db"
    redis_url: str | None = None
    secret_key: str = "change-me"
    jwt_algorithm: str = "HS256"
    admin_token_minutes: int = 60
    owner_token_minutes: int = 60 * 8
    staff_token_minutes: int = 60 * 12
    public_base_url: str = "http://localhost:3000"
    order_day_timezone: str = "UTC"
    order_sequence_retries: int = 5
    sequence_lock_timeout_secs: float = 5.0
    storage_timeout_secs: float = 10.0
    feed_poll_interval_secs: float = 3.0
    feed_keepalive_secs: float = 15.0
    feed_recent_completed: int = 5
    table_batch_limit: int = 100
    log_level: str = "INFO"


# Cached singleton to avoid repeated file reads
@lru_cache
def get_settings() -> Settings:
    """Return merged settings with environment variable precedence.

    ``config.json`` is optional; when present its keys act as defaults that
    environment variables override. The result is cached, call
    ``get_settings.cache_clear()`` after changing the environment in tests.
    """

    config_path = Path(__file__).with_name("config.json")
    data = json.loads(config_path.read_text()) if config_path.exists() else {}
    env_override = {
        k.lower(): v
        for k, v in os.environ.items()
        if k.lower() in Settings.model_fields
    }
    merged = {**data, **env_override}
    return Settings(**merged)
