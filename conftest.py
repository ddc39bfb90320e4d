import os

# Default to an in-memory SQLite database and a long secret for tests
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "x" * 32)
os.environ.setdefault("ORDER_DAY_TIMEZONE", "UTC")
os.environ.setdefault("LOG_SAMPLE_2XX", "0")
