import logging
import os

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("SECRET_KEY", "x" * 32)

# Root logger level before any test module (and the app) is imported.
_ROOT_LEVEL = logging.getLogger().level


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def _isolate_root_logger():
    """Undo the root level set by ``configure_logging`` at app import."""
    root = logging.getLogger()
    saved = root.level
    root.setLevel(_ROOT_LEVEL)
    yield
    root.setLevel(saved)
