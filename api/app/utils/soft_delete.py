"""Explicit soft-delete helpers.

Nothing rewrites queries implicitly: every read of a soft-deletable model
passes its ``include_deleted`` flag through :func:`scoped`, and deletion goes
through :func:`soft_delete` unless a caller deliberately hard-deletes.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def scoped(stmt, model, include_deleted: bool = False):
    """Apply ``deleted_at IS NULL`` to ``stmt`` unless ``include_deleted``."""

    if include_deleted:
        return stmt
    return stmt.where(model.deleted_at.is_(None))


def is_deleted(resource) -> bool:
    return getattr(resource, "deleted_at", None) is not None


def soft_delete(model_obj, now: Optional[datetime] = None) -> None:
    """Mark ``model_obj`` as deleted by setting ``deleted_at``."""

    model_obj.deleted_at = now or datetime.now(timezone.utc)

