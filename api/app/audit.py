# audit.py

"""Best-effort audit trail of state-changing actions.

Entries are written in their own short session so a failing audit insert
can never roll back or fail the operation being audited.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .auth import Principal
from .models import AuditLog

logger = logging.getLogger("api.audit")


async def record(
    factory: async_sessionmaker[AsyncSession],
    principal: Principal,
    action: str,
    entity_type: str,
    entity_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> bool:
    """Persist an audit entry for ``principal`` performing ``action``.

    Returns ``False`` instead of raising when the entry could not be stored.
    """

    try:
        async with factory() as session:
            session.add(
                AuditLog(
                    tenant_id=principal.tenant_id,
                    actor_type=principal.role,
                    actor_id=principal.staff_id or principal.sub,
                    action=action,
                    entity_type=entity_type,
                    entity_id=entity_id,
                    details=details,
                    ip_address=ip_address,
                )
            )
            await session.commit()
    except SQLAlchemyError:
        logger.exception(
            "audit write failed",
            extra={"tenant": principal.tenant_id, "action": action},
        )
        return False
    return True
