# auth.py

"""Bearer JWT principals for owner, staff and admin callers.

Credential checks happen upstream; this module only issues and verifies the
signed, role-tagged tokens the ordering core trusts. Owner and staff tokens
carry the tenant they are bound to, which scopes every query they make.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from config import get_settings

from .domain import Forbidden, Unauthorized

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_OWNER = "owner"
ROLE_STAFF = "staff"
ROLES = (ROLE_ADMIN, ROLE_OWNER, ROLE_STAFF)

bearer_scheme = HTTPBearer(auto_error=False)


class Principal(BaseModel):
    """Verified caller extracted from a bearer token."""

    sub: str
    role: str
    tenant_id: Optional[str] = None
    staff_id: Optional[str] = None


def _lifetime(role: str) -> timedelta:
    settings = get_settings()
    minutes = {
        ROLE_ADMIN: settings.admin_token_minutes,
        ROLE_OWNER: settings.owner_token_minutes,
        ROLE_STAFF: settings.staff_token_minutes,
    }[role]
    return timedelta(minutes=minutes)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a signed JWT containing the provided claims.

    ``data`` must carry ``sub`` and ``role``; the lifetime defaults to the
    configured one for the role.
    """

    role = data.get("role")
    if role not in ROLES:
        raise ValueError(f"unknown role {role!r}")
    settings = get_settings()
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (expires_delta or _lifetime(role))
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_token(token: str) -> Principal:
    """Return the :class:`Principal` of ``token`` or raise :class:`Unauthorized`."""

    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        logger.info("rejected bearer token: %s", exc)
        raise Unauthorized("Could not validate credentials") from exc
    sub = payload.get("sub")
    role = payload.get("role")
    if not sub or role not in ROLES:
        raise Unauthorized("Invalid token")
    if role in (ROLE_OWNER, ROLE_STAFF) and not payload.get("tenant_id"):
        raise Unauthorized("Token is not bound to a restaurant")
    return Principal(
        sub=str(sub),
        role=role,
        tenant_id=payload.get("tenant_id"),
        staff_id=payload.get("staff_id"),
    )


async def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> Principal:
    """Resolve the caller from ``Authorization: Bearer``.

    Event streams opened by browsers cannot set headers, so a ``token`` query
    parameter is accepted as a fallback.
    """

    token = credentials.credentials if credentials else request.query_params.get("token")
    if not token:
        raise Unauthorized("Authentication required")
    return decode_token(token)


def require_roles(*roles: str):
    """Dependency factory enforcing that the current principal has one of ``roles``."""

    def dependency(principal: Principal = Depends(get_current_principal)) -> Principal:
        if principal.role not in roles:
            raise Forbidden("Insufficient privileges", {"required": list(roles)})
        return principal

    return dependency
