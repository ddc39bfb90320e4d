# routes_guest_menu.py

"""Guest-facing menu route for a restaurant's public code."""

from __future__ import annotations

import hashlib
import json

from fastapi import APIRouter, Depends, Header, Response
from sqlalchemy.ext.asyncio import AsyncSession

from .db import get_session
from .domain import NotFound
from .repos_sqlalchemy import MenuRepoSQL, TenantsRepoSQL
from .schemas import menu_item_out
from .utils.responses import ok

router = APIRouter()


@router.get("/api/menu/{tenant_code}")
async def fetch_menu(
    tenant_code: str,
    response: Response,
    if_none_match: str | None = Header(default=None, alias="If-None-Match"),
    session: AsyncSession = Depends(get_session),
):
    """Return visible menu items and categories with ETag support.

    Inactive items are listed with ``active: false`` so the menu can show
    them as unavailable; ordering them is rejected.
    """
    tenant = await TenantsRepoSQL().get_by_code(session, tenant_code)
    if tenant is None:
        raise NotFound("Restaurant not found")
    items = await MenuRepoSQL().list_items(session, tenant.id)
    data = {
        "restaurant": {"code": tenant.code, "name": tenant.name},
        "categories": sorted({item.category for item in items}),
        "items": [menu_item_out(item) for item in items],
    }
    body = json.dumps(data, sort_keys=True).encode()
    etag = '"' + hashlib.sha256(body).hexdigest()[:16] + '"'
    if if_none_match == etag:
        return Response(status_code=304, headers={"ETag": etag})
    response.headers["ETag"] = etag
    return ok(data)
