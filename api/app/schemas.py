# schemas.py

"""Pydantic models for API payloads and response serializers."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, StrictInt

from .pricing import money_str


class _CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class CustomizationIn(_CamelModel):
    """Customization picked by the customer; price and action are optional echoes."""

    id: str
    name: Optional[str] = None
    price: Optional[str | float | int] = None
    action: Optional[str] = None


class OrderLineIn(_CamelModel):
    """Single line of a customer order."""

    item_id: str = Field(alias="itemId")
    quantity: StrictInt
    customizations: List[CustomizationIn] = Field(default_factory=list)


class OrderIn(_CamelModel):
    """Payload placing an order from a table."""

    tenant_code: str = Field(alias="tenantCode")
    table_identifier: str = Field(alias="tableId")
    items: List[OrderLineIn]
    customer_note: Optional[str] = Field(default=None, alias="customerNote", max_length=500)


class StatusIn(BaseModel):
    """Requested lifecycle status."""

    status: str


class AvailabilityIn(BaseModel):
    """Availability flag of a menu item."""

    active: bool


class TablesIn(_CamelModel):
    """Batch of table identifiers to create or restore."""

    identifiers: List[str] = Field(alias="tableIdentifiers")


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime; naive values are UTC."""

    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _iso(value: Optional[datetime]) -> Optional[str]:
    value = as_utc(value)
    return value.isoformat() if value else None


def order_out(order) -> dict[str, Any]:
    """Serialize an order with its lines; money is rendered as strings."""

    table = order.table
    return {
        "id": order.id,
        "displayCode": order.display_code,
        "dailySequence": order.daily_sequence,
        "sequenceDate": order.sequence_date.isoformat(),
        "status": order.status.value,
        "total": money_str(order.total),
        "customerNote": order.customer_note,
        "tableId": order.table_id,
        "tableIdentifier": table.table_identifier if table is not None else None,
        "createdAt": _iso(order.created_at),
        "updatedAt": _iso(order.updated_at),
        "doneAt": _iso(order.done_at),
        "items": [
            {
                "id": line.id,
                "itemId": line.item_id,
                "name": line.item_name_snapshot,
                "unitPrice": money_str(line.item_price_snapshot),
                "quantity": line.quantity,
                "customizations": line.customizations or [],
                "subtotal": money_str(line.subtotal),
            }
            for line in order.items
        ],
    }


def menu_item_out(item) -> dict[str, Any]:
    return {
        "id": item.id,
        "itemCode": item.item_code,
        "name": item.name,
        "price": money_str(item.price),
        "description": item.description,
        "category": item.category,
        "active": item.active,
        "customizations": [
            {
                "id": c.id,
                "name": c.name,
                "price": money_str(c.price),
                "action": c.action.value,
            }
            for c in item.customizations
        ],
    }


def table_out(table, url: str, qr: Optional[str] = None) -> dict[str, Any]:
    data = {
        "id": table.id,
        "tableIdentifier": table.table_identifier,
        "url": url,
        "createdAt": _iso(table.created_at),
    }
    if qr is not None:
        data["qrCode"] = qr
    return data
