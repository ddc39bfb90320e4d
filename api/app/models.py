# models.py

"""Database models for the ordering schema.

Every tenant-owned row carries ``tenant_id`` and all queries are scoped on it.
Soft-deletable entities (tenants, menu items, tables) expose ``deleted_at``;
orders are never deleted.
"""

from __future__ import annotations

import enum
import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import declarative_base, relationship

from .domain import OrderStatus

Base = declarative_base()


def _uuid() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CustomizationAction(str, enum.Enum):
    """How a customization option combines with the base item."""

    ADD = "ADD"
    REMOVE = "REMOVE"
    CHANGE = "CHANGE"
    CHOOSE = "CHOOSE"


class Tenant(Base):
    """Restaurant account; the unit of data isolation."""

    __tablename__ = "tenants"

    id = Column(String(36), primary_key=True, default=_uuid)
    code = Column(String(8), nullable=False, unique=True)
    name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class StaffCredential(Base):
    """Tenant-bound staff access token, distinct from the owner login."""

    __tablename__ = "staff_credentials"

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, unique=True)
    staff_token = Column(String(24), nullable=False, unique=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )


class MenuItem(Base):
    """Sellable menu entry; ``hidden`` removes it from the customer menu."""

    __tablename__ = "menu_items"
    __table_args__ = (UniqueConstraint("tenant_id", "item_code"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    item_code = Column(String(8), nullable=False)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    description = Column(Text, nullable=True)
    category = Column(String, nullable=False)
    active = Column(Boolean, nullable=False, default=True)
    hidden = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True), default=_utcnow, server_default=func.now(), onupdate=_utcnow
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True)

    customizations = relationship(
        "ItemCustomization",
        back_populates="item",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ItemCustomization.name",
    )


class ItemCustomization(Base):
    """Option owned by a menu item with its price delta."""

    __tablename__ = "item_customizations"

    id = Column(String(36), primary_key=True, default=_uuid)
    item_id = Column(String(36), ForeignKey("menu_items.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    price = Column(Numeric(10, 2), nullable=False, default=0)
    action = Column(Enum(CustomizationAction, name="customization_action"), nullable=False)

    item = relationship("MenuItem", back_populates="customizations")


class Table(Base):
    """Durable QR identity of a dining table.

    ``id`` is embedded in printed QR codes, so a deleted table is restored in
    place instead of being recreated; this is also why a plain unique
    constraint on ``(tenant_id, table_identifier)`` is sufficient.
    """

    __tablename__ = "tables"
    __table_args__ = (UniqueConstraint("tenant_id", "table_identifier"),)

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    table_identifier = Column(String(10), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
    deleted_at = Column(DateTime(timezone=True), nullable=True)


class Order(Base):
    """Order placed from a table, numbered per tenant and calendar day."""

    __tablename__ = "orders"
    __table_args__ = (
        UniqueConstraint(
            "tenant_id",
            "sequence_date",
            "daily_sequence",
            name="uq_orders_tenant_day_sequence",
        ),
    )

    id = Column(String(36), primary_key=True, default=_uuid)
    tenant_id = Column(String(36), ForeignKey("tenants.id"), nullable=False, index=True)
    table_id = Column(String(36), ForeignKey("tables.id"), nullable=False)
    daily_sequence = Column(Integer, nullable=False)
    sequence_date = Column(Date, nullable=False)
    display_code = Column(String, nullable=False)
    status = Column(
        Enum(OrderStatus, name="order_status"),
        nullable=False,
        default=OrderStatus.NEW,
        index=True,
    )
    total = Column(Numeric(10, 2), nullable=False)
    customer_note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
    done_at = Column(DateTime(timezone=True), nullable=True)

    table = relationship("Table", lazy="selectin")
    items = relationship(
        "OrderItem",
        back_populates="order",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="OrderItem.position",
    )


class OrderItem(Base):
    """Order line with name and price snapshotted at order time."""

    __tablename__ = "order_items"

    id = Column(String(36), primary_key=True, default=_uuid)
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    item_id = Column(String(36), ForeignKey("menu_items.id"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    quantity = Column(Integer, nullable=False)
    customizations = Column(JSON, nullable=False, default=list)
    subtotal = Column(Numeric(10, 2), nullable=False)
    item_name_snapshot = Column(String, nullable=False)
    item_price_snapshot = Column(Numeric(10, 2), nullable=False)

    order = relationship("Order", back_populates="items")


class AuditLog(Base):
    """Best-effort record of state-changing actions."""

    __tablename__ = "audit_log"

    id = Column(Integer, primary_key=True, autoincrement=True)
    tenant_id = Column(String(36), nullable=True, index=True)
    actor_type = Column(String, nullable=False)
    actor_id = Column(String, nullable=False)
    action = Column(String, nullable=False)
    entity_type = Column(String, nullable=False)
    entity_id = Column(String, nullable=True)
    details = Column(JSON, nullable=True)
    ip_address = Column(String, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())


__all__ = [
    "Base",
    "CustomizationAction",
    "Tenant",
    "StaffCredential",
    "MenuItem",
    "ItemCustomization",
    "Table",
    "Order",
    "OrderItem",
    "AuditLog",
]
