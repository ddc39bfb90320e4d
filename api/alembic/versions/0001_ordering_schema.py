"""ordering schema

Revision ID: 0001_ordering_schema
Revises: None
Create Date: 2026-10-17
"""

from alembic import op
import sqlalchemy as sa


revision: str = "0001_ordering_schema"
down_revision: str | None = None
branch_labels: tuple[str, ...] | None = None
depends_on: tuple[str, ...] | None = None

order_status = sa.Enum(
    "NEW", "PREPARING", "READY", "COMPLETED", "CANCELLED", name="order_status"
)
customization_action = sa.Enum(
    "ADD", "REMOVE", "CHANGE", "CHOOSE", name="customization_action"
)


def _timestamps(*, updated: bool = False, deleted: bool = False) -> list[sa.Column]:
    cols = [sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now())]
    if updated:
        cols.append(
            sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now())
        )
    if deleted:
        cols.append(sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True))
    return cols


def upgrade() -> None:
    op.create_table(
        "tenants",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("code", sa.String(8), nullable=False, unique=True),
        sa.Column("name", sa.String(), nullable=False),
        *_timestamps(deleted=True),
    )
    op.create_table(
        "staff_credentials",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column(
            "tenant_id", sa.String(36), sa.ForeignKey("tenants.id"), nullable=False, unique=True
        ),
        sa.Column("staff_token", sa.String(24), nullable=False, unique=True),
        *_timestamps(updated=True),
    )
    op.create_table(
        "menu_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("item_code", sa.String(8), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("hidden", sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(updated=True, deleted=True),
        sa.UniqueConstraint("tenant_id", "item_code"),
    )
    op.create_index("ix_menu_items_tenant_id", "menu_items", ["tenant_id"])
    op.create_table(
        "item_customizations",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("item_id", sa.String(36), sa.ForeignKey("menu_items.id"), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("price", sa.Numeric(10, 2), nullable=False, server_default="0"),
        sa.Column("action", customization_action, nullable=False),
    )
    op.create_index("ix_item_customizations_item_id", "item_customizations", ["item_id"])
    op.create_table(
        "tables",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("table_identifier", sa.String(10), nullable=False),
        *_timestamps(deleted=True),
        sa.UniqueConstraint("tenant_id", "table_identifier"),
    )
    op.create_index("ix_tables_tenant_id", "tables", ["tenant_id"])
    op.create_table(
        "orders",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("tenant_id", sa.String(36), sa.ForeignKey("tenants.id"), nullable=False),
        sa.Column("table_id", sa.String(36), sa.ForeignKey("tables.id"), nullable=False),
        sa.Column("daily_sequence", sa.Integer(), nullable=False),
        sa.Column("sequence_date", sa.Date(), nullable=False),
        sa.Column("display_code", sa.String(), nullable=False),
        sa.Column("status", order_status, nullable=False),
        sa.Column("total", sa.Numeric(10, 2), nullable=False),
        sa.Column("customer_note", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("done_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "tenant_id",
            "sequence_date",
            "daily_sequence",
            name="uq_orders_tenant_day_sequence",
        ),
    )
    op.create_index("ix_orders_tenant_id", "orders", ["tenant_id"])
    op.create_index("ix_orders_status", "orders", ["status"])
    op.create_table(
        "order_items",
        sa.Column("id", sa.String(36), primary_key=True),
        sa.Column("order_id", sa.String(36), sa.ForeignKey("orders.id"), nullable=False),
        sa.Column("item_id", sa.String(36), sa.ForeignKey("menu_items.id"), nullable=False),
        sa.Column("position", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("customizations", sa.JSON(), nullable=False),
        sa.Column("subtotal", sa.Numeric(10, 2), nullable=False),
        sa.Column("item_name_snapshot", sa.String(), nullable=False),
        sa.Column("item_price_snapshot", sa.Numeric(10, 2), nullable=False),
    )
    op.create_index("ix_order_items_order_id", "order_items", ["order_id"])
    op.create_table(
        "audit_log",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("tenant_id", sa.String(36), nullable=True),
        sa.Column("actor_type", sa.String(), nullable=False),
        sa.Column("actor_id", sa.String(), nullable=False),
        sa.Column("action", sa.String(), nullable=False),
        sa.Column("entity_type", sa.String(), nullable=False),
        sa.Column("entity_id", sa.String(), nullable=True),
        sa.Column("details", sa.JSON(), nullable=True),
        sa.Column("ip_address", sa.String(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_audit_log_tenant_id", "audit_log", ["tenant_id"])


def downgrade() -> None:
    op.drop_table("audit_log")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("tables")
    op.drop_table("item_customizations")
    op.drop_table("menu_items")
    op.drop_table("staff_credentials")
    op.drop_table("tenants")
    order_status.drop(op.get_bind(), checkfirst=True)
    customization_action.drop(op.get_bind(), checkfirst=True)
