"""Initial schema.

Revision ID: 001_initial_schema
Revises:
Create Date: 2026-10-16

"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

revision: str = "001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    """Create all initial tables."""
    # --- materials ---
    op.create_table(
        "materials",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("name", sa.String(200), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("cost_per_unit", sa.Float(), server_default="0", nullable=False),
        sa.Column("unit", sa.String(20), server_default="pcs", nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # --- collections ---
    op.create_table(
        "collections",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(100), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("name"),
    )

    # --- products ---
    op.create_table(
        "products",
        sa.Column("sku", sa.String(50), nullable=False),
        sa.Column("category", sa.String(100), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("gender", sa.String(10), nullable=True),
        sa.Column("production_type", sa.String(10), server_default="InHouse", nullable=False),
        sa.Column("weight_g", sa.Float(), server_default="0", nullable=False, comment="Metal weight per piece in grams"),
        sa.Column("image_url", sa.String(500), nullable=True),
        sa.Column("is_component", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("recipe", postgresql.JSONB(), server_default="[]", nullable=False, comment="Bill of materials: raw material and component references"),
        sa.Column("collections", postgresql.JSONB(), server_default="[]", nullable=False, comment="Collection ids, first is primary"),
        sa.Column("variants", postgresql.JSONB(), server_default="[]", nullable=False, comment="Finish/stone variants by suffix"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("sku"),
    )

    # --- orders ---
    op.create_table(
        "orders",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("customer_name", sa.String(200), nullable=False),
        sa.Column("status", sa.String(20), server_default="Pending", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )

    # --- order_items ---
    op.create_table(
        "order_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("order_id", sa.String(32), nullable=False),
        sa.Column("sku", sa.String(50), nullable=False),
        sa.Column("variant_suffix", sa.String(20), nullable=True),
        sa.Column("size_info", sa.String(50), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )

    # --- production_batches ---
    op.create_table(
        "production_batches",
        sa.Column("id", sa.String(32), nullable=False),
        sa.Column("sku", sa.String(50), nullable=False),
        sa.Column("variant_suffix", sa.String(20), nullable=True),
        sa.Column("size_info", sa.String(50), nullable=True),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("current_stage", sa.String(20), nullable=False),
        sa.Column("order_id", sa.String(32), nullable=True),
        sa.Column("type", sa.String(20), server_default="New", nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("on_hold", sa.Boolean(), server_default="false", nullable=False),
        sa.Column("on_hold_reason", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False, comment="Stage clock; reset on every stage transition"),
        sa.CheckConstraint("quantity >= 1", name="ck_production_batches_quantity_positive"),
        sa.ForeignKeyConstraint(["order_id"], ["orders.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_production_batches_sku", "production_batches", ["sku"])
    op.create_index("ix_production_batches_current_stage", "production_batches", ["current_stage"])
    op.create_index("ix_production_batches_order_id", "production_batches", ["order_id"])


def downgrade() -> None:
    """Drop all tables in reverse order."""
    op.drop_index("ix_production_batches_order_id", table_name="production_batches")
    op.drop_index("ix_production_batches_current_stage", table_name="production_batches")
    op.drop_index("ix_production_batches_sku", table_name="production_batches")
    op.drop_table("production_batches")
    op.drop_table("order_items")
    op.drop_table("orders")
    op.drop_table("products")
    op.drop_table("collections")
    op.drop_table("materials")
