"""Initial schema

Revision ID: 001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # Users table
    op.create_table(
        "users",
        sa.Column("id", sa.String(64), nullable=False),
        sa.Column("name", sa.String(200), default=""),
        sa.Column("email", sa.String(200), nullable=True),
        sa.Column("first_name", sa.String(100), default=""),
        sa.Column("last_name", sa.String(100), default=""),
        sa.Column("role", sa.String(20), nullable=False, default="va"),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    # Sourcing items table
    op.create_table(
        "sourcing_items",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("asin", sa.String(20), nullable=False),
        sa.Column("product_name", sa.Text(), nullable=False),
        sa.Column("brand", sa.String(200), default=""),
        sa.Column("category", sa.String(100), default=""),
        sa.Column("cost_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("sale_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("profit", sa.Numeric(10, 2), nullable=True),
        sa.Column("profit_margin", sa.Numeric(7, 1), nullable=True),
        sa.Column("roi", sa.Numeric(9, 1), nullable=True),
        sa.Column("notes", sa.Text(), default=""),
        sa.Column("source_url", sa.Text(), default=""),
        sa.Column("estimated_sales", sa.Integer(), nullable=True),
        sa.Column("sourcing_method", sa.String(50), default="manual"),
        sa.Column("status", sa.String(20), nullable=False, default="submitted"),
        sa.Column("submitted_by", sa.String(64), nullable=False),
        sa.Column("reviewed_by", sa.String(64), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(), nullable=True),
        sa.Column("review_notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["submitted_by"], ["users.id"]),
        sa.ForeignKeyConstraint(["reviewed_by"], ["users.id"]),
    )
    op.create_index("ix_sourcing_items_asin", "sourcing_items", ["asin"])
    op.create_index("ix_sourcing_items_status", "sourcing_items", ["status"])
    op.create_index("ix_sourcing_items_submitted_by", "sourcing_items", ["submitted_by"])
    op.create_index("ix_sourcing_items_created_at", "sourcing_items", ["created_at"])
    op.create_index(
        "ix_sourcing_items_submitter_created", "sourcing_items", ["submitted_by", "created_at"]
    )

    # Purchasing plans table
    op.create_table(
        "purchasing_plans",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sourcing_id", sa.Integer(), nullable=False),
        sa.Column("planned_quantity", sa.Integer(), nullable=False),
        sa.Column("cost_per_unit", sa.Numeric(10, 2), nullable=False),
        sa.Column("planned_budget", sa.Numeric(12, 2), nullable=False),
        sa.Column("expected_revenue", sa.Numeric(12, 2), nullable=True),
        sa.Column("expected_profit", sa.Numeric(12, 2), nullable=True),
        sa.Column("actual_spent", sa.Numeric(12, 2), default=0),
        sa.Column("actual_revenue", sa.Numeric(12, 2), default=0),
        sa.Column("actual_profit", sa.Numeric(12, 2), default=0),
        sa.Column("status", sa.String(20), nullable=False, default="planned"),
        sa.Column("order_date", sa.DateTime(), nullable=True),
        sa.Column("received_date", sa.DateTime(), nullable=True),
        sa.Column("margin_warning", sa.Boolean(), default=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["sourcing_id"], ["sourcing_items.id"]),
    )
    op.create_index("ix_purchasing_plans_sourcing_id", "purchasing_plans", ["sourcing_id"])
    op.create_index("ix_purchasing_plans_status", "purchasing_plans", ["status"])
    op.create_index("ix_purchasing_plans_created_at", "purchasing_plans", ["created_at"])

    # Listings table
    op.create_table(
        "listings",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("sourcing_id", sa.Integer(), nullable=False),
        sa.Column("purchasing_id", sa.Integer(), nullable=True),
        sa.Column("sku_code", sa.String(40), nullable=False),
        sa.Column("brand", sa.String(200), nullable=False),
        sa.Column("buy_price", sa.Numeric(10, 2), nullable=False),
        sa.Column("asin", sa.String(20), nullable=False),
        sa.Column("generated_date", sa.String(6), default=""),
        sa.Column("amazon_sync_status", sa.String(20), default="draft"),
        sa.Column("prep_sync_status", sa.String(20), default="draft"),
        sa.Column("last_sync_at", sa.DateTime(), nullable=True),
        sa.Column("csv_exported", sa.Boolean(), default=False),
        sa.Column("csv_exported_at", sa.DateTime(), nullable=True),
        sa.Column("sync_errors", sa.Text(), default=""),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["sourcing_id"], ["sourcing_items.id"]),
        sa.ForeignKeyConstraint(["purchasing_id"], ["purchasing_plans.id"]),
        sa.UniqueConstraint("sku_code"),
    )
    op.create_index("ix_listings_sourcing_id", "listings", ["sourcing_id"])
    op.create_index("ix_listings_created_at", "listings", ["created_at"])

    # Activity log table
    op.create_table(
        "activity_log",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("user_id", sa.String(64), nullable=False),
        sa.Column("action", sa.String(50), nullable=False),
        sa.Column("entity_type", sa.String(50), nullable=False),
        sa.Column("entity_id", sa.String(64), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["user_id"], ["users.id"]),
    )
    op.create_index("ix_activity_log_user_id", "activity_log", ["user_id"])
    op.create_index("ix_activity_log_created_at", "activity_log", ["created_at"])
    op.create_index("ix_activity_log_entity", "activity_log", ["entity_type", "entity_id"])


def downgrade() -> None:
    op.drop_table("activity_log")
    op.drop_table("listings")
    op.drop_table("purchasing_plans")
    op.drop_table("sourcing_items")
    op.drop_table("users")
