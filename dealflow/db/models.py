"""SQLAlchemy database models for Dealflow Dashboard."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    Numeric,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class UserDB(Base):
    """Dashboard user."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    name: Mapped[str] = mapped_column(String(200), default="")
    email: Mapped[str | None] = mapped_column(String(200), nullable=True, unique=True)
    first_name: Mapped[str] = mapped_column(String(100), default="")
    last_name: Mapped[str] = mapped_column(String(100), default="")
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="va")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)


class SourcingItemDB(Base):
    """Sourcing lead submitted for review."""

    __tablename__ = "sourcing_items"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    asin: Mapped[str] = mapped_column(String(20), nullable=False, index=True)
    product_name: Mapped[str] = mapped_column(Text, nullable=False)
    brand: Mapped[str] = mapped_column(String(200), default="")
    category: Mapped[str] = mapped_column(String(100), default="")

    cost_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    sale_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    profit: Mapped[Decimal | None] = mapped_column(Numeric(10, 2), nullable=True)
    profit_margin: Mapped[Decimal | None] = mapped_column(Numeric(7, 1), nullable=True)
    roi: Mapped[Decimal | None] = mapped_column(Numeric(9, 1), nullable=True)

    notes: Mapped[str] = mapped_column(Text, default="")
    source_url: Mapped[str] = mapped_column(Text, default="")
    estimated_sales: Mapped[int | None] = mapped_column(Integer, nullable=True)
    sourcing_method: Mapped[str] = mapped_column(String(50), default="manual")

    status: Mapped[str] = mapped_column(String(20), nullable=False, default="submitted", index=True)
    submitted_by: Mapped[str] = mapped_column(
        String(64), ForeignKey("users.id"), nullable=False, index=True
    )
    reviewed_by: Mapped[str | None] = mapped_column(String(64), ForeignKey("users.id"), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    submitter: Mapped[UserDB] = relationship("UserDB", foreign_keys=[submitted_by])
    reviewer: Mapped[UserDB | None] = relationship("UserDB", foreign_keys=[reviewed_by])
    purchasing_plans: Mapped[list[PurchasingPlanDB]] = relationship(
        "PurchasingPlanDB", back_populates="sourcing"
    )

    __table_args__ = (Index("ix_sourcing_items_submitter_created", "submitted_by", "created_at"),)


class PurchasingPlanDB(Base):
    """Purchasing plan for a winner sourcing item."""

    __tablename__ = "purchasing_plans"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sourcing_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sourcing_items.id"), nullable=False, index=True
    )
    planned_quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    cost_per_unit: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    planned_budget: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    expected_revenue: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    expected_profit: Mapped[Decimal | None] = mapped_column(Numeric(12, 2), nullable=True)
    actual_spent: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    actual_revenue: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    actual_profit: Mapped[Decimal] = mapped_column(Numeric(12, 2), default=Decimal("0"))
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="planned", index=True)
    order_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    received_date: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    margin_warning: Mapped[bool] = mapped_column(Boolean, default=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)

    # Relationships
    sourcing: Mapped[SourcingItemDB] = relationship("SourcingItemDB", back_populates="purchasing_plans")


class ListingDB(Base):
    """Marketplace listing with its generated SKU."""

    __tablename__ = "listings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    sourcing_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("sourcing_items.id"), nullable=False, index=True
    )
    purchasing_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("purchasing_plans.id"), nullable=True
    )
    sku_code: Mapped[str] = mapped_column(String(40), nullable=False, unique=True)
    brand: Mapped[str] = mapped_column(String(200), nullable=False)
    buy_price: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    asin: Mapped[str] = mapped_column(String(20), nullable=False)
    generated_date: Mapped[str] = mapped_column(String(6), default="")

    amazon_sync_status: Mapped[str] = mapped_column(String(20), default="draft")
    prep_sync_status: Mapped[str] = mapped_column(String(20), default="draft")
    last_sync_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    csv_exported: Mapped[bool] = mapped_column(Boolean, default=False)
    csv_exported_at: Mapped[datetime | None] = mapped_column(DateTime, nullable=True)
    sync_errors: Mapped[str] = mapped_column(Text, default="")

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)


class ActivityLogDB(Base):
    """Append-only audit trail."""

    __tablename__ = "activity_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(64), ForeignKey("users.id"), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_type: Mapped[str] = mapped_column(String(50), nullable=False)
    entity_id: Mapped[str] = mapped_column(String(64), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, index=True)

    __table_args__ = (Index("ix_activity_log_entity", "entity_type", "entity_id"),)
