"""Validation models for incoming payloads."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, TypeVar

import pydantic
from pydantic import BaseModel, ConfigDict, Field, field_validator

from .errors import ValidationError
from .models import ListingStatus, PurchaseStatus, SourcingStatus
from .pricing import coerce_decimal

ModelT = TypeVar("ModelT", bound=BaseModel)

# Largest values the Numeric(10, 2) and Numeric(12, 2) columns hold
MAX_PRICE = Decimal("99999999.99")
MAX_BUDGET = Decimal("9999999999.99")
MAX_QUANTITY = 1_000_000


def _strip(value: Any) -> Any:
    return value.strip() if isinstance(value, str) else value


class DealSubmission(BaseModel):
    """A new sourcing item as submitted by a user.

    Malformed prices are coerced to 0 and leave the margin undefined; only
    prices too large to store are rejected.
    """

    model_config = ConfigDict(extra="ignore")

    asin: str = Field(min_length=1, max_length=20)
    product_name: str = Field(min_length=1)
    buy_price: Decimal = Field(default=Decimal("0"), le=MAX_PRICE)
    sell_price: Decimal = Field(default=Decimal("0"), le=MAX_PRICE)
    brand: str = ""
    category: str = ""
    notes: str = ""
    source_url: str = ""
    estimated_sales: int | None = None

    @field_validator("asin", "product_name", "brand", "category", "notes", "source_url", mode="before")
    @classmethod
    def strip_text(cls, value: Any) -> Any:
        if value is None:
            return ""
        return _strip(value)

    @field_validator("asin")
    @classmethod
    def upper_asin(cls, value: str) -> str:
        return value.upper()

    @field_validator("buy_price", "sell_price", mode="before")
    @classmethod
    def coerce_price(cls, value: Any) -> Decimal:
        return coerce_decimal(value)

    @field_validator("estimated_sales", mode="before")
    @classmethod
    def coerce_sales(cls, value: Any) -> int | None:
        if value in (None, ""):
            return None
        try:
            return int(value)
        except (TypeError, ValueError):
            return None


class StatusTransition(BaseModel):
    """Target status and optional notes for a review decision."""

    status: SourcingStatus
    review_notes: str | None = None

    @field_validator("status", mode="before")
    @classmethod
    def parse_status(cls, value: Any) -> Any:
        return _strip(value).lower() if isinstance(value, str) else value


class PlanCreate(BaseModel):
    """A new purchasing plan."""

    sourcing_id: int
    planned_quantity: int = Field(ge=1, le=MAX_QUANTITY)
    cost_per_unit: Decimal = Field(ge=0, le=MAX_PRICE)
    planned_budget: Decimal = Field(ge=0, le=MAX_BUDGET)


class PlanUpdate(BaseModel):
    """Mutable fields of a purchasing plan."""

    model_config = ConfigDict(extra="forbid")

    status: PurchaseStatus | None = None
    actual_spent: Decimal | None = Field(default=None, ge=0)
    actual_revenue: Decimal | None = Field(default=None, ge=0)
    actual_profit: Decimal | None = None
    order_date: datetime | None = None
    received_date: datetime | None = None


class ListingCreate(BaseModel):
    """A new listing for a sourcing item."""

    sourcing_id: int
    purchasing_id: int | None = None


class SyncStatusUpdate(BaseModel):
    """Per-marketplace sync status change."""

    amazon_status: ListingStatus | None = None
    prep_status: ListingStatus | None = None
    sync_errors: str | None = None


def parse_payload(model: type[ModelT], data: Any) -> ModelT:
    """Validate a payload, raising the domain ValidationError on failure."""
    if data is None:
        data = {}
    try:
        return model.model_validate(data)
    except pydantic.ValidationError as e:
        fields = [".".join(str(part) for part in err["loc"]) for err in e.errors()]
        messages = "; ".join(
            f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"Invalid {model.__name__}: {messages}", fields=fields) from e
