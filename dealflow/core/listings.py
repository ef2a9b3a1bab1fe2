"""Listing creation, SKU generation and marketplace sync tracking."""

from __future__ import annotations

import logging
import re
from collections.abc import Callable
from datetime import date, datetime
from pathlib import Path
from typing import Any

from sqlalchemy.exc import IntegrityError

from .activity import ActivityLogger
from .config import Settings
from .errors import ConflictError, NotFoundError, ValidationError
from .models import (
    ActivityAction,
    ActorContext,
    EntityType,
    Listing,
    ListingStatus,
)
from .listing_payloads import build_listing_payload, supported_categories
from .permissions import Action, require
from .pricing import coerce_decimal, round_cents
from .schemas import ListingCreate, SyncStatusUpdate, parse_payload

logger = logging.getLogger(__name__)

_NON_ALNUM = re.compile(r"[^A-Za-z0-9]")


def generate_sku(
    brand: str,
    buy_price: Any,
    asin: str,
    on: date,
    max_length: int = 40,
    unknown_brand: str = "UNKNOWN",
) -> str:
    """Build ``BRAND_PRICE_YYMMDD_ASIN``.

    The brand is reduced to upper-case letters and digits and cut short so
    the whole code fits in ``max_length``.
    """
    price = f"{round_cents(coerce_decimal(buy_price)):.2f}"
    date_str = on.strftime("%y%m%d")
    asin = asin.strip().upper()

    clean_brand = _NON_ALNUM.sub("", brand or "").upper() or unknown_brand
    max_brand = max_length - (len(price) + len(date_str) + len(asin) + 3)
    if max_brand < 1:
        raise ValidationError(f"Cannot fit a SKU for {asin} into {max_length} characters")

    return f"{clean_brand[:max_brand]}_{price}_{date_str}_{asin}"


class ListingService:
    """Creates listings and tracks their Amazon and PrepMyBusiness sync state."""

    def __init__(
        self,
        repository,
        settings: Settings,
        activity: ActivityLogger | None = None,
        now: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.repository = repository
        self.settings = settings
        self.activity = activity or ActivityLogger(repository, now=now)
        self._now = now

    def create_listing(self, actor: ActorContext, data: ListingCreate | dict[str, Any]) -> Listing:
        """Create a draft listing for a sourcing item with a freshly generated SKU."""
        require(actor, Action.MANAGE_LISTINGS)
        request = data if isinstance(data, ListingCreate) else parse_payload(ListingCreate, data)

        item = self.repository.get_sourcing_item(request.sourcing_id)
        if item is None:
            raise NotFoundError("Sourcing item", request.sourcing_id)

        if request.purchasing_id is not None:
            plan = self.repository.get_purchasing_plan(request.purchasing_id)
            if plan is None:
                raise NotFoundError("Purchasing plan", request.purchasing_id)
            if plan.sourcing_id != item.id:
                raise ValidationError(
                    f"Purchasing plan {plan.id} belongs to sourcing item {plan.sourcing_id}",
                    fields=["purchasing_id"],
                )

        today = self._now().date()
        config = self.settings.listings
        sku = generate_sku(
            item.brand,
            item.cost_price,
            item.asin,
            today,
            max_length=config.sku_max_length,
            unknown_brand=config.unknown_brand,
        )
        if self.repository.sku_exists(sku):
            raise ConflictError(f"SKU {sku} already exists", {"sku_code": sku})

        listing = Listing(
            sourcing_id=item.id,
            purchasing_id=request.purchasing_id,
            sku_code=sku,
            brand=item.brand or config.unknown_brand,
            buy_price=item.cost_price,
            asin=item.asin,
            generated_date=today.strftime("%y%m%d"),
        )
        entry = self.activity.build(
            actor, ActivityAction.LISTING_CREATED, EntityType.LISTING, None, f"Listing {sku} created"
        )
        try:
            saved = self.repository.create_listing(listing, entry)
        except IntegrityError as e:
            raise ConflictError(f"SKU {sku} already exists", {"sku_code": sku}) from e

        logger.info(f"Listing {saved.id} created with SKU {sku}")
        return saved

    def update_sync_status(
        self, actor: ActorContext, listing_id: int, data: SyncStatusUpdate | dict[str, Any]
    ) -> Listing:
        """Record a marketplace sync result."""
        require(actor, Action.MANAGE_LISTINGS)
        request = (
            data if isinstance(data, SyncStatusUpdate) else parse_payload(SyncStatusUpdate, data)
        )

        values: dict[str, Any] = {}
        if request.amazon_status is not None:
            values["amazon_sync_status"] = request.amazon_status
        if request.prep_status is not None:
            values["prep_sync_status"] = request.prep_status
        if values:
            values["last_sync_at"] = self._now()
        if request.sync_errors is not None:
            values["sync_errors"] = request.sync_errors
        if not values:
            raise ValidationError("No sync status given", fields=["amazon_status", "prep_status"])

        changes = ", ".join(
            f"{name}={values[key].value}"
            for name, key in (("amazon", "amazon_sync_status"), ("prep", "prep_sync_status"))
            if key in values
        )
        entry = self.activity.build(
            actor,
            ActivityAction.LISTING_SYNC_UPDATED,
            EntityType.LISTING,
            listing_id,
            f"Listing sync updated: {changes or 'errors recorded'}",
        )
        listing = self.repository.update_listing(listing_id, values, entry)
        if listing is None:
            raise NotFoundError("Listing", listing_id)

        if ListingStatus.ERROR in (request.amazon_status, request.prep_status):
            logger.warning(f"Listing {listing_id} sync error: {request.sync_errors or 'no details'}")
        return listing

    def list_listings(
        self,
        actor: ActorContext,
        amazon_status: ListingStatus | str | None = None,
        limit: int | None = 50,
    ) -> list[Listing]:
        """Listings newest first."""
        require(actor, Action.VIEW_DASHBOARD)
        if isinstance(amazon_status, str):
            try:
                amazon_status = ListingStatus(amazon_status.strip().lower())
            except ValueError as e:
                raise ValidationError(
                    f"Unknown listing status: {amazon_status}", fields=["status"]
                ) from e
        return self.repository.list_listings(amazon_status=amazon_status, limit=limit)

    def build_payload(
        self,
        actor: ActorContext,
        listing_id: int,
        category: str | None = None,
        overrides: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Marketplace submission for a listing.

        Without an explicit category the sourcing item's category is used when
        it is a supported product type, else the configured default.
        """
        require(actor, Action.MANAGE_LISTINGS)
        listing = self.repository.get_listing(listing_id)
        if listing is None:
            raise NotFoundError("Listing", listing_id)
        item = self.repository.get_sourcing_item(listing.sourcing_id)
        if item is None:
            raise NotFoundError("Sourcing item", listing.sourcing_id)

        if not category:
            item_category = item.category.strip().upper()
            category = (
                item_category
                if item_category in supported_categories()
                else self.settings.listings.default_category
            )

        product: dict[str, Any] = {
            "sku": listing.sku_code,
            "product_name": item.product_name,
            "brand": listing.brand,
            "price": item.sale_price,
            "suggested_asin": listing.asin,
            "currency": self.settings.budget.currency,
        }
        product.update(overrides or {})
        return build_listing_payload(category, product)

    def export_csv(self, actor: ActorContext, file_path: str | Path) -> int:
        """Write all listings to CSV or XLSX (by file suffix) and flag them exported.

        Returns the number of listings written.
        """
        from dealflow.utils.export import Exporter

        require(actor, Action.MANAGE_LISTINGS)
        path = Path(file_path)
        listings = self.repository.list_listings(limit=None)
        if not listings:
            logger.info("No listings to export")
            return 0

        if path.suffix.lower() == ".xlsx":
            Exporter.export_listings_to_xlsx(listings, path)
        else:
            Exporter.export_listings_to_csv(listings, path)

        entry = self.activity.build(
            actor,
            ActivityAction.LISTINGS_EXPORTED,
            EntityType.LISTING,
            "export",
            f"{len(listings)} listings exported to {path.name}",
        )
        self.repository.mark_listings_exported([listing.id for listing in listings], self._now(), entry)
        logger.info(f"Exported {len(listings)} listings to {path}")
        return len(listings)
