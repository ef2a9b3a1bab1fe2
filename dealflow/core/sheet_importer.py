"""Google Sheets sourcing import: row normalization and item creation."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any

from sqlalchemy.exc import SQLAlchemyError

from .activity import ActivityLogger
from .errors import DealflowError
from .lifecycle import LifecycleService
from .models import (
    ActivityAction,
    ActorContext,
    EntityType,
    ImportResult,
    SourcingMethod,
)
from .permissions import Action, require
from .schemas import DealSubmission, parse_payload

logger = logging.getLogger(__name__)

_CURRENCY_CHARS = re.compile(r"[€$£¥₹\s]")
_LEADING_NUMBER = re.compile(r"^[-+]?\d*\.?\d+")


def _leading_decimal(text: str) -> Decimal | None:
    """Parse the numeric prefix of ``text``, like a lenient float parser."""
    match = _LEADING_NUMBER.match(text)
    if not match:
        return None
    try:
        return Decimal(match.group(0))
    except InvalidOperation:
        return None


def parse_money_smart(value: Any) -> Decimal:
    """Parse a sheet money cell, accepting comma or dot decimals.

    When both separators appear the last one is the decimal point, so
    "1.234,56" and "1,234.56" both give 1234.56. Returns 0 when nothing
    numeric is found.
    """
    if value is None:
        return Decimal("0")
    text = _CURRENCY_CHARS.sub("", str(value))
    if not text:
        return Decimal("0")

    if "," in text and "." in text:
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif text.count(",") > 1:
        text = text.replace(",", "")
    else:
        text = text.replace(",", ".")

    result = _leading_decimal(text)
    return result if result is not None else Decimal("0")


def parse_percent_maybe(value: Any) -> Decimal | None:
    """Parse "12,5 %" style cells; None when there is no number."""
    if value is None:
        return None
    text = re.sub(r"[%\s]", "", str(value)).replace(",", ".")
    if not text:
        return None
    return _leading_decimal(text)


def parse_numeric_value(value: Any) -> Decimal | None:
    """Parse counts such as "> 29" or "1.200"; None when there is no number."""
    if value is None:
        return None
    text = re.sub(r"[^\d,-]", "", str(value).strip())
    if not text:
        return None
    return _leading_decimal(text.replace(",", ".", 1))


# Canonical field -> accepted column headers, in order of preference
HEADER_ALIASES: dict[str, tuple[str, ...]] = {
    "date": ("Export Date (UTC yyyy-mm-dd)", "Export Date", "Date", "Datum"),
    "asin": ("ASIN",),
    "product_name": ("Product Name", "Title", "Name"),
    "brand": ("Brand", "Marke"),
    "category": ("Category", "Kategorie"),
    "quantity": ("Quantity", "Menge"),
    "source_url": ("Source URL", "Source"),
    "tags": ("Tags",),
    "notes": ("All Notes", "Notes"),
    "cost_price": ("Cost Price", "Buy Price", "Cost"),
    "sale_price": (
        "Sale Price",
        "Sell Price",
        "Buy Box (Current)",
        "Buy Box (Average Last 90 Days)",
    ),
    "marketplace": ("Sales Marketplace", "Marketplace"),
    "estimated_sales": ("Estimated Sales",),
}


def _header_key(header: Any) -> str:
    return " ".join(str(header or "").split()).lower()


def rows_from_values(headers: list[str], values: list[list[Any]]) -> list[dict[str, str]]:
    """Zip sheet value rows with the header row; short rows are padded with ""."""
    rows = []
    for values_row in values:
        rows.append(
            {
                header: str(values_row[i]) if i < len(values_row) and values_row[i] is not None else ""
                for i, header in enumerate(headers)
            }
        )
    return rows


@dataclass
class SheetRow:
    """A normalized sheet row."""

    row_number: int
    asin: str = ""
    product_name: str = ""
    brand: str = ""
    category: str = ""
    cost_price: Decimal = Decimal("0")
    sale_price: Decimal = Decimal("0")
    source_url: str = ""
    notes: str = ""
    estimated_sales: int | None = None
    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    def to_submission(self) -> DealSubmission:
        """Validate the row as a deal submission.

        Raises:
            ValidationError: The row does not make a valid submission.
        """
        return parse_payload(
            DealSubmission,
            {
                "asin": self.asin,
                "product_name": self.product_name,
                "brand": self.brand,
                "category": self.category,
                "buy_price": self.cost_price,
                "sell_price": self.sale_price,
                "source_url": self.source_url,
                "notes": self.notes,
                "estimated_sales": self.estimated_sales,
            },
        )


class SheetRowNormalizer:
    """Maps raw sheet rows (header -> cell text) onto sourcing fields."""

    def __init__(self, aliases: dict[str, tuple[str, ...]] | None = None) -> None:
        self.aliases = aliases or HEADER_ALIASES

    def pick(self, raw: dict[str, Any], field_name: str) -> str:
        """Value of the first alias present in the row, matched case-insensitively."""
        keyed = {_header_key(k): v for k, v in raw.items()}
        for alias in self.aliases.get(field_name, ()):
            value = keyed.get(_header_key(alias))
            if value is not None and str(value).strip():
                return str(value).strip()
        return ""

    def normalize(self, raw: dict[str, Any], row_number: int) -> SheetRow | None:
        """Normalize one row. Returns None for rows with nothing to import."""
        asin = self.pick(raw, "asin").upper()
        source_url = self.pick(raw, "source_url")
        cost_text = self.pick(raw, "cost_price")
        sale_text = self.pick(raw, "sale_price")

        if not any((asin, source_url, cost_text, sale_text)):
            return None

        row = SheetRow(row_number=row_number, asin=asin, source_url=source_url)
        if not asin:
            row.errors.append(f"Row {row_number}: ASIN is required")
            return row

        row.cost_price = parse_money_smart(cost_text)
        row.sale_price = parse_money_smart(sale_text)
        if cost_text and row.cost_price == 0:
            row.warnings.append(f"Row {row_number}: Invalid cost price '{cost_text}', using 0")
        if sale_text and row.sale_price == 0:
            row.warnings.append(f"Row {row_number}: Invalid sale price '{sale_text}', using 0")

        row.product_name = self.pick(raw, "product_name") or f"Product {asin}"
        row.brand = self.pick(raw, "brand")
        row.category = self.pick(raw, "category")

        sales = parse_numeric_value(self.pick(raw, "estimated_sales"))
        row.estimated_sales = int(sales) if sales is not None else None

        quantity = self.pick(raw, "quantity")
        tags = self.pick(raw, "tags")
        marketplace = self.pick(raw, "marketplace")
        note_parts = [
            self.pick(raw, "notes"),
            f"Quantity: {quantity}" if quantity else "",
            f"Tags: {tags}" if tags else "",
            f"Marketplace: {marketplace}" if marketplace else "",
        ]
        row.notes = " | ".join(part for part in note_parts if part)
        return row


class SheetImporter:
    """Imports normalized sheet rows as submitted sourcing items."""

    def __init__(
        self,
        lifecycle: LifecycleService,
        normalizer: SheetRowNormalizer | None = None,
        activity: ActivityLogger | None = None,
    ) -> None:
        self.lifecycle = lifecycle
        self.repository = lifecycle.repository
        self.normalizer = normalizer or SheetRowNormalizer()
        self.activity = activity or lifecycle.activity

    def import_rows(self, actor: ActorContext, rows: list[dict[str, Any]]) -> ImportResult:
        """Create a sourcing item for every new ASIN in ``rows``.

        Row numbers in messages count the header row as row 1.
        """
        require(actor, Action.IMPORT_SHEET)
        result = ImportResult()
        seen: set[str] = set()

        for row_number, raw in enumerate(rows, start=2):
            row = self.normalizer.normalize(raw, row_number)
            if row is None:
                continue

            result.total_rows += 1
            result.warnings.extend(row.warnings)

            if row.errors:
                for error in row.errors:
                    logger.warning(error)
                result.errors.extend(row.errors)
                result.items_skipped += 1
                continue

            if row.asin in seen or self.repository.get_sourcing_by_asin(row.asin) is not None:
                logger.warning(f"Row {row_number}: Skipping duplicate ASIN {row.asin}")
                result.skipped_duplicates += 1
                result.items_skipped += 1
                continue
            seen.add(row.asin)

            try:
                item = self.lifecycle.create_item(
                    actor, row.to_submission(), sourcing_method=SourcingMethod.GOOGLE_SHEETS
                )
            except (DealflowError, SQLAlchemyError) as e:
                message = e.message if isinstance(e, DealflowError) else str(e)
                logger.warning(f"Row {row_number}: Could not import {row.asin}: {message}")
                result.errors.append(f"Row {row_number}: {message}")
                result.items_skipped += 1
                continue

            result.items_imported += 1
            result.imported_ids.append(item.id)

        self.activity.record(
            actor,
            ActivityAction.SHEET_IMPORT,
            EntityType.SOURCING,
            "bulk_import",
            f"Google Sheets import: {result.items_imported} of {result.total_rows} rows imported",
        )
        result.success = True

        logger.info(
            f"Sheet import finished: {result.items_imported} imported, "
            f"{result.skipped_duplicates} duplicates, {len(result.errors)} errors"
        )
        return result

    def import_sheet(self, actor: ActorContext, client) -> ImportResult:
        """Read the sourcing range through ``client`` and import it."""
        require(actor, Action.IMPORT_SHEET)
        headers, values = client.read_sourcing_sheet()
        return self.import_rows(actor, rows_from_values(headers, values))
