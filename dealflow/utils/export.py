"""Export functionality for Dealflow Dashboard."""

from __future__ import annotations

import csv
from datetime import datetime
from pathlib import Path
from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter

from dealflow.core.models import Listing, SourcingItem
from dealflow.core.pricing import format_margin


class Exporter:
    """Exports data to various formats."""

    @staticmethod
    def listings_to_dict(listings: list[Listing]) -> list[dict[str, Any]]:
        """Convert listings to dictionaries for export."""
        rows = []
        for listing in listings:
            rows.append({
                "SKU": listing.sku_code,
                "ASIN": listing.asin,
                "Brand": listing.brand,
                "Buy Price": float(listing.buy_price),
                "Generated": listing.generated_date,
                "Amazon Status": listing.amazon_sync_status.value,
                "Prep Status": listing.prep_sync_status.value,
                "Last Sync": listing.last_sync_at.isoformat() if listing.last_sync_at else "",
                "Sync Errors": listing.sync_errors,
                "Created At": listing.created_at.isoformat() if listing.created_at else "",
            })
        return rows

    @staticmethod
    def sourcing_items_to_dict(items: list[SourcingItem]) -> list[dict[str, Any]]:
        """Convert sourcing items to dictionaries for export."""
        rows = []
        for item in items:
            rows.append({
                "ID": item.id,
                "ASIN": item.asin,
                "Product": item.product_name,
                "Brand": item.brand,
                "Category": item.category,
                "Cost Price": float(item.cost_price),
                "Sale Price": float(item.sale_price),
                "Profit": float(item.profit) if item.profit is not None else "",
                "Margin %": format_margin(item.profit_margin),
                "ROI %": format_margin(item.roi),
                "Status": item.status.value,
                "Submitted By": item.submitter_name or item.submitted_by,
                "Reviewed By": item.reviewer_name or item.reviewed_by or "",
                "Review Notes": item.review_notes or "",
                "Source": item.sourcing_method.value,
                "Created At": item.created_at.isoformat() if item.created_at else "",
            })
        return rows

    @staticmethod
    def write_csv(rows: list[dict[str, Any]], file_path: str | Path) -> None:
        """Write row dictionaries to CSV."""
        if not rows:
            return

        path = Path(file_path)
        with open(path, "w", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=rows[0].keys())
            writer.writeheader()
            writer.writerows(rows)

    @staticmethod
    def write_xlsx(rows: list[dict[str, Any]], file_path: str | Path, sheet_name: str) -> None:
        """Write row dictionaries to Excel."""
        if not rows:
            return

        df = pd.DataFrame(rows)

        path = Path(file_path)
        with pd.ExcelWriter(path, engine="openpyxl") as writer:
            df.to_excel(writer, index=False, sheet_name=sheet_name)

            # Auto-adjust column widths
            worksheet = writer.sheets[sheet_name]
            for i, col in enumerate(df.columns, start=1):
                max_length = max(df[col].astype(str).apply(len).max(), len(col))
                worksheet.column_dimensions[get_column_letter(i)].width = min(max_length + 2, 50)

    @classmethod
    def export_listings_to_csv(cls, listings: list[Listing], file_path: str | Path) -> None:
        cls.write_csv(cls.listings_to_dict(listings), file_path)

    @classmethod
    def export_listings_to_xlsx(cls, listings: list[Listing], file_path: str | Path) -> None:
        cls.write_xlsx(cls.listings_to_dict(listings), file_path, "Listings")

    @classmethod
    def export_sourcing_to_csv(cls, items: list[SourcingItem], file_path: str | Path) -> None:
        cls.write_csv(cls.sourcing_items_to_dict(items), file_path)

    @classmethod
    def export_sourcing_to_xlsx(cls, items: list[SourcingItem], file_path: str | Path) -> None:
        cls.write_xlsx(cls.sourcing_items_to_dict(items), file_path, "Sourcing")

    @classmethod
    def generate_filename(cls, prefix: str, extension: str) -> str:
        """Generate a timestamped filename for export."""
        timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
        return f"{prefix.lower()}_{timestamp}.{extension}"
