"""Tests for CSV and Excel export."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

import pandas as pd
from openpyxl import load_workbook

from dealflow.core.models import Listing, ListingStatus, SourcingItem, SourcingStatus
from dealflow.utils.export import Exporter


def _listing(**kwargs) -> Listing:
    defaults = dict(
        id=1,
        sourcing_id=1,
        sku_code="ACME_10.00_261014_B000000001",
        brand="Acme",
        buy_price=Decimal("10.00"),
        asin="B000000001",
        generated_date="261014",
        created_at=datetime(2026, 10, 14, 12, 0),
    )
    defaults.update(kwargs)
    return Listing(**defaults)


class TestExporter:
    """Tests for Exporter."""

    def test_listings_to_dict(self):
        (row,) = Exporter.listings_to_dict([_listing(amazon_sync_status=ListingStatus.LIVE)])
        assert row["SKU"] == "ACME_10.00_261014_B000000001"
        assert row["Buy Price"] == 10.0
        assert row["Amazon Status"] == "live"
        assert row["Last Sync"] == ""

    def test_sourcing_to_dict_blank_margin(self):
        item = SourcingItem(
            id=3,
            asin="B000000003",
            product_name="Lamp",
            status=SourcingStatus.REVIEWING,
            submitted_by="va-1",
            submitter_name="Victor Assistant",
        )
        (row,) = Exporter.sourcing_items_to_dict([item])
        assert row["Margin %"] == ""
        assert row["Profit"] == ""
        assert row["Submitted By"] == "Victor Assistant"

    def test_csv(self, tmp_path):
        path = tmp_path / "sourcing.csv"
        items = [
            SourcingItem(id=1, asin="B000000001", product_name="Mug", profit_margin=Decimal("50.0")),
            SourcingItem(id=2, asin="B000000002", product_name="Jar"),
        ]
        Exporter.export_sourcing_to_csv(items, path)

        df = pd.read_csv(path, dtype=str, keep_default_na=False)
        assert list(df["ASIN"]) == ["B000000001", "B000000002"]
        assert list(df["Margin %"]) == ["50.0", ""]

    def test_xlsx_column_widths(self, tmp_path):
        path = tmp_path / "listings.xlsx"
        Exporter.export_listings_to_xlsx([_listing()], path)

        sheet = load_workbook(path)["Listings"]
        assert sheet["A1"].value == "SKU"
        assert sheet.column_dimensions["A"].width == len("ACME_10.00_261014_B000000001") + 2

    def test_empty_export_writes_nothing(self, tmp_path):
        path = tmp_path / "empty.csv"
        Exporter.export_listings_to_csv([], path)
        assert not path.exists()

    def test_generate_filename(self):
        name = Exporter.generate_filename("Listings", "csv")
        assert name.startswith("listings_")
        assert name.endswith(".csv")
