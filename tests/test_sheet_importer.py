"""Tests for Google Sheets row normalization and import."""

from __future__ import annotations

from decimal import Decimal

import pytest

from dealflow.api.sheets import GoogleSheetsClient
from dealflow.core.errors import ValidationError
from dealflow.core.models import ActivityAction, EntityType, SourcingMethod
from dealflow.core.sheet_importer import (
    SheetImporter,
    SheetRowNormalizer,
    parse_money_smart,
    parse_numeric_value,
    parse_percent_maybe,
    rows_from_values,
)


class TestParsers:
    """Tests for the lenient cell parsers."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("12,50 €", Decimal("12.50")),
            ("1.234,56", Decimal("1234.56")),
            ("1,234.56", Decimal("1234.56")),
            ("1,234,567", Decimal("1234567")),
            ("$19.99", Decimal("19.99")),
            ("-3,5", Decimal("-3.5")),
            (7, Decimal("7")),
            ("abc", Decimal("0")),
            ("", Decimal("0")),
            (None, Decimal("0")),
        ],
    )
    def test_parse_money_smart(self, value, expected):
        assert parse_money_smart(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [("12,5 %", Decimal("12.5")), ("40%", Decimal("40")), ("", None), ("n/a", None), (None, None)],
    )
    def test_parse_percent_maybe(self, value, expected):
        assert parse_percent_maybe(value) == expected

    @pytest.mark.parametrize(
        "value,expected",
        [("> 29", Decimal("29")), ("1.200", Decimal("1200")), ("3,5", Decimal("3.5")), ("none", None)],
    )
    def test_parse_numeric_value(self, value, expected):
        assert parse_numeric_value(value) == expected

    def test_rows_from_values_pads_short_rows(self):
        rows = rows_from_values(["ASIN", "Cost Price"], [["B000000001"], ["B000000002", 5]])
        assert rows == [
            {"ASIN": "B000000001", "Cost Price": ""},
            {"ASIN": "B000000002", "Cost Price": "5"},
        ]


class TestSheetRowNormalizer:
    """Tests for SheetRowNormalizer."""

    @pytest.fixture
    def normalizer(self) -> SheetRowNormalizer:
        return SheetRowNormalizer()

    def test_full_row(self, normalizer):
        row = normalizer.normalize(
            {
                "ASIN": " b08n5wrwnw ",
                "Quantity": "24",
                "Source URL": "https://supplier.example.com/x",
                "Tags": "kitchen",
                "All Notes": "Check packaging",
                "Cost Price": "12,50 €",
                "Sale Price": "25,00 €",
                "Sales Marketplace": "amazon.de",
                "Estimated Sales": "> 120",
            },
            row_number=2,
        )
        assert row.asin == "B08N5WRWNW"
        assert row.product_name == "Product B08N5WRWNW"
        assert row.cost_price == Decimal("12.50")
        assert row.sale_price == Decimal("25.00")
        assert row.estimated_sales == 120
        assert row.notes == "Check packaging | Quantity: 24 | Tags: kitchen | Marketplace: amazon.de"
        assert row.errors == []
        assert row.warnings == []

    def test_header_match_ignores_case_and_spacing(self, normalizer):
        row = normalizer.normalize({"asin": "B000000001", "buy  price": "3", "TITLE": "Mug"}, 2)
        assert row.cost_price == Decimal("3")
        assert row.product_name == "Mug"

    def test_blank_row_is_skipped(self, normalizer):
        assert normalizer.normalize({"ASIN": "", "Cost Price": " ", "Tags": "x"}, 3) is None

    def test_missing_asin(self, normalizer):
        row = normalizer.normalize({"ASIN": "", "Cost Price": "5"}, 4)
        assert row.errors == ["Row 4: ASIN is required"]

    def test_invalid_price_warns(self, normalizer):
        row = normalizer.normalize({"ASIN": "B000000001", "Cost Price": "tbd"}, 5)
        assert row.cost_price == Decimal("0")
        assert row.warnings == ["Row 5: Invalid cost price 'tbd', using 0"]

    def test_oversized_asin_fails_validation(self, normalizer):
        row = normalizer.normalize({"ASIN": "B" * 25, "Cost Price": "5"}, 6)
        with pytest.raises(ValidationError):
            row.to_submission()


class TestSheetImporter:
    """Tests for SheetImporter."""

    @pytest.fixture
    def importer(self, lifecycle) -> SheetImporter:
        return SheetImporter(lifecycle)

    def test_import_rows(self, importer, repo, va, make_item):
        make_item(asin="B0EXIST001")
        rows = [
            {"ASIN": "B000000001", "Cost Price": "10,00 €", "Sale Price": "20,00 €"},
            {"ASIN": "", "Cost Price": "", "Sale Price": ""},
            {"ASIN": "B000000001", "Cost Price": "11,00 €"},
            {"ASIN": "B0EXIST001", "Cost Price": "1"},
            {"ASIN": "", "Cost Price": "5"},
            {"ASIN": "b000000002", "Cost Price": "1.234,56", "Sale Price": "2.000,00", "Quantity": "5"},
        ]

        result = importer.import_rows(va, rows)

        assert result.success is True
        assert result.total_rows == 5
        assert result.items_imported == 2
        assert result.skipped_duplicates == 2
        assert result.items_skipped == 3
        assert result.errors == ["Row 6: ASIN is required"]

        imported = [repo.get_sourcing_item(i) for i in result.imported_ids]
        assert [i.asin for i in imported] == ["B000000001", "B000000002"]
        assert all(i.sourcing_method == SourcingMethod.GOOGLE_SHEETS for i in imported)
        assert all(i.submitted_by == "va-1" for i in imported)
        assert imported[1].cost_price == Decimal("1234.56")
        assert imported[1].notes == "Quantity: 5"
        assert imported[0].profit_margin == Decimal("50.0")

    def test_import_records_summary_entry(self, importer, repo, va):
        importer.import_rows(va, [{"ASIN": "B000000001", "Cost Price": "1", "Sale Price": "2"}])

        (entry,) = repo.get_activities_for_entity(EntityType.SOURCING, "bulk_import")
        assert entry.action == ActivityAction.SHEET_IMPORT
        assert entry.description == "Google Sheets import: 1 of 1 rows imported"

    def test_invalid_row_does_not_stop_import(self, importer, va):
        rows = [
            {"ASIN": "B" * 25, "Cost Price": "1"},
            {"ASIN": "B000000003", "Cost Price": "1", "Sale Price": "3"},
        ]
        result = importer.import_rows(va, rows)

        assert result.items_imported == 1
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 2: Invalid DealSubmission")

    def test_oversized_price_does_not_stop_import(self, importer, repo, va):
        rows = [
            {"ASIN": "B000000004", "Cost Price": "1", "Sale Price": "9" * 40},
            {"ASIN": "B000000005", "Cost Price": "1", "Sale Price": "3"},
        ]
        result = importer.import_rows(va, rows)

        assert result.items_imported == 1
        assert repo.get_sourcing_item(result.imported_ids[0]).asin == "B000000005"
        assert len(result.errors) == 1
        assert result.errors[0].startswith("Row 2: Invalid DealSubmission")
        assert "sell_price" in result.errors[0]
        (entry,) = repo.get_activities_for_entity(EntityType.SOURCING, "bulk_import")
        assert entry.description == "Google Sheets import: 1 of 2 rows imported"

    def test_import_sheet_in_mock_mode(self, importer, va, settings):
        client = GoogleSheetsClient(settings)

        first = importer.import_sheet(va, client)
        assert first.total_rows == 7
        assert first.items_imported == 6
        assert len(first.errors) == 1

        second = importer.import_sheet(va, client)
        assert second.items_imported == 0
        assert second.skipped_duplicates == 6
