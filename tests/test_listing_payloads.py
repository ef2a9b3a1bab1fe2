"""Tests for marketplace listing payload builders."""

from __future__ import annotations

import pytest

from dealflow.core.errors import ValidationError
from dealflow.core.listing_payloads import (
    DEFAULT_EAN,
    build_listing_payload,
    supported_categories,
)


@pytest.fixture
def product() -> dict:
    return {
        "sku": "ACME_10.00_261014_B000000001",
        "product_name": "Travel Suitcase",
        "brand": "Acme",
        "price": "89.9",
    }


class TestBuildListingPayload:
    """Tests for build_listing_payload."""

    def test_supported_categories(self):
        assert supported_categories() == ["HOME", "LUGGAGE"]

    def test_home_defaults(self, product):
        payload = build_listing_payload("home", product)
        attributes = payload["attributes"]

        assert payload["productType"] == "HOME"
        assert payload["requirements"] == "LISTING"
        assert attributes["manufacturer"] == [{"value": "Acme"}]
        assert attributes["externally_assigned_product_identifier"] == [
            {"type": "EAN", "value": DEFAULT_EAN}
        ]
        assert attributes["list_price"] == [{"value_with_tax": 89.9, "currency": "EUR"}]
        assert len(attributes["bullet_point"]) == 3
        assert attributes["item_package_weight"] == [{"value": 500, "unit": "grams"}]

    def test_luggage_overrides(self, product):
        product.update({
            "color": "Red",
            "dimensions": {"length": 70},
            "currency": "GBP",
            "bullets": ["Light"],
        })
        attributes = build_listing_payload("LUGGAGE", product)["attributes"]

        assert attributes["color"] == [{"value": "Red"}]
        assert attributes["list_price"][0]["currency"] == "GBP"
        assert attributes["bullet_point"] == [{"value": "Light"}]
        dims = attributes["item_dimensions"][0]
        assert dims["length"] == {"value": 70, "unit": "centimeters"}
        assert dims["width"] == {"value": 40, "unit": "centimeters"}
        assert attributes["merchant_suggested_asin"] == [{"value": product["sku"]}]

    def test_unknown_category(self, product):
        with pytest.raises(ValidationError) as exc_info:
            build_listing_payload("GARDEN", product)
        assert exc_info.value.fields == ["category"]

    @pytest.mark.parametrize("missing", ["sku", "product_name", "brand", "price"])
    def test_required_fields(self, product, missing):
        product[missing] = ""
        with pytest.raises(ValidationError) as exc_info:
            build_listing_payload("HOME", product)
        assert exc_info.value.fields == [missing]
