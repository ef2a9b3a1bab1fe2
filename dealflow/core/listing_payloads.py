"""Marketplace listing submissions per product category."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from .errors import ValidationError
from .pricing import coerce_decimal

REQUIRED_FIELDS = ("sku", "product_name", "brand", "price")

DEFAULT_EAN = "4001234567890"
DEFAULT_BROWSE_NODE = "123456789"

HOME_BULLETS = [
    "Durable and reliable",
    "Modern design",
    "Suitable for everyday use",
]

LUGGAGE_BULLETS = [
    "Durable polycarbonate shell",
    "Expandable storage",
    "360° spinner wheels",
]


def _values(*values: Any) -> list[dict[str, Any]]:
    return [{"value": v} for v in values]


def _dimensions(
    given: dict[str, Any] | None, defaults: tuple[int, int, int], unit: str
) -> list[dict[str, Any]]:
    given = given or {}
    unit = given.get("unit") or unit
    length, width, height = defaults
    return [
        {
            "length": {"value": given.get("length") or length, "unit": unit},
            "width": {"value": given.get("width") or width, "unit": unit},
            "height": {"value": given.get("height") or height, "unit": unit},
        }
    ]


def _weight(given: dict[str, Any] | None, default: int) -> list[dict[str, Any]]:
    given = given or {}
    return [{"value": given.get("value") or default, "unit": given.get("unit") or "grams"}]


def _price(product: dict[str, Any]) -> list[dict[str, Any]]:
    return [
        {
            "value_with_tax": float(coerce_decimal(product["price"])),
            "currency": product.get("currency") or "EUR",
        }
    ]


def _ean(product: dict[str, Any]) -> list[dict[str, Any]]:
    return [{"type": "EAN", "value": product.get("ean") or DEFAULT_EAN}]


def build_home_payload(product: dict[str, Any]) -> dict[str, Any]:
    """Listing payload for the HOME product type."""
    brand = product["brand"]
    return {
        "productType": "HOME",
        "requirements": "LISTING",
        "attributes": {
            "item_name": _values(product["product_name"]),
            "brand": _values(brand),
            "manufacturer": _values(product.get("manufacturer") or brand),
            "model_number": _values(product.get("model_number") or "MODEL123"),
            "part_number": _values(product.get("part_number") or "PART123"),
            "externally_assigned_product_identifier": _ean(product),
            "merchant_suggested_asin": _values(product.get("suggested_asin") or product["sku"]),
            "product_description": _values(
                product.get("description") or "High-quality home product for daily use."
            ),
            "bullet_point": _values(*(product.get("bullets") or HOME_BULLETS)),
            "country_of_origin": _values(product.get("country_of_origin") or "DE"),
            "recommended_browse_nodes": _values(product.get("browse_node") or DEFAULT_BROWSE_NODE),
            "supplier_declared_dg_hz_regulation": _values("not_applicable"),
            "size": _values(product.get("size") or "Standard"),
            "color": _values(product.get("color") or "White"),
            "number_of_items": _values(str(product.get("number_of_items") or 1)),
            "number_of_boxes": _values(str(product.get("number_of_boxes") or 1)),
            "item_package_weight": _weight(product.get("package_weight"), 500),
            "item_package_dimensions": _dimensions(
                product.get("package_dimensions"), (200, 150, 100), "millimeters"
            ),
            "batteries_required": _values(product.get("batteries_required") or "false"),
            "is_fragile": _values(product.get("is_fragile") or "false"),
            "list_price": _price(product),
            "power_plug_type": _values(product.get("plug_type") or "no_plug"),
            "accepted_voltage_frequency": _values(
                product.get("voltage_frequency") or "100v_120v_50hz"
            ),
        },
    }


def build_luggage_payload(product: dict[str, Any]) -> dict[str, Any]:
    """Listing payload for the LUGGAGE product type."""
    brand = product["brand"]
    return {
        "productType": "LUGGAGE",
        "requirements": "LISTING",
        "attributes": {
            "item_name": _values(product["product_name"]),
            "brand": _values(brand),
            "manufacturer": _values(product.get("manufacturer") or brand),
            "condition_type": _values("new_new"),
            "list_price": _price(product),
            "color": _values(product.get("color") or "Black"),
            "item_dimensions": _dimensions(product.get("dimensions"), (60, 40, 25), "centimeters"),
            "bullet_point": _values(*(product.get("bullets") or LUGGAGE_BULLETS)),
            "batteries_required": _values("false"),
            "material": _values(product.get("material") or "Polycarbonate"),
            "country_of_origin": _values(product.get("country_of_origin") or "CN"),
            "style": _values(product.get("style") or "Hardside Spinner"),
            "model_name": _values(product.get("model_name") or "DefaultModel"),
            "department": _values(product.get("department") or "Unisex"),
            "item_package_dimensions": _dimensions(
                product.get("package_dimensions"), (650, 450, 300), "millimeters"
            ),
            "merchant_suggested_asin": _values(product["sku"]),
            "model_number": _values(product.get("model_number") or "MODEL123"),
            "supplier_declared_dg_hz_regulation": _values("not_applicable"),
            "item_package_weight": _weight(product.get("package_weight"), 4000),
            "product_description": _values(
                product.get("description") or "Durable lightweight suitcase for travel."
            ),
            "recommended_browse_nodes": _values(product.get("browse_node") or DEFAULT_BROWSE_NODE),
            "externally_assigned_product_identifier": _ean(product),
        },
    }


BUILDERS: dict[str, Callable[[dict[str, Any]], dict[str, Any]]] = {
    "HOME": build_home_payload,
    "LUGGAGE": build_luggage_payload,
}


def supported_categories() -> list[str]:
    return sorted(BUILDERS)


def build_listing_payload(category: str, product: dict[str, Any]) -> dict[str, Any]:
    """Build the listing submission for a product in the given category.

    Raises:
        ValidationError: Unknown category or a required field is missing.
    """
    builder = BUILDERS.get((category or "").strip().upper())
    if builder is None:
        raise ValidationError(
            f"Unsupported category '{category}'. Must be one of: {', '.join(supported_categories())}",
            fields=["category"],
        )

    missing = [name for name in REQUIRED_FIELDS if product.get(name) in (None, "")]
    if missing:
        raise ValidationError(f"Missing required fields: {', '.join(missing)}", fields=missing)

    return builder(product)
