"""Mock data for running without Google credentials."""

from __future__ import annotations

import random
from datetime import date, timedelta

SOURCING_HEADERS = [
    "Export Date (UTC yyyy-mm-dd)",
    "ASIN",
    "Quantity",
    "Source URL",
    "Tags",
    "All Notes",
    "Cost Price",
    "Sale Price",
    "Sales Marketplace",
    "Estimated Sales",
]

_MOCK_ASINS = [
    "B08N5WRWNW",
    "B07XJ8C8F5",
    "B09G9FPHY6",
    "B0B7CPSN2K",
    "B08L5TNJHG",
    "B07FZ8S74R",
]


def _money(value: float) -> str:
    """Format like a German-locale sheet cell, e.g. "12,50 €"."""
    return f"{value:.2f}".replace(".", ",") + " €"


def get_mock_sheet_values(seed: int = 42, today: date | None = None) -> list[list[str]]:
    """Header row plus a handful of sourcing rows, stable for a given seed."""
    rng = random.Random(seed)
    today = today or date.today()

    values: list[list[str]] = [list(SOURCING_HEADERS)]
    for i, asin in enumerate(_MOCK_ASINS):
        cost = rng.randint(500, 4000) / 100
        sale = round(cost * rng.uniform(1.3, 2.5), 2)
        values.append([
            (today - timedelta(days=i)).isoformat(),
            asin,
            str(rng.randint(10, 200)),
            f"https://supplier.example.com/item/{asin.lower()}",
            rng.choice(["home", "kitchen", "travel", ""]),
            "",
            _money(cost),
            _money(sale),
            "amazon.de",
            f"> {rng.randint(10, 300)}",
        ])

    # Blank row and a row without ASIN, as real sheets tend to have
    values.append(["", "", "", "", "", "", "", "", "", ""])
    values.append([today.isoformat(), "", "5", "", "", "no asin yet", _money(9.99), _money(19.99), "", ""])
    return values
