"""Profit, margin and ROI calculation for sourcing items."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any

ONE_PLACE = Decimal("0.1")
CENTS = Decimal("0.01")
HUNDRED = Decimal("100")


def coerce_decimal(value: Any) -> Decimal:
    """Convert a stored or submitted value to Decimal, treating junk as zero.

    Used wherever a missing or malformed number must not break a sum.
    """
    if value is None or isinstance(value, bool):
        return Decimal("0")
    if isinstance(value, Decimal):
        return value if value.is_finite() else Decimal("0")
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        return Decimal("0")
    return result if result.is_finite() else Decimal("0")


def round_one_place(value: Decimal) -> Decimal:
    """Round half-up to one decimal place."""
    return value.quantize(ONE_PLACE, rounding=ROUND_HALF_UP)


def round_cents(value: Decimal) -> Decimal:
    """Round half-up to two decimal places."""
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_margin(margin: Decimal | None) -> str:
    """Display form of a margin: one decimal, blank when undefined."""
    if margin is None:
        return ""
    return f"{round_one_place(margin)}"


@dataclass
class PricingResult:
    """Derived pricing figures for one buy/sell pair.

    ``profit``, ``margin`` and ``roi`` are None when the inputs are
    incomplete, so an unknown margin is never shown as 0%.
    """

    buy_price: Decimal
    sell_price: Decimal
    profit: Decimal | None = None
    margin: Decimal | None = None
    roi: Decimal | None = None

    @property
    def is_complete(self) -> bool:
        return self.margin is not None

    @property
    def margin_display(self) -> str:
        return format_margin(self.margin)


class PricingCalculator:
    """Derives profit, margin and ROI from buy and sell prices."""

    def calculate(self, buy_price: Any, sell_price: Any) -> PricingResult:
        """Calculate pricing for a buy/sell pair.

        Both prices must be strictly positive for any figure to be derived;
        otherwise the result carries only the coerced inputs.
        """
        buy = coerce_decimal(buy_price)
        sell = coerce_decimal(sell_price)

        if buy <= 0 or sell <= 0:
            return PricingResult(buy_price=buy, sell_price=sell)

        profit = sell - buy
        try:
            margin = round_one_place(profit / sell * HUNDRED)
            roi = round_one_place(profit / buy * HUNDRED)
            profit = round_cents(profit)
        except InvalidOperation:
            # Figures too large to round in the default context
            return PricingResult(buy_price=buy, sell_price=sell)

        return PricingResult(
            buy_price=buy,
            sell_price=sell,
            profit=profit,
            margin=margin,
            roi=roi,
        )

    def margin(self, buy_price: Any, sell_price: Any) -> str:
        """Margin as display text ("50.0" or "")."""
        return self.calculate(buy_price, sell_price).margin_display
