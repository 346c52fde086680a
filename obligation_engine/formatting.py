"""
Display Formatting

The only place amounts are rounded. Calculations keep full Decimal
precision; these helpers are for presenting results.
"""

from decimal import ROUND_HALF_UP, Decimal


def quantize_for_display(amount: Decimal, places: int = 2) -> Decimal:
    """Round half-up to `places` decimals."""
    exponent = Decimal(1).scaleb(-places)
    return Decimal(amount).quantize(exponent, rounding=ROUND_HALF_UP)


def format_money(amount: Decimal, currency: str, places: int = 2) -> str:
    """format_money(Decimal("1234.5"), "usd") == "1,234.50 USD" """
    value = quantize_for_display(amount, places)
    return f"{value:,.{places}f} {currency.upper()}"


def format_pct(value: Decimal, places: int = 2) -> str:
    value = quantize_for_display(value, places)
    return f"{value:.{places}f}%"
