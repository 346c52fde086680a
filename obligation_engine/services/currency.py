"""
Currency Conversion

The engine never fetches exchange rates. Callers hand it any callable
`convert(amount, from_currency, to_currency) -> amount`.

RateTableConverter is the conversion the tracker itself uses: a table of
units-per-USD rates (the shape public FX APIs return with base USD),
crossed through USD for non-USD pairs.
"""

from decimal import Decimal
from typing import Callable, Mapping

from obligation_engine.errors import EngineError


CurrencyConverter = Callable[[Decimal, str, str], Decimal]


class RateNotFoundError(EngineError):
    """No rate is known for a currency."""

    def __init__(self, currency: str):
        self.currency = currency
        super().__init__(f"No exchange rate for {currency}")


def identity_converter(amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
    """Converter for single-currency ledgers."""
    return amount


class RateTableConverter:
    """
    Converts through USD using a units-per-USD table.

    Example:
        convert = RateTableConverter({"ARS": Decimal("1000"), "EUR": Decimal("0.9")})
        convert(Decimal("900"), "EUR", "ARS")  # 1_000_000
    """

    BASE = "USD"

    def __init__(self, rates_per_usd: Mapping[str, Decimal]):
        self._rates = {code.upper(): Decimal(rate) for code, rate in rates_per_usd.items()}
        self._rates[self.BASE] = Decimal("1")

        for code, rate in self._rates.items():
            if rate <= 0:
                raise ValueError(f"Exchange rate for {code} must be positive")

    def rate(self, currency: str) -> Decimal:
        try:
            return self._rates[currency.upper()]
        except KeyError:
            raise RateNotFoundError(currency) from None

    def __call__(self, amount: Decimal, from_currency: str, to_currency: str) -> Decimal:
        if from_currency.upper() == to_currency.upper():
            return amount
        usd_amount = amount / self.rate(from_currency)
        return usd_amount * self.rate(to_currency)
