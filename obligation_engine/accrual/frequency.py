"""
Frequency Normalization

Turns an amount tagged with a frequency into its monthly equivalent.

The daily/weekly/biweekly multipliers are approximations (30 days,
4.33 weeks, 2.17 fortnights per month). Calendar-exact counts would make
the same template worth different amounts in different months; the
baseline is meant to be stable. The multipliers come from settings.

One-off amounts normalize to zero: they never contribute to a recurring
monthly baseline.
"""

from decimal import Decimal
from typing import Optional, Union

from obligation_engine.config import EngineSettings, get_settings
from obligation_engine.models.obligation import Frequency


def monthly_multiplier(
    frequency: Union[Frequency, str],
    settings: Optional[EngineSettings] = None,
) -> Decimal:
    """Factor that turns one period's amount into a month's."""
    settings = settings or get_settings()
    frequency = Frequency(frequency)

    if frequency == Frequency.DAILY:
        return settings.daily_multiplier
    if frequency == Frequency.WEEKLY:
        return settings.weekly_multiplier
    if frequency == Frequency.BIWEEKLY:
        return settings.biweekly_multiplier
    if frequency == Frequency.MONTHLY:
        return Decimal("1")
    if frequency == Frequency.QUARTERLY:
        return Decimal("1") / Decimal("3")
    if frequency == Frequency.YEARLY:
        return Decimal("1") / Decimal("12")
    return Decimal("0")


def normalize_to_monthly(
    amount: Decimal,
    frequency: Union[Frequency, str],
    settings: Optional[EngineSettings] = None,
) -> Decimal:
    """
    Monthly-equivalent of `amount` paid at `frequency`.

    normalize_to_monthly(Decimal("100"), "weekly") == Decimal("433.00")
    normalize_to_monthly(Decimal("1200"), "yearly") == Decimal("100")
    """
    frequency = Frequency(frequency)
    amount = Decimal(amount)

    # Divide rather than multiply by a repeating fraction, so exact
    # multiples stay exact.
    if frequency == Frequency.QUARTERLY:
        return amount / Decimal("3")
    if frequency == Frequency.YEARLY:
        return amount / Decimal("12")
    return amount * monthly_multiplier(frequency, settings)
