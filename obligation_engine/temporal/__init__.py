"""Temporal utilities package."""

from obligation_engine.temporal.months import (
    DateLike,
    add_months,
    clamp_day,
    days_in_month,
    effective_month_key,
    iter_month_keys,
    month_end,
    month_key,
    month_start,
    parse_month_key,
    shift_month_key,
    to_date,
)

__all__ = [
    "DateLike",
    "add_months",
    "clamp_day",
    "days_in_month",
    "effective_month_key",
    "iter_month_keys",
    "month_end",
    "month_key",
    "month_start",
    "parse_month_key",
    "shift_month_key",
    "to_date",
]
