"""
Calendar Month Arithmetic

Month keys ("YYYY-MM") are the unit every other component works in:
instances belong to a month, accruals iterate months, indicators are
looked up by month.

Derived dates are clamped into their month (Jan 31 + 1 month is the last
day of February). Amounts are never touched here.
"""

import calendar
from datetime import date, datetime
from typing import Iterator, Optional, Union

from obligation_engine.models.obligation import InstrumentKind


DateLike = Union[date, datetime, str]


def to_date(value: DateLike) -> date:
    """Accept a date, a datetime or an ISO string ("YYYY-MM-DD[...]" or "YYYY-MM")."""
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    text = value.strip()
    if len(text) == 7:
        return parse_month_key(text)
    return date.fromisoformat(text[:10])


def month_key(value: DateLike) -> str:
    d = to_date(value)
    return f"{d.year:04d}-{d.month:02d}"


def parse_month_key(key: str) -> date:
    """First day of the month named by "YYYY-MM"."""
    try:
        year_str, month_str = key.split("-")
        return date(int(year_str), int(month_str), 1)
    except ValueError:
        raise ValueError(f"Invalid month key: {key!r} (expected YYYY-MM)") from None


def days_in_month(year: int, month: int) -> int:
    return calendar.monthrange(year, month)[1]


def clamp_day(year: int, month: int, day: int) -> date:
    """Date for `day` in the month, pulled back to the month's last day if needed."""
    return date(year, month, max(1, min(day, days_in_month(year, month))))


def month_start(value: DateLike) -> date:
    return to_date(value).replace(day=1)


def month_end(value: DateLike) -> date:
    d = to_date(value)
    return date(d.year, d.month, days_in_month(d.year, d.month))


def add_months(value: DateLike, months: int) -> date:
    """
    Shift a date by whole months, clamping the day.

    add_months(date(2024, 1, 31), 1) == date(2024, 2, 29)
    add_months(date(2023, 1, 31), 1) == date(2023, 2, 28)
    """
    d = to_date(value)
    month_index = (d.year * 12) + (d.month - 1) + months
    year = month_index // 12
    month = (month_index % 12) + 1
    return clamp_day(year, month, d.day)


def shift_month_key(key: str, months: int) -> str:
    return month_key(add_months(parse_month_key(key), months))


def iter_month_keys(start: DateLike, end: DateLike) -> Iterator[str]:
    """
    Every month key overlapping [start, end], in order.

    Yields nothing when end is before start.
    """
    current = month_start(start)
    last = month_start(end)
    while current <= last:
        yield month_key(current)
        current = add_months(current, 1)


def effective_month_key(
    transaction_date: DateLike,
    instrument_kind: Optional[Union[InstrumentKind, str]] = None,
    closing_day: Optional[int] = None,
) -> str:
    """
    Accounting month for a transaction.

    A credit-card purchase made after the statement closing day is billed
    on the next statement, so it belongs to the following month. Debit
    instruments, missing instruments and invalid closing days leave the
    transaction month unchanged.
    """
    tx = to_date(transaction_date)

    kind = instrument_kind.value if isinstance(instrument_kind, InstrumentKind) else instrument_kind
    is_credit = kind is not None and kind.lower() == InstrumentKind.CREDIT.value

    if is_credit and closing_day is not None and 1 <= closing_day <= 31:
        if tx.day > closing_day:
            return month_key(add_months(tx.replace(day=1), 1))
    return month_key(tx)
