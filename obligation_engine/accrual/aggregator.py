"""
Period Accrual Aggregator

Answers "how much was earned or spent between two dates" over records
that differ in frequency, currency and card billing cycle.

Per month overlapping the window:
- an active template contributes its monthly-normalized amount, from the
  month of its start date onward
- a one-off contributes its full amount in its effective month (the
  statement month for credit-card purchases), provided its date lies
  inside the window

DESIGN DECISION: Totals are computed at query time only. Nothing is
cached or stored, so a corrected record is reflected immediately.
Amounts are summed unrounded; rounding belongs to display code.
"""

from collections import defaultdict
from datetime import date
from decimal import Decimal
from typing import Collection, Iterable, Optional, Union
from uuid import UUID

from obligation_engine.accrual.frequency import normalize_to_monthly
from obligation_engine.audit import AuditLogger
from obligation_engine.config import EngineSettings, get_settings
from obligation_engine.models.budget import AccruedPoint
from obligation_engine.models.obligation import (
    Direction,
    Obligation,
    PaymentInstrument,
)
from obligation_engine.services.currency import CurrencyConverter, identity_converter
from obligation_engine.temporal import (
    DateLike,
    effective_month_key,
    iter_month_keys,
    month_end,
    month_start,
    to_date,
)


class AccrualAggregator:
    """
    Computes accrued amounts over a caller-supplied record set.

    With `supersede_templates=True`, a template's baseline is dropped for
    any month in which one of its instances is part of the records, so the
    instance's actual amount replaces the estimate instead of adding to it.
    """

    def __init__(
        self,
        convert: CurrencyConverter = identity_converter,
        instruments: Iterable[PaymentInstrument] = (),
        settings: Optional[EngineSettings] = None,
        audit_logger: Optional[AuditLogger] = None,
        supersede_templates: bool = False,
    ):
        self._convert_fn = convert
        self._instruments = {i.id: i for i in instruments}
        self._settings = settings or get_settings()
        self._audit_logger = audit_logger or AuditLogger()
        self._supersede_templates = supersede_templates

    def convert(
        self,
        amount: Decimal,
        from_currency: str,
        to_currency: str,
        correlation_id: Optional[UUID] = None,
    ) -> Decimal:
        """
        Convert through the caller's converter.

        A failing conversion is logged and the amount is used unconverted;
        one bad rate never aborts a whole aggregate.
        """
        if from_currency.upper() == to_currency.upper():
            return amount
        try:
            return Decimal(self._convert_fn(amount, from_currency, to_currency))
        except Exception as e:
            self._audit_logger.log_conversion_failed(
                from_currency=from_currency,
                to_currency=to_currency,
                error_message=str(e),
                correlation_id=correlation_id,
            )
            return amount

    def _effective_month(self, record: Obligation) -> str:
        instrument = self._instruments.get(record.payment_instrument_id) if record.payment_instrument_id else None
        return effective_month_key(
            record.start_date,
            instrument.kind if instrument else None,
            instrument.statement_closing_day if instrument else None,
        )

    def _contributions(
        self,
        period_start: date,
        period_end: date,
        records: list[Obligation],
    ) -> Iterable[tuple[Obligation, Decimal]]:
        """(record, amount in record currency) for every contribution in the window."""
        months = list(iter_month_keys(period_start, period_end))
        month_set = set(months)

        confirmed = {
            (r.provenance.template_id, r.provenance.month)
            for r in records
            if r.provenance is not None
        }

        for record in records:
            if not record.is_active:
                continue

            if record.is_template:
                monthly = normalize_to_monthly(record.amount, record.frequency, self._settings)
                for month in months:
                    if record.start_date > month_end(month):
                        continue
                    if self._supersede_templates and (record.id, month) in confirmed:
                        continue
                    yield record, monthly
                continue

            if not period_start <= record.start_date <= period_end:
                continue
            if self._effective_month(record) in month_set:
                yield record, record.amount

    def _filtered(
        self,
        records: Iterable[Obligation],
        category_ids: Optional[Collection[UUID]],
        direction: Optional[Union[Direction, str]],
    ) -> list[Obligation]:
        direction = Direction(direction) if direction is not None else None
        return [
            r for r in records
            if (category_ids is None or r.category_id in category_ids)
            and (direction is None or r.direction == direction)
        ]

    def accrued_amount(
        self,
        period_start: DateLike,
        period_end: DateLike,
        records: Iterable[Obligation],
        target_currency: str,
        category_ids: Optional[Collection[UUID]] = None,
        direction: Optional[Union[Direction, str]] = None,
    ) -> Decimal:
        """
        Total accrued in `target_currency` over [period_start, period_end].

        Amounts are magnitudes; pass `direction` to total income or
        expenses only. An empty or inverted window accrues zero.
        """
        start, end = to_date(period_start), to_date(period_end)
        selected = self._filtered(records, category_ids, direction)

        total = Decimal("0")
        for record, amount in self._contributions(start, end, selected):
            total += self.convert(amount, record.currency, target_currency)
        return total

    def accrued_by_category(
        self,
        period_start: DateLike,
        period_end: DateLike,
        records: Iterable[Obligation],
        target_currency: str,
        direction: Optional[Union[Direction, str]] = Direction.OUTFLOW,
    ) -> dict[Optional[UUID], Decimal]:
        """Accrued totals keyed by category id (None for uncategorized)."""
        start, end = to_date(period_start), to_date(period_end)
        selected = self._filtered(records, None, direction)

        totals: dict[Optional[UUID], Decimal] = defaultdict(Decimal)
        for record, amount in self._contributions(start, end, selected):
            totals[record.category_id] += self.convert(amount, record.currency, target_currency)
        return dict(totals)

    def accrued_series(
        self,
        months: Iterable[DateLike],
        records: Iterable[Obligation],
        target_currency: str,
    ) -> list[AccruedPoint]:
        """
        Income, expenses, net and savings rate per month, for trend views.

        Savings rate is net / income in %, 0 for a month without income.
        """
        records = list(records)
        series = []
        for month in months:
            start, end = month_start(month), month_end(month)
            income = self.accrued_amount(start, end, records, target_currency, direction=Direction.INFLOW)
            expenses = self.accrued_amount(start, end, records, target_currency, direction=Direction.OUTFLOW)
            net = income - expenses
            savings_rate = (net / income * 100) if income > 0 else Decimal("0")
            series.append(AccruedPoint(
                period=f"{start.year:04d}-{start.month:02d}",
                income=income,
                expenses=expenses,
                net=net,
                savings_rate=savings_rate,
            ))
        return series
