"""
Economic Valuation Engine

Restates nominal local-currency amounts in real (inflation-adjusted) and
USD terms using a sparse monthly indicator series.

    real(n, purchase, payment) = n × ppi(payment) / ppi(purchase)
    usd(n, payment)            = n / rate(payment)
    liquefaction               = (real − n) / n × 100

A negative liquefaction means inflation "melted" the installment: a fixed
nominal payment is worth less at payment time than at purchase time.

IMPORTANT: Missing data is not an error. When a month has no row:
- real values fall back to the nominal amount
- USD values fall back to zero
- projected savings fall back to zero
Each fallback is recorded as an indicator_missing audit event, so
degraded results can be told apart from genuine ones.
"""

from datetime import date
from decimal import Decimal
from typing import Iterable, Optional, Union
from uuid import UUID

import structlog

from obligation_engine.audit import AuditLogger
from obligation_engine.config import EngineSettings, get_settings
from obligation_engine.errors import InvalidInputError
from obligation_engine.models.economics import (
    CurrencyComparison,
    EconomicIndicator,
    InstallmentValuation,
    PaymentStrategy,
    PlanAnalysis,
    Projection,
)
from obligation_engine.services.interface import IndicatorSource
from obligation_engine.services.memory import InMemoryIndicatorSource
from obligation_engine.temporal import DateLike, add_months, month_key
from obligation_engine import temporal
from obligation_engine.validation import require_installments, require_positive


logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")
ZERO = Decimal("0")


def _pct_change(new: Decimal, old: Decimal) -> Decimal:
    return (new - old) / old * HUNDRED


class EconomicValuationEngine:
    """
    Inflation and exchange-rate valuation over an indicator source.

    Usage:
        engine = EconomicValuationEngine(indicator_rows)
        engine.real_value(Decimal("1000"), date(2024, 1, 10), date(2024, 9, 10))
    """

    def __init__(
        self,
        indicators: Union[IndicatorSource, Iterable[EconomicIndicator]] = (),
        audit_logger: Optional[AuditLogger] = None,
        settings: Optional[EngineSettings] = None,
    ):
        if isinstance(indicators, IndicatorSource):
            self._source = indicators
        else:
            self._source = InMemoryIndicatorSource(indicators)
        self._audit_logger = audit_logger or AuditLogger()
        self._settings = settings or get_settings()

    # =========================================================================
    # INDICATOR LOOKUP
    # =========================================================================

    def indicator_for(
        self,
        when: DateLike,
        operation: str = "lookup",
        correlation_id: Optional[UUID] = None,
    ) -> Optional[EconomicIndicator]:
        """
        Row for the month of `when`, or None.

        A source that raises is treated as having no row for the month.
        """
        period = month_key(when)
        try:
            row = self._source.get(period)
        except Exception as e:
            logger.warning("indicator_lookup_failed", period_month=period, error=str(e))
            row = None

        if row is None:
            self._audit_logger.log_indicator_missing(
                period_month=period,
                operation=operation,
                correlation_id=correlation_id,
            )
        return row

    def _rate(self, row: EconomicIndicator, use_parallel_rate: Optional[bool]) -> Decimal:
        if use_parallel_rate is None:
            use_parallel_rate = self._settings.use_parallel_rate
        return row.usd_parallel_rate if use_parallel_rate else row.usd_official_rate

    @staticmethod
    def _real(
        nominal: Decimal,
        purchase_row: Optional[EconomicIndicator],
        payment_row: Optional[EconomicIndicator],
    ) -> Decimal:
        if purchase_row is None or payment_row is None:
            return nominal
        return nominal * payment_row.purchasing_power_index / purchase_row.purchasing_power_index

    # =========================================================================
    # SINGLE-AMOUNT VALUATION
    # =========================================================================

    def real_value(
        self,
        nominal: Decimal,
        purchase_date: DateLike,
        payment_date: DateLike,
        correlation_id: Optional[UUID] = None,
    ) -> Decimal:
        """Nominal restated to purchase-date purchasing power; nominal if data is missing."""
        nominal = Decimal(nominal)
        purchase_row = self.indicator_for(purchase_date, "real_value", correlation_id)
        payment_row = self.indicator_for(payment_date, "real_value", correlation_id)
        return self._real(nominal, purchase_row, payment_row)

    def usd_value(
        self,
        nominal: Decimal,
        payment_date: DateLike,
        use_parallel_rate: Optional[bool] = None,
        correlation_id: Optional[UUID] = None,
    ) -> Decimal:
        """
        Nominal converted to USD at the payment month's rate; zero if data is missing.

        `use_parallel_rate=None` follows the `use_parallel_rate` setting.
        """
        row = self.indicator_for(payment_date, "usd_value", correlation_id)
        if row is None:
            return ZERO
        return Decimal(nominal) / self._rate(row, use_parallel_rate)

    def liquefaction_pct(
        self,
        nominal: Decimal,
        purchase_date: DateLike,
        payment_date: DateLike,
        correlation_id: Optional[UUID] = None,
    ) -> Decimal:
        nominal = require_positive(nominal, "nominal")
        real = self.real_value(nominal, purchase_date, payment_date, correlation_id)
        return _pct_change(real, nominal)

    # =========================================================================
    # INSTALLMENT PLANS
    # =========================================================================

    def analyze_plan(
        self,
        total_amount: Decimal,
        installment_amount: Decimal,
        total_installments: int,
        purchase_date: DateLike,
        first_payment_date: DateLike,
        today: date,
        correlation_id: Optional[UUID] = None,
    ) -> PlanAnalysis:
        """
        Value every installment of a plan and recommend a repayment strategy.

        Installment i (0-based) falls on first_payment_date + i months.
        Paying early is recommended when the total, restated from the
        purchase month to today, is worth less than its nominal value.
        """
        total_amount = require_positive(total_amount, "total_amount")
        installment_amount = require_positive(installment_amount, "installment_amount")
        total_installments = require_installments(total_installments, "total_installments")
        first_payment = temporal.to_date(first_payment_date)

        purchase_row = self.indicator_for(purchase_date, "analyze_plan", correlation_id)

        total_nominal = ZERO
        total_real = ZERO
        total_usd = ZERO
        installments = []

        for i in range(total_installments):
            payment_date = add_months(first_payment, i)
            row = self.indicator_for(payment_date, "analyze_plan", correlation_id)

            real = self._real(installment_amount, purchase_row, row)
            usd = installment_amount / self._rate(row, None) if row is not None else ZERO

            total_nominal += installment_amount
            total_real += real
            total_usd += usd

            installments.append(InstallmentValuation(
                number=i + 1,
                period_month=month_key(payment_date),
                payment_date=payment_date,
                nominal_amount=installment_amount,
                real_amount=real,
                usd_amount=usd,
                inflation_rate=row.inflation_rate if row else ZERO,
                usd_exchange_rate=self._rate(row, None) if row else ZERO,
                purchasing_power_index=row.purchasing_power_index if row else HUNDRED,
            ))

        total_liquefaction = _pct_change(total_real, total_nominal)

        today_row = self.indicator_for(today, "analyze_plan", correlation_id)
        if purchase_row is not None and today_row is not None:
            real_today = total_amount * today_row.purchasing_power_index / purchase_row.purchasing_power_index
            early_savings = total_amount - real_today
        else:
            early_savings = ZERO

        strategy = PaymentStrategy.EARLY if early_savings > 0 else PaymentStrategy.DELAYED

        logger.debug(
            "plan_analyzed",
            installments=total_installments,
            total_liquefaction=str(total_liquefaction),
            strategy=strategy.value,
        )

        return PlanAnalysis(
            total_nominal=total_nominal,
            total_real=total_real,
            total_liquefaction=total_liquefaction,
            avg_inflation_impact=total_liquefaction / total_installments,
            usd_savings=total_usd,
            strategy=strategy,
            projected_savings=abs(early_savings),
            installments=installments,
        )

    def project_future_payments(
        self,
        remaining_installments: int,
        amount: Decimal,
        next_date: DateLike,
        assumed_monthly_inflation_pct: Optional[Decimal] = None,
    ) -> list[Projection]:
        """
        Simulate the remaining installments under a constant monthly inflation.

        The factor compounds from the first projected month:
        projected_real[i] = amount × (1 + r/100)^(i+1).
        """
        if remaining_installments < 0:
            raise InvalidInputError("remaining_installments", "cannot be negative")
        amount = require_positive(amount, "amount")

        if assumed_monthly_inflation_pct is None:
            assumed_monthly_inflation_pct = self._settings.default_monthly_inflation_pct
        step = 1 + Decimal(assumed_monthly_inflation_pct) / HUNDRED

        start = temporal.to_date(next_date)
        factor = Decimal("1")
        projections = []
        for i in range(remaining_installments):
            factor *= step
            projected = amount * factor
            projections.append(Projection(
                month=month_key(add_months(start, i)),
                nominal=amount,
                projected_real=projected,
                liquefaction_pct=_pct_change(projected, amount),
            ))
        return projections

    def currency_comparison(
        self,
        amount: Decimal,
        from_date: DateLike,
        to_date: DateLike,
        correlation_id: Optional[UUID] = None,
    ) -> Optional[CurrencyComparison]:
        """
        The same amount seen at two dates: real terms and both USD rates.

        None when either month has no row.
        """
        amount = Decimal(amount)
        from_row = self.indicator_for(from_date, "currency_comparison", correlation_id)
        to_row = self.indicator_for(to_date, "currency_comparison", correlation_id)
        if from_row is None or to_row is None:
            return None

        note = None
        if from_row.data_source != to_row.data_source:
            note = f"Rows come from different sources ({from_row.data_source}, {to_row.data_source})"

        return CurrencyComparison(
            nominal=amount,
            real=self._real(amount, from_row, to_row),
            usd_official_from=amount / from_row.usd_official_rate,
            usd_official_to=amount / to_row.usd_official_rate,
            usd_parallel_from=amount / from_row.usd_parallel_rate,
            usd_parallel_to=amount / to_row.usd_parallel_rate,
            inflation_impact_pct=_pct_change(to_row.purchasing_power_index, from_row.purchasing_power_index),
            usd_official_variation_pct=_pct_change(to_row.usd_official_rate, from_row.usd_official_rate),
            usd_parallel_variation_pct=_pct_change(to_row.usd_parallel_rate, from_row.usd_parallel_rate),
            note=note,
        )
