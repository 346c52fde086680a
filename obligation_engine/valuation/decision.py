"""
Cash vs Installments Decision

Answers "should I pay cash today or take the installment plan?" under
assumed constant monthly inflation and currency devaluation.

The financed total is split into equal installments, the first one a
month after purchase. Each installment is restated to purchase-month
purchasing power; if the real total undercuts the cash price by more
than the threshold, installments win.
"""

from datetime import date
from decimal import Decimal
from typing import Optional

import structlog

from obligation_engine.config import EngineSettings, get_settings
from obligation_engine.models.economics import (
    EconomicIndicator,
    FinancingChoice,
    FinancingDecision,
    FinancingRow,
)
from obligation_engine.temporal import DateLike, add_months, month_key, to_date
from obligation_engine.validation import require_installments, require_positive
from obligation_engine.valuation.economics import EconomicValuationEngine


logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")
BASE_PPI = Decimal("100")
MIN_RATE = Decimal("1")


def savings_pct(cash_price: Decimal, financed_real: Decimal) -> Decimal:
    """Real saving of financing, as a percentage of the cash price."""
    cash_price = require_positive(cash_price, "cash_price")
    return (cash_price - Decimal(financed_real)) / cash_price * HUNDRED


def recommend_financing(
    cash_price: Decimal,
    financed_real: Decimal,
    threshold_pct: Optional[Decimal] = None,
    settings: Optional[EngineSettings] = None,
) -> FinancingChoice:
    """
    Installments iff the real saving is strictly above the threshold.

    recommend_financing(Decimal("100"), Decimal("98.9")) == FinancingChoice.INSTALLMENTS
    recommend_financing(Decimal("100"), Decimal("99"))   == FinancingChoice.CASH
    """
    if threshold_pct is None:
        threshold_pct = (settings or get_settings()).financing_threshold_pct
    if savings_pct(cash_price, financed_real) > Decimal(threshold_pct):
        return FinancingChoice.INSTALLMENTS
    return FinancingChoice.CASH


def build_synthetic_indicators(
    purchase_date: DateLike,
    months: int,
    monthly_inflation_pct: Decimal,
    monthly_devaluation_pct: Decimal,
    base_official_rate: Decimal,
    base_parallel_rate: Decimal,
) -> list[EconomicIndicator]:
    """
    Indicator rows for `months` months starting at the purchase month.

    PPI starts at 100 and shrinks by the inflation factor each month;
    both USD rates grow by the devaluation factor, never below 1.
    """
    if months < 1:
        return []
    base_official_rate = require_positive(base_official_rate, "base_official_rate")
    base_parallel_rate = require_positive(base_parallel_rate, "base_parallel_rate")

    inflation = Decimal(monthly_inflation_pct)
    inflation_step = 1 + inflation / HUNDRED
    devaluation_step = 1 + Decimal(monthly_devaluation_pct) / HUNDRED
    start = to_date(purchase_date)

    rows = []
    for i in range(months):
        rows.append(EconomicIndicator(
            period_month=month_key(add_months(start, i)),
            inflation_rate=inflation,
            accumulated_inflation=inflation * (i + 1),
            purchasing_power_index=BASE_PPI / inflation_step ** i,
            usd_official_rate=max(MIN_RATE, base_official_rate * devaluation_step ** i),
            usd_parallel_rate=max(MIN_RATE, base_parallel_rate * devaluation_step ** i),
            data_source="synthetic",
        ))
    return rows


def compare_cash_vs_installments(
    cash_price: Decimal,
    financed_total: Decimal,
    installments: int,
    purchase_date: date,
    monthly_inflation_pct: Decimal,
    monthly_devaluation_pct: Decimal,
    base_official_rate: Decimal,
    base_parallel_rate: Decimal,
    currency: str = "ARS",
    settings: Optional[EngineSettings] = None,
) -> FinancingDecision:
    """
    Compare paying `cash_price` at purchase with `installments` equal
    payments totalling `financed_total`.

    USD amounts use the parallel rate; for a USD-denominated purchase the
    nominal amount already is the USD amount.
    """
    settings = settings or get_settings()
    cash_price = require_positive(cash_price, "cash_price")
    financed_total = require_positive(financed_total, "financed_total")
    installments = require_installments(installments)

    indicators = build_synthetic_indicators(
        purchase_date,
        max(installments + 1, 2),
        monthly_inflation_pct,
        monthly_devaluation_pct,
        base_official_rate,
        base_parallel_rate,
    )
    engine = EconomicValuationEngine(indicators, settings=settings)

    installment_amount = financed_total / installments
    first_payment = add_months(purchase_date, 1)
    is_usd = currency.upper() == "USD"

    rows = []
    for i in range(installments):
        payment_date = add_months(first_payment, i)
        real = engine.real_value(installment_amount, purchase_date, payment_date)
        usd = installment_amount if is_usd else engine.usd_value(installment_amount, payment_date, use_parallel_rate=True)
        rows.append(FinancingRow(
            number=i + 1,
            month=month_key(payment_date),
            payment_date=payment_date,
            nominal=installment_amount,
            real=real,
            usd=usd,
        ))

    financed_nominal = sum((r.nominal for r in rows), Decimal("0"))
    financed_real = sum((r.real for r in rows), Decimal("0"))
    total_usd = sum((r.usd for r in rows), Decimal("0"))
    pct = savings_pct(cash_price, financed_real)
    recommendation = recommend_financing(cash_price, financed_real, settings=settings)

    logger.info(
        "financing_compared",
        installments=installments,
        savings_pct=str(pct),
        recommendation=recommendation.value,
    )

    return FinancingDecision(
        cash_price=cash_price,
        financed_nominal=financed_nominal,
        financed_real=financed_real,
        total_usd=total_usd,
        savings_pct=pct,
        recommendation=recommendation,
        rows=rows,
    )
