"""
Economic Models

Monthly economic indicators and the results of restating nominal
amounts into real (inflation-adjusted) and USD terms.

DESIGN DECISION: Indicators are a sparse series keyed by "YYYY-MM".
Any month may be missing; consumers must tolerate that.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class EconomicIndicator(BaseModel):
    """
    Economic data for one calendar month.

    `purchasing_power_index` falls as cumulative inflation rises.
    """

    period_month: str = Field(
        ...,
        pattern=r"^\d{4}-(0[1-9]|1[0-2])$",
        description="Calendar month (YYYY-MM)"
    )
    inflation_rate: Decimal = Field(
        ...,
        description="Monthly inflation (%)"
    )
    accumulated_inflation: Decimal = Field(
        default=Decimal("0"),
        description="Inflation accumulated since the series base (%)"
    )
    purchasing_power_index: Decimal = Field(
        ...,
        gt=0,
        description="Purchasing power index (base 100)"
    )
    usd_official_rate: Decimal = Field(
        ...,
        gt=0,
        description="Local currency units per USD, official market"
    )
    usd_parallel_rate: Decimal = Field(
        ...,
        gt=0,
        description="Local currency units per USD, parallel market"
    )
    data_source: str = Field(
        default="manual",
        description="Where the row came from"
    )


class PaymentStrategy(str, Enum):
    """Repayment recommendation for an installment plan."""
    EARLY = "early"
    ON_TIME = "on_time"
    DELAYED = "delayed"


class FinancingChoice(str, Enum):
    """Cash-vs-installments recommendation."""
    CASH = "cash"
    INSTALLMENTS = "installments"


class InstallmentValuation(BaseModel):
    """One installment restated in real and USD terms."""

    number: int = Field(ge=1)
    period_month: str
    payment_date: date
    nominal_amount: Decimal
    real_amount: Decimal
    usd_amount: Decimal
    inflation_rate: Decimal = Decimal("0")
    usd_exchange_rate: Decimal = Decimal("0")
    purchasing_power_index: Decimal = Decimal("100")


class PlanAnalysis(BaseModel):
    """Aggregate view of an installment plan."""

    total_nominal: Decimal
    total_real: Decimal
    total_liquefaction: Decimal = Field(
        ...,
        description="Real vs nominal change across the plan (%)"
    )
    avg_inflation_impact: Decimal = Field(
        ...,
        description="total_liquefaction spread per installment (%)"
    )
    usd_savings: Decimal = Field(
        ...,
        description="Sum of installments converted to USD at their payment month"
    )
    strategy: PaymentStrategy
    projected_savings: Decimal
    installments: list[InstallmentValuation] = Field(default_factory=list)


class Projection(BaseModel):
    """One month of a forward inflation simulation."""

    month: str
    nominal: Decimal
    projected_real: Decimal
    liquefaction_pct: Decimal


class FinancingRow(BaseModel):
    """One installment of a cash-vs-installments comparison."""

    number: int = Field(ge=1)
    month: str
    payment_date: date
    nominal: Decimal
    real: Decimal
    usd: Decimal


class FinancingDecision(BaseModel):
    """Outcome of comparing a cash price with a financed total."""

    cash_price: Decimal
    financed_nominal: Decimal
    financed_real: Decimal
    total_usd: Decimal
    savings_pct: Decimal = Field(
        ...,
        description="(cash - financed_real) / cash, in %"
    )
    recommendation: FinancingChoice
    rows: list[FinancingRow] = Field(default_factory=list)


class CurrencyComparison(BaseModel):
    """An amount viewed at two dates, in local real terms and in USD."""

    nominal: Decimal
    real: Decimal
    usd_official_from: Decimal
    usd_official_to: Decimal
    usd_parallel_from: Decimal
    usd_parallel_to: Decimal
    inflation_impact_pct: Decimal
    usd_official_variation_pct: Decimal
    usd_parallel_variation_pct: Decimal
    note: Optional[str] = None
