"""
Budget and Accrual Result Models

Budgets are owned elsewhere; the engine only supplies the accrued spend
each allocation is measured against.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, model_validator


class BudgetStatus(str, Enum):
    """Where a budget line stands."""
    GOOD = "good"
    WARNING = "warning"
    OVER = "over"


class CategoryAllocation(BaseModel):
    """Budgeted amount for one category."""

    category_id: UUID
    budgeted_amount: Decimal = Field(..., gt=0)
    alert_threshold_pct: Optional[Decimal] = Field(
        default=None,
        gt=0,
        le=100,
        description="Overrides the engine-wide warning percentage"
    )


class BudgetPeriod(BaseModel):
    """A budget window and its per-category allocations."""

    period_start: date
    period_end: date
    currency: str = "USD"
    allocations: list[CategoryAllocation] = Field(default_factory=list)

    @model_validator(mode='after')
    def validate_period(self) -> 'BudgetPeriod':
        if self.period_end < self.period_start:
            raise ValueError("Budget period end cannot be before start")
        return self


class CategoryBudgetStatus(BaseModel):
    """Accrued spend for one allocation."""

    category_id: UUID
    budgeted_amount: Decimal
    spent_amount: Decimal
    remaining: Decimal
    spent_pct: Decimal
    status: BudgetStatus


class BudgetSummary(BaseModel):
    """Budget-vs-actual for a whole period."""

    period_start: date
    period_end: date
    currency: str
    total_budget: Decimal
    total_spent: Decimal
    remaining: Decimal
    categories: list[CategoryBudgetStatus] = Field(default_factory=list)
    categories_over: int = 0
    is_overall_over: bool = False


class AccruedPoint(BaseModel):
    """Income, expenses and savings rate for one month."""

    period: str
    income: Decimal
    expenses: Decimal
    net: Decimal
    savings_rate: Decimal
