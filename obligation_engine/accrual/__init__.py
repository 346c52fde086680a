"""Accrual package: frequency normalization, period totals and budgets."""

from obligation_engine.accrual.aggregator import AccrualAggregator
from obligation_engine.accrual.budget import BudgetEvaluator
from obligation_engine.accrual.frequency import monthly_multiplier, normalize_to_monthly

__all__ = [
    "AccrualAggregator",
    "BudgetEvaluator",
    "monthly_multiplier",
    "normalize_to_monthly",
]
