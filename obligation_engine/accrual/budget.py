"""
Budget Evaluation

Measures each category allocation of a budget period against the spend
accrued for that category over the same window.
"""

from decimal import Decimal
from typing import Iterable, Optional

import structlog

from obligation_engine.accrual.aggregator import AccrualAggregator
from obligation_engine.config import EngineSettings, get_settings
from obligation_engine.models.budget import (
    BudgetPeriod,
    BudgetStatus,
    BudgetSummary,
    CategoryAllocation,
    CategoryBudgetStatus,
)
from obligation_engine.models.obligation import Direction, Obligation


logger = structlog.get_logger(__name__)

HUNDRED = Decimal("100")


class BudgetEvaluator:
    """Budget-vs-actual built on the accrual aggregator."""

    def __init__(
        self,
        aggregator: Optional[AccrualAggregator] = None,
        settings: Optional[EngineSettings] = None,
    ):
        self._settings = settings or get_settings()
        self._aggregator = aggregator or AccrualAggregator(settings=self._settings)

    def status_for(
        self,
        spent_pct: Decimal,
        allocation: Optional[CategoryAllocation] = None,
    ) -> BudgetStatus:
        """over above 100 %, warning above the alert threshold, else good."""
        threshold = self._settings.budget_warning_pct
        if allocation is not None and allocation.alert_threshold_pct is not None:
            threshold = allocation.alert_threshold_pct

        if spent_pct > HUNDRED:
            return BudgetStatus.OVER
        if spent_pct > threshold:
            return BudgetStatus.WARNING
        return BudgetStatus.GOOD

    def evaluate(
        self,
        budget: BudgetPeriod,
        records: Iterable[Obligation],
        target_currency: Optional[str] = None,
    ) -> BudgetSummary:
        """
        Evaluate every allocation of `budget`.

        Budgeted amounts are in the budget's currency and are converted
        to `target_currency` (default: the budget's currency) alongside
        the accrued spend.
        """
        currency = (target_currency or budget.currency).upper()
        records = list(records)

        categories = []
        for allocation in budget.allocations:
            budgeted = self._aggregator.convert(allocation.budgeted_amount, budget.currency, currency)
            spent = self._aggregator.accrued_amount(
                budget.period_start,
                budget.period_end,
                records,
                currency,
                category_ids={allocation.category_id},
                direction=Direction.OUTFLOW,
            )
            spent_pct = spent / budgeted * HUNDRED
            categories.append(CategoryBudgetStatus(
                category_id=allocation.category_id,
                budgeted_amount=budgeted,
                spent_amount=spent,
                remaining=budgeted - spent,
                spent_pct=spent_pct,
                status=self.status_for(spent_pct, allocation),
            ))

        total_budget = sum((c.budgeted_amount for c in categories), Decimal("0"))
        total_spent = sum((c.spent_amount for c in categories), Decimal("0"))
        categories_over = sum(1 for c in categories if c.status == BudgetStatus.OVER)

        logger.debug(
            "budget_evaluated",
            period_start=budget.period_start.isoformat(),
            period_end=budget.period_end.isoformat(),
            categories=len(categories),
            categories_over=categories_over,
        )

        return BudgetSummary(
            period_start=budget.period_start,
            period_end=budget.period_end,
            currency=currency,
            total_budget=total_budget,
            total_spent=total_spent,
            remaining=total_budget - total_spent,
            categories=categories,
            categories_over=categories_over,
            is_overall_over=total_spent > total_budget,
        )
