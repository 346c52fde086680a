"""
Tests for budget evaluation.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from obligation_engine.accrual import AccrualAggregator, BudgetEvaluator
from obligation_engine.config import EngineSettings
from obligation_engine.models import (
    BudgetPeriod,
    BudgetStatus,
    CategoryAllocation,
    Direction,
    Obligation,
)
from obligation_engine.services import RateTableConverter


MARCH_START = date(2024, 3, 1)
MARCH_END = date(2024, 3, 31)


def spend(amount, category_id, on=date(2024, 3, 10), **overrides) -> Obligation:
    return Obligation(
        name="Spend",
        amount=Decimal(amount),
        start_date=on,
        category_id=category_id,
        **overrides,
    )


@pytest.fixture
def evaluator():
    return BudgetEvaluator(settings=EngineSettings())


class TestBudgetEvaluator:
    """Tests for budget-vs-actual."""

    def test_statuses_and_totals(self, evaluator):
        groceries, rent, fun = uuid4(), uuid4(), uuid4()
        budget = BudgetPeriod(
            period_start=MARCH_START,
            period_end=MARCH_END,
            allocations=[
                CategoryAllocation(category_id=groceries, budgeted_amount=Decimal("500")),
                CategoryAllocation(category_id=rent, budgeted_amount=Decimal("1000")),
                CategoryAllocation(category_id=fun, budgeted_amount=Decimal("100")),
            ],
        )
        records = [
            spend("300", groceries),
            spend("150", groceries, on=date(2024, 3, 20)),
            spend("1200", rent),
            spend("50", fun),
        ]

        summary = evaluator.evaluate(budget, records)

        by_category = {c.category_id: c for c in summary.categories}
        assert by_category[groceries].spent_amount == Decimal("450")
        assert by_category[groceries].spent_pct == Decimal("90")
        assert by_category[groceries].status == BudgetStatus.WARNING
        assert by_category[rent].status == BudgetStatus.OVER
        assert by_category[rent].remaining == Decimal("-200")
        assert by_category[fun].status == BudgetStatus.GOOD

        assert summary.total_budget == Decimal("1600")
        assert summary.total_spent == Decimal("1700")
        assert summary.remaining == Decimal("-100")
        assert summary.categories_over == 1
        assert summary.is_overall_over is True

    @pytest.mark.parametrize("spent,status", [
        ("80", BudgetStatus.GOOD),
        ("80.01", BudgetStatus.WARNING),
        ("100", BudgetStatus.WARNING),
        ("100.01", BudgetStatus.OVER),
    ])
    def test_threshold_boundaries(self, evaluator, spent, status):
        category = uuid4()
        budget = BudgetPeriod(
            period_start=MARCH_START,
            period_end=MARCH_END,
            allocations=[CategoryAllocation(category_id=category, budgeted_amount=Decimal("100"))],
        )

        summary = evaluator.evaluate(budget, [spend(spent, category)])

        assert summary.categories[0].status == status

    def test_allocation_threshold_override(self, evaluator):
        category = uuid4()
        budget = BudgetPeriod(
            period_start=MARCH_START,
            period_end=MARCH_END,
            allocations=[CategoryAllocation(
                category_id=category,
                budgeted_amount=Decimal("100"),
                alert_threshold_pct=Decimal("95"),
            )],
        )

        summary = evaluator.evaluate(budget, [spend("90", category)])

        assert summary.categories[0].status == BudgetStatus.GOOD

    def test_income_and_other_periods_ignored(self, evaluator):
        category = uuid4()
        budget = BudgetPeriod(
            period_start=MARCH_START,
            period_end=MARCH_END,
            allocations=[CategoryAllocation(category_id=category, budgeted_amount=Decimal("100"))],
        )
        records = [
            spend("40", category, direction=Direction.INFLOW),
            spend("60", category, on=date(2024, 4, 2)),
        ]

        summary = evaluator.evaluate(budget, records)

        assert summary.total_spent == 0
        assert summary.is_overall_over is False

    def test_recurring_spend_counts(self, evaluator):
        category = uuid4()
        budget = BudgetPeriod(
            period_start=MARCH_START,
            period_end=MARCH_END,
            allocations=[CategoryAllocation(category_id=category, budgeted_amount=Decimal("50"))],
        )
        gym = Obligation(
            name="Gym",
            amount=Decimal("40"),
            frequency="monthly",
            is_recurring=True,
            start_date=date(2024, 1, 1),
            category_id=category,
        )

        summary = evaluator.evaluate(budget, [gym])

        assert summary.categories[0].spent_amount == Decimal("40")

    def test_budget_converted_to_target_currency(self):
        aggregator = AccrualAggregator(
            convert=RateTableConverter({"ARS": Decimal("1000")}),
            settings=EngineSettings(),
        )
        evaluator = BudgetEvaluator(aggregator, settings=EngineSettings())
        category = uuid4()
        budget = BudgetPeriod(
            period_start=MARCH_START,
            period_end=MARCH_END,
            currency="USD",
            allocations=[CategoryAllocation(category_id=category, budgeted_amount=Decimal("100"))],
        )

        summary = evaluator.evaluate(budget, [spend("50000", category, currency="ARS")], "ARS")

        assert summary.currency == "ARS"
        assert summary.total_budget == Decimal("100000")
        assert summary.categories[0].spent_pct == Decimal("50")

    def test_period_end_before_start_rejected(self):
        with pytest.raises(ValueError, match="Budget period end cannot be before start"):
            BudgetPeriod(period_start=MARCH_END, period_end=MARCH_START)
