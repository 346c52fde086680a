"""
Tests for period accrual.
"""

import pytest
from datetime import date
from decimal import Decimal
from uuid import uuid4

from obligation_engine.accrual import AccrualAggregator
from obligation_engine.audit import AuditLogger
from obligation_engine.config import EngineSettings
from obligation_engine.models import (
    AuditEventType,
    Direction,
    Frequency,
    InstanceProvenance,
    InstrumentKind,
    Obligation,
    PaymentInstrument,
)
from obligation_engine.services import InMemoryAuditStorage, RateTableConverter


def template(amount="1000", frequency=Frequency.MONTHLY, **overrides) -> Obligation:
    data = dict(
        name="Rent",
        amount=Decimal(amount),
        frequency=frequency,
        is_recurring=True,
        recurring_day=5,
        start_date=date(2024, 1, 1),
    )
    data.update(overrides)
    return Obligation(**data)


def one_off(amount, on, name="Purchase", **overrides) -> Obligation:
    return Obligation(name=name, amount=Decimal(amount), start_date=on, **overrides)


@pytest.fixture
def aggregator():
    return AccrualAggregator(settings=EngineSettings())


class TestTemplates:
    """Tests for template baselines."""

    def test_monthly_template_accrues_every_month(self, aggregator):
        total = aggregator.accrued_amount(date(2024, 1, 1), date(2024, 3, 31), [template()], "USD")
        assert total == Decimal("3000")

    def test_partial_months_count_whole(self, aggregator):
        """Any month overlapping the window contributes its full baseline."""
        total = aggregator.accrued_amount(date(2024, 1, 20), date(2024, 2, 10), [template()], "USD")
        assert total == Decimal("2000")

    def test_weekly_template_is_normalized(self, aggregator):
        rows = [template("100", Frequency.WEEKLY)]
        total = aggregator.accrued_amount(date(2024, 3, 1), date(2024, 3, 31), rows, "USD")
        assert total == Decimal("433")

    def test_template_counts_from_its_start_month(self, aggregator):
        rows = [template(start_date=date(2024, 2, 15))]
        total = aggregator.accrued_amount(date(2024, 1, 1), date(2024, 3, 31), rows, "USD")
        assert total == Decimal("2000")

    def test_inactive_template_accrues_nothing(self, aggregator):
        rows = [template(is_active=False)]
        assert aggregator.accrued_amount(date(2024, 1, 1), date(2024, 3, 31), rows, "USD") == 0

    def test_template_and_instance_both_count_by_default(self, aggregator):
        rent = template()
        instance = one_off(
            "950",
            date(2024, 1, 5),
            name="Rent",
            provenance=InstanceProvenance(template_id=rent.id, month="2024-01"),
        )
        total = aggregator.accrued_amount(date(2024, 1, 1), date(2024, 1, 31), [rent, instance], "USD")
        assert total == Decimal("1950")

    def test_supersede_templates_drops_confirmed_baseline(self):
        aggregator = AccrualAggregator(settings=EngineSettings(), supersede_templates=True)
        rent = template()
        instance = one_off(
            "950",
            date(2024, 1, 5),
            name="Rent",
            provenance=InstanceProvenance(template_id=rent.id, month="2024-01"),
        )
        total = aggregator.accrued_amount(date(2024, 1, 1), date(2024, 2, 29), [rent, instance], "USD")
        assert total == Decimal("1950")


class TestMixedRecords:
    """Tests combining template baselines and one-offs."""

    def test_rent_plus_one_purchase(self, aggregator):
        """Two months of a 1000 baseline plus a 500 purchase on Feb 15."""
        rows = [template(), one_off("500", date(2024, 2, 15))]

        total = aggregator.accrued_amount(date(2024, 1, 1), date(2024, 2, 28), rows, "USD")

        assert total == Decimal("2500")


class TestOneOffs:
    """Tests for one-off records."""

    def test_counted_inside_window(self, aggregator):
        rows = [one_off("200", date(2024, 3, 15)), one_off("50", date(2024, 4, 1))]
        total = aggregator.accrued_amount(date(2024, 3, 1), date(2024, 3, 31), rows, "USD")
        assert total == Decimal("200")

    def test_credit_purchase_counts_in_statement_month(self):
        card = PaymentInstrument(kind=InstrumentKind.CREDIT, statement_closing_day=25)
        aggregator = AccrualAggregator(instruments=[card], settings=EngineSettings())
        rows = [one_off("200", date(2024, 3, 28), payment_instrument_id=card.id)]

        march = aggregator.accrued_amount(date(2024, 3, 1), date(2024, 3, 31), rows, "USD")
        march_april = aggregator.accrued_amount(date(2024, 3, 1), date(2024, 4, 30), rows, "USD")

        assert march == 0
        assert march_april == Decimal("200")

    def test_debit_purchase_stays_in_its_month(self):
        card = PaymentInstrument(kind=InstrumentKind.DEBIT, statement_closing_day=25)
        aggregator = AccrualAggregator(instruments=[card], settings=EngineSettings())
        rows = [one_off("200", date(2024, 3, 28), payment_instrument_id=card.id)]

        assert aggregator.accrued_amount(date(2024, 3, 1), date(2024, 3, 31), rows, "USD") == Decimal("200")

    def test_inverted_window_is_zero(self, aggregator):
        rows = [template(), one_off("200", date(2024, 3, 15))]
        assert aggregator.accrued_amount(date(2024, 4, 1), date(2024, 3, 1), rows, "USD") == 0

    def test_window_split_is_additive(self, aggregator):
        rows = [
            template(),
            template("100", Frequency.WEEKLY, name="Cleaning"),
            one_off("200", date(2024, 1, 15)),
            one_off("75", date(2024, 3, 2)),
            one_off("30", date(2024, 4, 30)),
        ]
        whole = aggregator.accrued_amount(date(2024, 1, 1), date(2024, 4, 30), rows, "USD")
        first = aggregator.accrued_amount(date(2024, 1, 1), date(2024, 2, 29), rows, "USD")
        second = aggregator.accrued_amount(date(2024, 3, 1), date(2024, 4, 30), rows, "USD")
        assert whole == first + second


class TestFilters:
    """Tests for category and direction filters."""

    def test_direction_filter(self, aggregator):
        rows = [
            template("3000", name="Salary", direction=Direction.INFLOW),
            template("1000"),
        ]
        start, end = date(2024, 3, 1), date(2024, 3, 31)

        assert aggregator.accrued_amount(start, end, rows, "USD", direction=Direction.INFLOW) == Decimal("3000")
        assert aggregator.accrued_amount(start, end, rows, "USD", direction="outflow") == Decimal("1000")

    def test_category_filter(self, aggregator):
        food, home = uuid4(), uuid4()
        rows = [
            one_off("80", date(2024, 3, 3), category_id=food),
            one_off("20", date(2024, 3, 9), category_id=food),
            template("1000", category_id=home),
        ]
        total = aggregator.accrued_amount(date(2024, 3, 1), date(2024, 3, 31), rows, "USD", category_ids={food})
        assert total == Decimal("100")

    def test_accrued_by_category(self, aggregator):
        food, home = uuid4(), uuid4()
        rows = [
            one_off("80", date(2024, 3, 3), category_id=food),
            template("1000", category_id=home),
            one_off("15", date(2024, 3, 9)),
            template("3000", name="Salary", direction=Direction.INFLOW),
        ]

        totals = aggregator.accrued_by_category(date(2024, 3, 1), date(2024, 3, 31), rows, "USD")

        assert totals == {food: Decimal("80"), home: Decimal("1000"), None: Decimal("15")}


class TestCurrencyConversion:
    """Tests for multi-currency aggregation."""

    def test_amounts_converted_to_target(self):
        aggregator = AccrualAggregator(
            convert=RateTableConverter({"ARS": Decimal("1000")}),
            settings=EngineSettings(),
        )
        rows = [
            one_off("100", date(2024, 3, 3), currency="USD"),
            one_off("50000", date(2024, 3, 4), currency="ARS"),
        ]

        total = aggregator.accrued_amount(date(2024, 3, 1), date(2024, 3, 31), rows, "ARS")

        assert total == Decimal("150000")

    def test_failed_conversion_degrades_and_is_audited(self):
        storage = InMemoryAuditStorage()
        aggregator = AccrualAggregator(
            convert=RateTableConverter({"ARS": Decimal("1000")}),
            settings=EngineSettings(),
            audit_logger=AuditLogger(storage),
        )
        rows = [one_off("10", date(2024, 3, 3), currency="BRL")]

        total = aggregator.accrued_amount(date(2024, 3, 1), date(2024, 3, 31), rows, "USD")

        assert total == Decimal("10")
        (event,) = storage.events
        assert event.event_type == AuditEventType.CONVERSION_FAILED
        assert event.details["from_currency"] == "BRL"


class TestAccruedSeries:
    """Tests for the monthly income/expense series."""

    def test_series(self, aggregator):
        rows = [
            template("3000", name="Salary", direction=Direction.INFLOW, start_date=date(2024, 2, 1)),
            template("1000"),
        ]

        january, february = aggregator.accrued_series(["2024-01", "2024-02"], rows, "USD")

        assert january.period == "2024-01"
        assert january.income == 0
        assert january.expenses == Decimal("1000")
        assert january.savings_rate == 0

        assert february.income == Decimal("3000")
        assert february.net == Decimal("2000")
        assert february.savings_rate == Decimal("2000") / Decimal("3000") * 100
