"""
Tests for the two-stage obligation validator.
"""

import pytest
from datetime import date
from decimal import Decimal

from obligation_engine.errors import InvalidInputError
from obligation_engine.models import Frequency, Obligation, SettlementKind, SettlementState
from obligation_engine.validation import (
    ObligationValidator,
    require_installments,
    require_positive,
)


@pytest.fixture
def validator():
    return ObligationValidator()


def obligation(**overrides) -> Obligation:
    data = dict(name="Internet", amount=Decimal("45"), start_date=date(2024, 3, 1))
    data.update(overrides)
    return Obligation(**data)


class TestSchemaStage:
    """Tests for stage 1."""

    def test_valid_obligation_passes(self, validator):
        result = validator.validate(obligation())
        assert result.is_valid
        assert result.issues == []

    def test_non_positive_amount(self, validator):
        result = validator.validate(obligation(amount=Decimal("0")))

        assert not result.schema_valid
        assert result.first_error.field == "amount"

    def test_blank_name(self, validator):
        result = validator.validate(obligation(name="   "))
        assert result.first_error.field == "name"

    def test_recurring_day_out_of_range(self, validator):
        result = validator.validate(obligation(
            is_recurring=True, frequency=Frequency.MONTHLY, recurring_day=0,
        ))
        assert result.first_error.field == "recurring_day"

    def test_semantic_stage_skipped_after_schema_errors(self, validator):
        """Stage 2 only runs once stage 1 passes."""
        result = validator.validate(obligation(amount=Decimal("-1"), currency="DOLLARS"))

        assert result.error_count == 1
        assert result.semantic_valid is False


class TestSemanticStage:
    """Tests for stage 2."""

    def test_bad_currency_code(self, validator):
        result = validator.validate(obligation(currency="usd1"))

        assert result.schema_valid
        assert not result.semantic_valid
        assert result.first_error.field == "currency"

    def test_negative_reminder_days(self, validator):
        result = validator.validate(obligation(reminder_days=-1))
        assert result.first_error.field == "reminder_days"

    def test_recurring_day_on_one_off_is_a_warning(self, validator):
        result = validator.validate(obligation(recurring_day=10))

        assert result.is_valid
        assert not result.has_errors
        assert result.warnings == ["Recurring day is ignored on a one-off obligation"]

    def test_settled_template_rejected(self, validator):
        template = obligation(
            is_recurring=True,
            frequency=Frequency.MONTHLY,
            settlement=SettlementState(kind=SettlementKind.PAID, settled_at=date(2024, 3, 2)),
        )
        result = validator.validate(template)
        assert result.first_error.field == "settlement"


class TestEnsureValid:
    """Tests for raising on invalid input."""

    def test_raises_with_field_and_issues(self, validator):
        with pytest.raises(InvalidInputError) as exc_info:
            validator.ensure_valid(obligation(amount=Decimal("-5")))

        assert exc_info.value.field == "amount"
        assert exc_info.value.issues[0].issue_type == "invalid_value"
        assert isinstance(exc_info.value, ValueError)

    def test_returns_result_when_valid(self, validator):
        assert validator.ensure_valid(obligation()).is_valid


class TestSummary:
    """Tests for the user-facing summary."""

    def test_all_passed(self, validator):
        assert validator.get_user_friendly_summary(validator.validate(obligation())) == "All checks passed."

    def test_errors_include_fix(self, validator):
        summary = validator.get_user_friendly_summary(validator.validate(obligation(amount=Decimal("0"))))

        assert "Please fix the following:" in summary
        assert "Amount must be greater than zero" in summary
        assert "direction is set separately" in summary

    def test_warnings_listed(self, validator):
        summary = validator.get_user_friendly_summary(validator.validate(obligation(recurring_day=3)))
        assert summary.startswith("Please verify the following:")


class TestHelpers:
    """Tests for the standalone input guards."""

    def test_require_positive(self):
        assert require_positive(Decimal("0.01"), "amount") == Decimal("0.01")
        with pytest.raises(InvalidInputError, match="cash_price"):
            require_positive(Decimal("0"), "cash_price")

    @pytest.mark.parametrize("value", [Decimal("NaN"), Decimal("sNaN"), Decimal("Infinity"), "abc", None])
    def test_require_positive_rejects_non_numbers(self, value):
        with pytest.raises(InvalidInputError) as exc_info:
            require_positive(value, "amount")
        assert exc_info.value.field == "amount"

    def test_require_positive_accepts_numeric_strings(self):
        assert require_positive("12.50", "amount") == Decimal("12.50")

    def test_require_installments(self):
        assert require_installments(1) == 1
        with pytest.raises(InvalidInputError) as exc_info:
            require_installments(0)
        assert exc_info.value.field == "installments"
