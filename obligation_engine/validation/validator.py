"""
Two-Stage Validation Pipeline

DESIGN DECISION: Validation happens in two distinct stages:

STAGE 1 - SCHEMA VALIDATION:
- Required values present
- Amounts positive
- Day-of-month in range

STAGE 2 - SEMANTIC VALIDATION:
- Templates are never settled
- Currency code shape
- Reminder window sanity

IMPORTANT: Validation NEVER silently fixes issues. A non-positive amount
is rejected, not clamped. Only derived dates are ever clamped, and that
happens in the recurrence engine, not here.
"""

import re
from decimal import Decimal, InvalidOperation

from obligation_engine.errors import InvalidInputError
from obligation_engine.models.obligation import (
    Obligation,
    ValidationIssue,
    ValidationResult,
)


CURRENCY_CODE = re.compile(r"^[A-Z]{3}$")


class ObligationValidator:
    """
    Validates user-entered obligations before they become records.
    """

    def _validate_schema(
        self,
        obligation: Obligation,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 1: Schema validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not obligation.name:
            issues.append(ValidationIssue(
                field="name",
                issue_type="missing",
                message="Name is required",
                severity="error",
                suggested_fix="Give the obligation a short descriptive name",
            ))

        if obligation.amount <= 0:
            issues.append(ValidationIssue(
                field="amount",
                issue_type="invalid_value",
                message="Amount must be greater than zero",
                severity="error",
                suggested_fix="Enter the amount without a sign; direction is set separately",
            ))

        if obligation.recurring_day is not None and not 1 <= obligation.recurring_day <= 31:
            issues.append(ValidationIssue(
                field="recurring_day",
                issue_type="out_of_range",
                message=f"Recurring day ({obligation.recurring_day}) must be between 1 and 31",
                severity="error",
                suggested_fix="Pick a day of the month between 1 and 31",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def _validate_semantic(
        self,
        obligation: Obligation,
    ) -> tuple[bool, list[ValidationIssue]]:
        """
        Stage 2: Semantic validation.

        Returns: (is_valid, list_of_issues)
        """
        issues = []

        if not CURRENCY_CODE.match(obligation.currency):
            issues.append(ValidationIssue(
                field="currency",
                issue_type="invalid_format",
                message=f"Currency ({obligation.currency}) is not a 3-letter ISO code",
                severity="error",
            ))

        if obligation.reminder_days is not None and obligation.reminder_days < 0:
            issues.append(ValidationIssue(
                field="reminder_days",
                issue_type="out_of_range",
                message="Reminder days cannot be negative",
                severity="error",
            ))

        if not obligation.is_recurring and obligation.recurring_day is not None:
            issues.append(ValidationIssue(
                field="recurring_day",
                issue_type="ignored",
                message="Recurring day is ignored on a one-off obligation",
                severity="warning",
            ))

        if obligation.is_recurring and obligation.settlement is not None:
            issues.append(ValidationIssue(
                field="settlement",
                issue_type="inconsistent",
                message="Templates are never settled; settle their instances instead",
                severity="error",
            ))

        is_valid = not any(issue.severity == "error" for issue in issues)

        return is_valid, issues

    def validate(self, obligation: Obligation) -> ValidationResult:
        """
        Run the full two-stage validation pipeline.
        """
        all_issues = []

        schema_valid, schema_issues = self._validate_schema(obligation)
        all_issues.extend(schema_issues)

        # Only run stage 2 if stage 1 passes
        semantic_valid = False
        if schema_valid:
            semantic_valid, semantic_issues = self._validate_semantic(obligation)
            all_issues.extend(semantic_issues)

        warnings = [issue.message for issue in all_issues if issue.severity == "warning"]

        return ValidationResult(
            obligation_id=obligation.id,
            schema_valid=schema_valid,
            semantic_valid=semantic_valid,
            is_valid=schema_valid and semantic_valid,
            issues=all_issues,
            warnings=warnings,
        )

    def ensure_valid(self, obligation: Obligation) -> ValidationResult:
        """
        Validate and raise on the first error.

        Raises:
            InvalidInputError: naming the first offending field
        """
        result = self.validate(obligation)
        first = result.first_error
        if first is not None:
            raise InvalidInputError(first.field, first.message, issues=result.issues)
        return result

    def get_user_friendly_summary(
        self,
        result: ValidationResult,
    ) -> str:
        """
        Generate a short summary of validation results for display.
        """
        if result.is_valid and not result.warnings:
            return "All checks passed."

        lines = []

        errors = [issue for issue in result.issues if issue.severity == "error"]
        if errors:
            lines.append("Please fix the following:")
            for issue in errors:
                lines.append(f"   • {issue.message}")
                if issue.suggested_fix:
                    lines.append(f"     {issue.suggested_fix}")

        if result.warnings:
            if lines:
                lines.append("")
            lines.append("Please verify the following:")
            for warning in result.warnings:
                lines.append(f"   • {warning}")

        return "\n".join(lines)


def require_positive(value: Decimal, field: str) -> Decimal:
    """Reject zero, negative and non-finite monetary inputs."""
    try:
        value = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise InvalidInputError(field, f"{value!r} is not a number") from None
    if not value.is_finite():
        raise InvalidInputError(field, "must be a finite number")
    if value <= 0:
        raise InvalidInputError(field, "must be greater than zero")
    return value


def require_installments(count: int, field: str = "installments") -> int:
    if count < 1:
        raise InvalidInputError(field, "at least one installment is required")
    return count
