"""
Core Obligation Models

These models define the records the engine computes over:
1. Obligations (income or expense), which are either recurring templates
   or concrete one-off transactions / template instances
2. Settlements (payment or receipt records)
3. Payment instruments (credit/debit cards)
4. The diffs the engine hands back for persistence

DESIGN DECISION: Recurrence and settlement state are typed fields, not
prefixed strings in the free-form tag set. `tags` stays available for
user labels only.
"""

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    ValidationInfo,
    field_validator,
    model_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class Frequency(str, Enum):
    """How often an obligation repeats."""
    ONCE = "once"
    DAILY = "daily"
    WEEKLY = "weekly"
    BIWEEKLY = "biweekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    YEARLY = "yearly"


class Direction(str, Enum):
    """
    Money direction.

    Income and expense share one lifecycle; only the settlement label
    differs (received vs paid).
    """
    INFLOW = "inflow"
    OUTFLOW = "outflow"


class InstrumentKind(str, Enum):
    """Payment instrument type."""
    CREDIT = "credit"
    DEBIT = "debit"


class SettlementKind(str, Enum):
    """What a settlement record means for its obligation."""
    PAID = "paid"
    RECEIVED = "received"

    @classmethod
    def for_direction(cls, direction: Direction) -> "SettlementKind":
        return cls.RECEIVED if direction == Direction.INFLOW else cls.PAID


# =============================================================================
# RECURRENCE / SETTLEMENT STATE
# =============================================================================

class InstanceProvenance(BaseModel):
    """Links an instance to exactly one template and one calendar month."""

    template_id: UUID = Field(
        ...,
        description="Template this instance was generated from"
    )
    month: str = Field(
        ...,
        pattern=r"^\d{4}-(0[1-9]|1[0-2])$",
        description="Calendar month (YYYY-MM) the instance belongs to"
    )


class SettlementState(BaseModel):
    """Marks an obligation as paid/received on a given date."""

    kind: SettlementKind
    settled_at: date


# =============================================================================
# CORE OBLIGATION MODEL
# =============================================================================

class Obligation(BaseModel):
    """
    An income or expense record.

    With `is_recurring=True` the record is a TEMPLATE: it describes money
    that moves every period but is never itself money that moved.
    Otherwise it is a concrete transaction; when `provenance` is set it is
    the instance of a template for one month.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # Identity
    id: UUID = Field(
        default_factory=uuid4,
        description="Unique obligation ID"
    )

    name: str = Field(
        ...,
        max_length=200,
        description="Display name (e.g. 'Rent', 'Electricity')"
    )
    amount: Decimal = Field(
        ...,
        description="Amount in `currency`"
    )
    currency: str = Field(
        default="USD",
        description="ISO 4217 currency code"
    )
    is_recurring: bool = Field(
        default=False,
        description="True for templates"
    )
    frequency: Frequency = Field(
        default=Frequency.ONCE,
        validate_default=True,
        description="Repeat frequency"
    )
    direction: Direction = Field(
        default=Direction.OUTFLOW,
        description="Income (inflow) or expense (outflow)"
    )
    recurring_day: Optional[int] = Field(
        default=None,
        description="Day of month the obligation falls due (1-31)"
    )
    start_date: date = Field(
        ...,
        description="Transaction date, or start date for templates"
    )

    category_id: Optional[UUID] = None
    payment_instrument_id: Optional[UUID] = None
    tags: set[str] = Field(default_factory=set)
    is_active: bool = Field(
        default=True,
        description="Inactive templates generate nothing and accrue nothing"
    )

    # Recurrence state
    provenance: Optional[InstanceProvenance] = None
    snoozed_until: Optional[date] = None
    reminder_days: Optional[int] = None

    # Settlement state
    settlement: Optional[SettlementState] = None

    @field_validator('currency')
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        """Currency codes are compared upper-case."""
        return v.upper()

    @field_validator('frequency')
    @classmethod
    def template_repeats(cls, v: Frequency, info: ValidationInfo) -> Frequency:
        """Templates must repeat."""
        if info.data.get('is_recurring') and v == Frequency.ONCE:
            raise ValueError("A recurring template needs a repeating frequency")
        return v

    @model_validator(mode='after')
    def validate_recurrence(self) -> 'Obligation':
        """Instances are never templates."""
        if self.is_recurring and self.provenance is not None:
            raise ValueError("A template cannot carry instance provenance")

        return self

    @property
    def is_template(self) -> bool:
        return self.is_recurring

    @property
    def is_instance(self) -> bool:
        return self.provenance is not None

    @property
    def is_settled(self) -> bool:
        return self.settlement is not None

    @property
    def normalized_name(self) -> str:
        """Name as compared by duplicate detection."""
        return self.name.strip().lower()


class Settlement(BaseModel):
    """
    A payment (expense) or receipt (income) record.

    At most one exists per obligation; `obligation_id` is the upsert key.
    """

    obligation_id: UUID
    amount: Decimal
    currency: str
    settled_at: date
    kind: SettlementKind


class PaymentInstrument(BaseModel):
    """
    A card or account referenced by obligations.

    Only credit instruments with a closing day shift the accounting month.
    """

    id: UUID = Field(default_factory=uuid4)
    kind: InstrumentKind
    statement_closing_day: Optional[int] = Field(
        default=None,
        ge=1,
        le=31,
        description="Day of month the statement closes"
    )


# =============================================================================
# ENGINE OUTPUTS
# =============================================================================

class Suggestion(BaseModel):
    """A pending template for a month, with the amount/date we propose."""

    template: Obligation
    month: str
    suggested_amount: Decimal
    suggested_date: date


class ChangeSet(BaseModel):
    """
    Record diff produced by a mutating operation.

    The caller persists it; the engine never touches storage.
    """

    created_obligations: list[Obligation] = Field(default_factory=list)
    updated_obligations: list[Obligation] = Field(default_factory=list)
    created_settlements: list[Settlement] = Field(default_factory=list)
    deleted_settlements: list[UUID] = Field(
        default_factory=list,
        description="Obligation ids whose settlement must be deleted"
    )

    @property
    def is_empty(self) -> bool:
        return not (
            self.created_obligations
            or self.updated_obligations
            or self.created_settlements
            or self.deleted_settlements
        )

    def merge(self, other: "ChangeSet") -> "ChangeSet":
        """Combine two diffs, keeping their order."""
        return ChangeSet(
            created_obligations=self.created_obligations + other.created_obligations,
            updated_obligations=self.updated_obligations + other.updated_obligations,
            created_settlements=self.created_settlements + other.created_settlements,
            deleted_settlements=self.deleted_settlements + other.deleted_settlements,
        )


class BatchConfirmation(BaseModel):
    """Result of confirming every pending template of a month."""

    month: str
    count: int = Field(ge=0)
    changes: ChangeSet = Field(default_factory=ChangeSet)


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single validation issue found."""

    field: str = Field(
        ...,
        description="Field with the issue"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'missing', 'out_of_range', 'inconsistent')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        ...,
        pattern="^(error|warning|info)$",
        description="Issue severity"
    )
    suggested_fix: Optional[str] = Field(
        default=None,
        description="Suggested fix if available"
    )


class ValidationResult(BaseModel):
    """
    Result of the two-stage validation.

    Stage 1: Schema validation (required values, ranges)
    Stage 2: Semantic validation (consistency checks)
    """

    obligation_id: UUID
    schema_valid: bool
    semantic_valid: bool
    is_valid: bool
    issues: list[ValidationIssue] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        """Check if there are any error-level issues."""
        return any(issue.severity == "error" for issue in self.issues)

    @property
    def error_count(self) -> int:
        """Count error-level issues."""
        return sum(1 for issue in self.issues if issue.severity == "error")

    @property
    def first_error(self) -> Optional[ValidationIssue]:
        return next((i for i in self.issues if i.severity == "error"), None)
