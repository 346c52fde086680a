"""
Data Models Package

This package contains all Pydantic models used by the Obligation Engine.
All records flowing in and out of the engine conform to these schemas.
"""

from obligation_engine.models.obligation import (
    BatchConfirmation,
    ChangeSet,
    Direction,
    Frequency,
    InstanceProvenance,
    InstrumentKind,
    Obligation,
    PaymentInstrument,
    Settlement,
    SettlementKind,
    SettlementState,
    Suggestion,
    ValidationIssue,
    ValidationResult,
)
from obligation_engine.models.economics import (
    CurrencyComparison,
    EconomicIndicator,
    FinancingChoice,
    FinancingDecision,
    FinancingRow,
    InstallmentValuation,
    PaymentStrategy,
    PlanAnalysis,
    Projection,
)
from obligation_engine.models.budget import (
    AccruedPoint,
    BudgetPeriod,
    BudgetStatus,
    BudgetSummary,
    CategoryAllocation,
    CategoryBudgetStatus,
)
from obligation_engine.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Obligation models
    "BatchConfirmation",
    "ChangeSet",
    "Direction",
    "Frequency",
    "InstanceProvenance",
    "InstrumentKind",
    "Obligation",
    "PaymentInstrument",
    "Settlement",
    "SettlementKind",
    "SettlementState",
    "Suggestion",
    "ValidationIssue",
    "ValidationResult",
    # Economic models
    "CurrencyComparison",
    "EconomicIndicator",
    "FinancingChoice",
    "FinancingDecision",
    "FinancingRow",
    "InstallmentValuation",
    "PaymentStrategy",
    "PlanAnalysis",
    "Projection",
    # Budget models
    "AccruedPoint",
    "BudgetPeriod",
    "BudgetStatus",
    "BudgetSummary",
    "CategoryAllocation",
    "CategoryBudgetStatus",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
