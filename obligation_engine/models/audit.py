"""
Audit Models for the Obligation Engine

Every state change the engine proposes, and every fail-soft fallback it
takes, is described by an audit event. This provides:
1. Traceability of confirmations and settlements
2. Visibility into silently degraded calculations (missing indicators,
   failed conversions)
3. The ability to reconstruct why a total came out the way it did

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Records
    OBLIGATION_ADDED = "obligation_added"
    VALIDATION_FAILED = "validation_failed"

    # Recurrence lifecycle
    INSTANCE_CONFIRMED = "instance_confirmed"
    CONFIRMATION_SKIPPED = "confirmation_skipped"
    BATCH_CONFIRMED = "batch_confirmed"
    TEMPLATE_SNOOZED = "template_snoozed"
    DUPLICATE_SUSPECTED = "duplicate_suspected"

    # Settlement lifecycle
    SETTLEMENT_RECORDED = "settlement_recorded"
    SETTLEMENT_REVERSED = "settlement_reversed"

    # Fail-soft fallbacks
    INDICATOR_MISSING = "indicator_missing"
    CONVERSION_FAILED = "conversion_failed"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class AuditEvent(BaseModel):
    """
    A single audit event.

    This is the core unit of our audit trail.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event was recorded (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'template', 'obligation', 'indicator')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., one confirm-all run)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.instance_confirmed(instance_id, template_id, month, amount)
        event = AuditEventBuilder.indicator_missing("2024-03", "real_value")
    """

    @staticmethod
    def obligation_added(
        obligation_id: UUID,
        name: str,
        is_template: bool,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        kind = "template" if is_template else "obligation"
        return AuditEvent(
            event_type=AuditEventType.OBLIGATION_ADDED,
            entity_type=kind,
            entity_id=obligation_id,
            correlation_id=correlation_id,
            description=f"{kind.capitalize()} added: {name}",
            details={"name": name},
        )

    @staticmethod
    def validation_failed(
        obligation_id: UUID,
        issues: list[dict],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.VALIDATION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="obligation",
            entity_id=obligation_id,
            correlation_id=correlation_id,
            description=f"Validation failed with {len(issues)} issues",
            details={"issues": issues},
        )

    @staticmethod
    def instance_confirmed(
        instance_id: UUID,
        template_id: UUID,
        month: str,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INSTANCE_CONFIRMED,
            entity_type="obligation",
            entity_id=instance_id,
            correlation_id=correlation_id,
            description=f"Instance confirmed for {month}: {amount}",
            details={
                "template_id": str(template_id),
                "month": month,
                "amount": amount,
            },
        )

    @staticmethod
    def confirmation_skipped(
        template_id: UUID,
        month: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONFIRMATION_SKIPPED,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Template already confirmed for {month}",
            details={"month": month},
        )

    @staticmethod
    def batch_confirmed(
        month: str,
        count: int,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.BATCH_CONFIRMED,
            entity_type="month",
            correlation_id=correlation_id,
            description=f"Confirmed {count} pending templates for {month}",
            details={"month": month, "count": count},
        )

    @staticmethod
    def template_snoozed(
        template_id: UUID,
        until: date,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TEMPLATE_SNOOZED,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"Template snoozed until {until.isoformat()}",
            details={"snoozed_until": until.isoformat()},
        )

    @staticmethod
    def duplicate_suspected(
        template_id: UUID,
        month: str,
        matches: list[UUID],
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DUPLICATE_SUSPECTED,
            severity=AuditSeverity.WARNING,
            entity_type="template",
            entity_id=template_id,
            correlation_id=correlation_id,
            description=f"{len(matches)} possible duplicates in {month}",
            details={
                "month": month,
                "matches": [str(m) for m in matches],
            },
        )

    @staticmethod
    def settlement_recorded(
        obligation_id: UUID,
        kind: str,
        settled_at: date,
        amount: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_RECORDED,
            entity_type="obligation",
            entity_id=obligation_id,
            correlation_id=correlation_id,
            description=f"Marked {kind} on {settled_at.isoformat()}",
            details={
                "kind": kind,
                "settled_at": settled_at.isoformat(),
                "amount": amount,
            },
        )

    @staticmethod
    def settlement_reversed(
        obligation_id: UUID,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_REVERSED,
            entity_type="obligation",
            entity_id=obligation_id,
            correlation_id=correlation_id,
            description="Settlement undone",
        )

    @staticmethod
    def indicator_missing(
        period_month: str,
        operation: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.INDICATOR_MISSING,
            severity=AuditSeverity.WARNING,
            entity_type="indicator",
            correlation_id=correlation_id,
            description=f"No economic indicator for {period_month} ({operation})",
            details={
                "period_month": period_month,
                "operation": operation,
            },
        )

    @staticmethod
    def conversion_failed(
        from_currency: str,
        to_currency: str,
        error_message: str,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONVERSION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="currency",
            correlation_id=correlation_id,
            description=f"Could not convert {from_currency} to {to_currency}; amount kept unconverted",
            details={
                "from_currency": from_currency,
                "to_currency": to_currency,
                "error": error_message,
            },
        )
