"""
Audit Logger

DESIGN DECISION: Every state change the engine proposes and every
fail-soft fallback it takes is logged. This provides:
1. Traceability of confirmations and settlements
2. A record of calculations that ran on degraded data
3. Debugging capability without a debugger

The audit logger:
- Is synchronous, like the engine itself
- Gracefully handles storage failures (never breaks a calculation)
- Supports correlation IDs to trace related events
"""

import logging
import sys
from datetime import date
from typing import Optional
from uuid import UUID, uuid4

import structlog

from obligation_engine.config import EngineSettings, get_settings
from obligation_engine.models.audit import AuditEvent, AuditEventBuilder
from obligation_engine.services.interface import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit storage backend, when one is configured
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("obligation_engine.audit")

    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value == "error":
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    def log_obligation_added(
        self,
        obligation_id: UUID,
        name: str,
        is_template: bool,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.obligation_added(
            obligation_id=obligation_id,
            name=name,
            is_template=is_template,
            correlation_id=correlation_id,
        ))

    def log_validation_failed(
        self,
        obligation_id: UUID,
        issues: list[dict],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.validation_failed(
            obligation_id=obligation_id,
            issues=issues,
            correlation_id=correlation_id,
        ))

    def log_instance_confirmed(
        self,
        instance_id: UUID,
        template_id: UUID,
        month: str,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log creation of a template instance."""
        self.log(AuditEventBuilder.instance_confirmed(
            instance_id=instance_id,
            template_id=template_id,
            month=month,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_confirmation_skipped(
        self,
        template_id: UUID,
        month: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.confirmation_skipped(
            template_id=template_id,
            month=month,
            correlation_id=correlation_id,
        ))

    def log_batch_confirmed(
        self,
        month: str,
        count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.batch_confirmed(
            month=month,
            count=count,
            correlation_id=correlation_id,
        ))

    def log_template_snoozed(
        self,
        template_id: UUID,
        until: date,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.template_snoozed(
            template_id=template_id,
            until=until,
            correlation_id=correlation_id,
        ))

    def log_duplicate_suspected(
        self,
        template_id: UUID,
        month: str,
        matches: list[UUID],
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.duplicate_suspected(
            template_id=template_id,
            month=month,
            matches=matches,
            correlation_id=correlation_id,
        ))

    def log_settlement_recorded(
        self,
        obligation_id: UUID,
        kind: str,
        settled_at: date,
        amount: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a payment/receipt."""
        self.log(AuditEventBuilder.settlement_recorded(
            obligation_id=obligation_id,
            kind=kind,
            settled_at=settled_at,
            amount=amount,
            correlation_id=correlation_id,
        ))

    def log_settlement_reversed(
        self,
        obligation_id: UUID,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.settlement_reversed(
            obligation_id=obligation_id,
            correlation_id=correlation_id,
        ))

    def log_indicator_missing(
        self,
        period_month: str,
        operation: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log a calculation that fell back because a month had no data."""
        self.log(AuditEventBuilder.indicator_missing(
            period_month=period_month,
            operation=operation,
            correlation_id=correlation_id,
        ))

    def log_conversion_failed(
        self,
        from_currency: str,
        to_currency: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.conversion_failed(
            from_currency=from_currency,
            to_currency=to_currency,
            error_message=error_message,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a user action (e.g., confirming a month).
    Pass it through all subsequent operations.
    """
    return uuid4()


def configure_logging(settings: Optional[EngineSettings] = None) -> logging.Logger:
    """
    Route engine logs to stdout at the configured `log_level`.

    Safe to call more than once; the handler is only added the first time.
    """
    settings = settings or get_settings()

    root = logging.getLogger("obligation_engine")
    root.setLevel(settings.log_level)

    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter("%(message)s"))
        root.addHandler(handler)

    return root
