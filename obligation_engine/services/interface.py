"""
Abstract Collaborator Interfaces

DESIGN DECISION: Everything the engine reads from its environment sits
behind a small interface. This allows us to:
1. Feed indicators from a database, an API or a fixture without
   touching the calculations
2. Use in-memory implementations for testing
3. Keep the engine free of network and storage code

The interfaces are intentionally narrow: one lookup, one append.
"""

from abc import ABC, abstractmethod
from typing import Optional
from uuid import UUID

from obligation_engine.models.audit import AuditEvent
from obligation_engine.models.economics import EconomicIndicator


class IndicatorSource(ABC):
    """
    Source of monthly economic indicators.

    A missing month is a normal answer (None), not an error.
    """

    @abstractmethod
    def get(self, period_month: str) -> Optional[EconomicIndicator]:
        """
        Look up the indicator row for a month.

        Args:
            period_month: Month key, "YYYY-MM"

        Returns:
            The row if known, None otherwise
        """
        pass

    @abstractmethod
    def months(self) -> list[str]:
        """
        List the months this source has rows for, oldest first.
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        """
        Get all events for a specific entity, in chronological order.
        """
        pass

    @abstractmethod
    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """
        Get the most recent audit events (newest first).
        """
        pass
