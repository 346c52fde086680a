"""
In-Memory Implementations

Used by callers that already hold their data in memory (fixtures,
notebooks, tests) and as the reference behaviour for the interfaces.
"""

from typing import Iterable, Optional
from uuid import UUID

from obligation_engine.models.audit import AuditEvent
from obligation_engine.models.economics import EconomicIndicator
from obligation_engine.services.interface import (
    AuditStorageInterface,
    IndicatorSource,
)


class InMemoryIndicatorSource(IndicatorSource):
    """
    Indicator rows held in a dict keyed by month.

    When the same month appears twice, the later row wins.
    """

    def __init__(self, indicators: Iterable[EconomicIndicator] = ()):
        self._rows: dict[str, EconomicIndicator] = {}
        for indicator in indicators:
            self._rows[indicator.period_month] = indicator

    def get(self, period_month: str) -> Optional[EconomicIndicator]:
        return self._rows.get(period_month)

    def months(self) -> list[str]:
        return sorted(self._rows)

    def add(self, indicator: EconomicIndicator) -> None:
        self._rows[indicator.period_month] = indicator

    def latest(self) -> Optional[EconomicIndicator]:
        """Most recent row, if any."""
        months = self.months()
        return self._rows[months[-1]] if months else None

    def __len__(self) -> int:
        return len(self._rows)


class InMemoryAuditStorage(AuditStorageInterface):
    """Append-only list of audit events."""

    def __init__(self):
        self._events: list[AuditEvent] = []

    def append_event(self, event: AuditEvent) -> bool:
        self._events.append(event)
        return True

    def get_events_by_entity(
        self,
        entity_type: str,
        entity_id: UUID,
    ) -> list[AuditEvent]:
        return [
            e for e in self._events
            if e.entity_type == entity_type and e.entity_id == entity_id
        ]

    def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        return list(reversed(self._events))[:limit]

    @property
    def events(self) -> list[AuditEvent]:
        return list(self._events)
