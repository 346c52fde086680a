"""Recurrence engine package."""

from obligation_engine.recurrence.engine import RecurrenceEngine, pending_for_month

__all__ = ["RecurrenceEngine", "pending_for_month"]
