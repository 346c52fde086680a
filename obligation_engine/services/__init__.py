"""
Collaborator Services Package

Interfaces and in-memory implementations for what the engine reads from
its environment: economic indicators, exchange rates, audit storage.
"""

from obligation_engine.services.interface import (
    AuditStorageInterface,
    IndicatorSource,
)
from obligation_engine.services.memory import (
    InMemoryAuditStorage,
    InMemoryIndicatorSource,
)
from obligation_engine.services.currency import (
    CurrencyConverter,
    RateNotFoundError,
    RateTableConverter,
    identity_converter,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "IndicatorSource",
    # In-memory implementations
    "InMemoryAuditStorage",
    "InMemoryIndicatorSource",
    # Currency
    "CurrencyConverter",
    "RateNotFoundError",
    "RateTableConverter",
    "identity_converter",
]
