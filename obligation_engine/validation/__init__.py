"""Validation package."""

from obligation_engine.validation.validator import (
    ObligationValidator,
    require_installments,
    require_positive,
)

__all__ = [
    "ObligationValidator",
    "require_installments",
    "require_positive",
]
