"""Inflation and exchange-rate valuation."""

from obligation_engine.valuation.decision import (
    build_synthetic_indicators,
    compare_cash_vs_installments,
    recommend_financing,
    savings_pct,
)
from obligation_engine.valuation.economics import EconomicValuationEngine

__all__ = [
    "EconomicValuationEngine",
    "build_synthetic_indicators",
    "compare_cash_vs_installments",
    "recommend_financing",
    "savings_pct",
]
