"""
Obligation Engine - Source Package

Accrual and valuation core for a personal-finance tracker: recurring
income/expense templates, their monthly instances and settlements,
period accrual totals, and inflation-adjusted restatement of cash flows.

DESIGN PRINCIPLES:
1. Pure computation over records supplied by the caller
2. "Today" is always a parameter, never read from a clock
3. Mutations come back as record diffs for the caller to persist
4. Missing economic data degrades softly, never raises
5. Money is Decimal end to end, rounded only for display
"""

__version__ = "1.0.0"
__author__ = "Obligation Engine Team"
