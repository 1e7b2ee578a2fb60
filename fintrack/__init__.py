"""
Finance Tracker - Core Package

The bookkeeping core of a weekly personal finance tracker: users log
income and expense transactions per weekday, keep a running net-income
balance, and track informal IOUs ("cash flow" items).

DESIGN PRINCIPLES:
1. The balance always equals the signed sum of active transactions
   plus manual adjustments
2. Every transaction change is paired with exactly one ledger call
3. Reads are never stale; only durability is deferred
4. Failures are reported, never fatal
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
