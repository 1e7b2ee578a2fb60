"""Net income ledger package."""

from fintrack.ledger.debounce import Debouncer
from fintrack.ledger.net_income import NetIncomeLedger, format_currency

__all__ = ["Debouncer", "NetIncomeLedger", "format_currency"]
