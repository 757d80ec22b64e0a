"""Transaction and bill record types and file importers."""

from billmatch.importers.base import (
    FinancialEvent,
    Frequency,
    RecurringPattern,
    Transaction,
    parse_amount,
    parse_date,
)

__all__ = [
    "FinancialEvent",
    "Frequency",
    "RecurringPattern",
    "Transaction",
    "parse_amount",
    "parse_date",
]
