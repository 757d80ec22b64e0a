"""Generic bank CSV export importer.

Banks disagree on column names, so headers are resolved through alias lists.
Amounts come either from a single signed ``amount`` column or from a
``debit``/``credit`` pair (debits become negative).
"""

from __future__ import annotations

import logging
from datetime import date, datetime

from billmatch.importers.base import CsvImporter, Transaction, parse_amount, parse_date

logger = logging.getLogger(__name__)

COLUMN_ALIASES: dict[str, list[str]] = {
    "id": ["transaction_id", "id", "reference"],
    "date": ["date", "posted date", "posting date", "transaction date"],
    "name": ["name", "description", "payee", "details"],
    "merchant": ["merchant_name", "merchant"],
    "amount": ["amount"],
    "debit": ["debit", "withdrawal"],
    "credit": ["credit", "deposit"],
    "account": ["account_id", "account"],
    "institution": ["institution_name", "institution", "bank"],
}


DATE_FORMATS = ["%Y-%m-%d", "%m/%d/%Y", "%m/%d/%y", "%d.%m.%Y"]


def _column(row: dict[str, str], field: str) -> str:
    for alias in COLUMN_ALIASES[field]:
        value = row.get(alias)
        if value:
            return value
    return ""


def _parse_csv_date(value: str) -> date | None:
    for fmt in DATE_FORMATS:
        try:
            return datetime.strptime(value, fmt).date()
        except ValueError:
            continue
    return parse_date(value)


class BankCsvImporter(CsvImporter):
    """Importer for CSV statements with a date, description and amount column."""

    expected_headers = ["date"]

    def _parse_row(self, row: dict[str, str]) -> Transaction | None:
        name = _column(row, "name")
        if not name:
            return None

        if _column(row, "amount"):
            amount = parse_amount(_column(row, "amount"))
        else:
            amount = parse_amount(_column(row, "credit")) - abs(parse_amount(_column(row, "debit")))

        tx_date = _parse_csv_date(_column(row, "date"))
        if tx_date is None:
            logger.debug("CSV row without a usable date: %s", name)

        return Transaction(
            id=_column(row, "id") or None,
            name=name,
            amount=amount,
            date=tx_date,
            account_id=_column(row, "account") or None,
            merchant_name=_column(row, "merchant") or None,
            institution_name=_column(row, "institution") or None,
        )
