"""Record types shared by the engine, plus base classes for all importers."""

from __future__ import annotations

import calendar
import csv
import io
import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, replace
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from enum import Enum
from pathlib import Path
from typing import Any

import chardet

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


class Frequency(str, Enum):
    """Billing cadence of a recurring pattern."""

    WEEKLY = "weekly"
    BIWEEKLY = "bi-weekly"
    MONTHLY = "monthly"
    QUARTERLY = "quarterly"
    ANNUAL = "annual"

    @classmethod
    def parse(cls, raw: str | None) -> Frequency:
        """Parse a frequency label, defaulting to monthly for unknown values."""
        key = (raw or "").strip().lower().replace("_", "-")
        return _FREQUENCY_ALIASES.get(key, cls.MONTHLY)


_FREQUENCY_ALIASES: dict[str, Frequency] = {
    "weekly": Frequency.WEEKLY,
    "bi-weekly": Frequency.BIWEEKLY,
    "biweekly": Frequency.BIWEEKLY,
    "fortnightly": Frequency.BIWEEKLY,
    "monthly": Frequency.MONTHLY,
    "quarterly": Frequency.QUARTERLY,
    "annual": Frequency.ANNUAL,
    "annually": Frequency.ANNUAL,
    "yearly": Frequency.ANNUAL,
}


def add_months(d: date, months: int) -> date:
    """Shift a date by whole calendar months, clamping to the month's last day."""
    total = d.month - 1 + months
    year = d.year + total // 12
    month = total % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def advance_date(d: date, frequency: Frequency) -> date:
    """Return the date one billing cycle after ``d``."""
    match frequency:
        case Frequency.WEEKLY:
            return d + timedelta(days=7)
        case Frequency.BIWEEKLY:
            return d + timedelta(days=14)
        case Frequency.QUARTERLY:
            return add_months(d, 3)
        case Frequency.ANNUAL:
            return add_months(d, 12)
        case _:
            return add_months(d, 1)


def parse_amount(raw: Any) -> Decimal:
    """Coerce an amount field to Decimal. Malformed or missing values become zero."""
    if raw is None or isinstance(raw, bool):
        return ZERO
    if isinstance(raw, Decimal):
        return raw
    text = str(raw).strip().replace(",", "").replace("$", "")
    if not text:
        return ZERO
    # Accounting-style negatives: (12.34)
    if text.startswith("(") and text.endswith(")"):
        text = f"-{text[1:-1]}"
    try:
        value = Decimal(text)
    except InvalidOperation:
        logger.warning("Unparseable amount %r, treating as 0", raw)
        return ZERO
    if not value.is_finite():
        logger.warning("Non-finite amount %r, treating as 0", raw)
        return ZERO
    return value


def parse_date(raw: Any) -> date | None:
    """Coerce a date field to a calendar date, or None when absent or malformed.

    Accepts ``date``/``datetime`` objects, ISO-8601 strings (a time part is
    ignored) and exported timestamp objects of the form ``{"_seconds": n}``.
    """
    if raw is None:
        return None
    if isinstance(raw, datetime):
        return raw.date()
    if isinstance(raw, date):
        return raw
    if isinstance(raw, Mapping) and "_seconds" in raw:
        try:
            return datetime.fromtimestamp(float(raw["_seconds"]), tz=timezone.utc).date()
        except (TypeError, ValueError, OverflowError):
            logger.warning("Unparseable timestamp %r, ignoring date", raw)
            return None
    text = str(raw).strip()
    if not text:
        return None
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        logger.warning("Unparseable date %r, ignoring date", raw)
        return None


def _first(data: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = data.get(key)
        if value is not None:
            return value
    return None


def _optional_str(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass(frozen=True)
class Transaction:
    """An observed bank event. Read-only to the engine.

    Amounts are signed: negative values are outflows.
    """

    id: str | None
    name: str
    amount: Decimal
    date: date | None
    account_id: str | None = None
    merchant_name: str | None = None
    pending: bool = False
    institution_name: str | None = None
    linked_event_id: str | None = None  # set once a bill has claimed this transaction

    def __post_init__(self):
        object.__setattr__(self, "amount", parse_amount(self.amount))
        object.__setattr__(self, "date", parse_date(self.date))

    @property
    def display_name(self) -> str:
        """Text used for matching: merchant name when present, else the raw name."""
        return self.merchant_name or self.name or ""

    @property
    def is_outflow(self) -> bool:
        return self.amount < 0

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Transaction:
        return cls(
            id=_optional_str(_first(data, "transaction_id", "id")),
            name=str(data.get("name") or ""),
            amount=parse_amount(data.get("amount")),
            date=parse_date(data.get("date")),
            account_id=_optional_str(data.get("account_id")),
            merchant_name=_optional_str(data.get("merchant_name")),
            pending=bool(data.get("pending", False)),
            institution_name=_optional_str(data.get("institution_name")),
            linked_event_id=_optional_str(_first(data, "linkedEventId", "linked_event_id")),
        )


@dataclass(frozen=True)
class FinancialEvent:
    """An expected obligation (bill) that a transaction may satisfy."""

    id: str | None
    name: str
    amount: Decimal
    due_date: date | None = None
    paid_date: date | None = None
    merchant_names: tuple[str, ...] = ()
    recurring_pattern_id: str | None = None
    linked_transaction_id: str | None = None

    def __post_init__(self):
        # Loosely typed inputs: bad amounts become zero, bad dates become None
        object.__setattr__(self, "amount", parse_amount(self.amount))
        object.__setattr__(self, "due_date", parse_date(self.due_date))
        object.__setattr__(self, "paid_date", parse_date(self.paid_date))

    @property
    def anchor_date(self) -> date | None:
        """Date matching windows are centred on: paid date, else due date."""
        return self.paid_date or self.due_date

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> FinancialEvent:
        names = _first(data, "merchantNames", "merchant_names") or ()
        if isinstance(names, str):
            names = (names,)
        return cls(
            id=_optional_str(data.get("id")),
            name=str(data.get("name") or ""),
            amount=parse_amount(data.get("amount")),
            due_date=parse_date(_first(data, "dueDate", "due_date")),
            paid_date=parse_date(_first(data, "paidDate", "paid_date")),
            merchant_names=tuple(str(n) for n in names if n),
            recurring_pattern_id=_optional_str(
                _first(data, "recurringPatternId", "recurring_pattern_id")
            ),
            linked_transaction_id=_optional_str(
                _first(data, "linkedTransactionId", "linked_transaction_id")
            ),
        )


@dataclass(frozen=True)
class RecurringPattern:
    """Template for a bill's cadence and next expected occurrence."""

    id: str
    merchant: str
    amount: Decimal
    frequency: Frequency = Frequency.MONTHLY
    next_occurrence: date | None = None

    def advance(self) -> RecurringPattern:
        """Return a copy moved forward by one billing cycle."""
        if self.next_occurrence is None:
            return self
        return replace(self, next_occurrence=advance_date(self.next_occurrence, self.frequency))

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> RecurringPattern:
        return cls(
            id=str(data.get("id") or ""),
            merchant=str(_first(data, "merchant", "name") or ""),
            amount=parse_amount(data.get("amount")),
            frequency=Frequency.parse(data.get("frequency")),
            next_occurrence=parse_date(_first(data, "nextOccurrence", "next_occurrence")),
        )


class TransactionImporter(ABC):
    """Abstract base class for all transaction importers."""

    @abstractmethod
    def identify(self, filepath: str | Path) -> bool:
        """Return True if this importer can handle the given file."""
        raise NotImplementedError

    @abstractmethod
    def extract(self, filepath: str | Path) -> list[Transaction]:
        """Parse the file and return a list of Transaction objects."""
        raise NotImplementedError


class CsvImporter(TransactionImporter):
    """Base class for CSV-based importers.

    Handles encoding detection and CSV reading.
    Subclasses must implement _parse_row and may override expected_headers.
    """

    # Header keywords that must all appear (lowercased) for identification
    expected_headers: list[str] = []

    delimiter: str = ","

    def identify(self, filepath: str | Path) -> bool:
        filepath = Path(filepath)
        if filepath.suffix.lower() != ".csv":
            return False

        try:
            content = self._read_file(filepath)
        except OSError:
            return False
        header = content.split("\n", 1)[0].lower()
        return all(kw in header for kw in self.expected_headers)

    def extract(self, filepath: str | Path) -> list[Transaction]:
        """Read CSV and parse each row into Transaction objects."""
        content = self._read_file(Path(filepath))
        reader = csv.DictReader(io.StringIO(content), delimiter=self.delimiter)
        transactions = []
        for row in reader:
            # Normalise header case and strip whitespace from keys and values
            row = {k.strip().lower(): v.strip() if v else "" for k, v in row.items() if k}
            tx = self._parse_row(row)
            if tx is not None:
                transactions.append(tx)
        return transactions

    @abstractmethod
    def _parse_row(self, row: dict[str, str]) -> Transaction | None:
        """Parse a single CSV row into a Transaction, or None to skip."""
        raise NotImplementedError

    def _read_file(self, filepath: Path) -> str:
        """Decode a bank export, trying chardet's guess before common bank encodings."""
        raw = filepath.read_bytes()
        guess = chardet.detect(raw).get("encoding")
        for encoding in dict.fromkeys(e for e in (guess, "utf-8-sig", "cp1252") if e):
            try:
                return raw.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                logger.debug("Could not decode %s as %s", filepath.name, encoding)
        # Every byte sequence is valid latin-1
        return raw.decode("latin-1")
