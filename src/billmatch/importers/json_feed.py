"""Importer for JSON exports from the bank-aggregation feed, plus bill loading."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from billmatch.importers.base import FinancialEvent, Transaction, TransactionImporter

logger = logging.getLogger(__name__)


def _read_records(filepath: str | Path, key: str) -> list[dict[str, Any]]:
    """Read a JSON file holding either a list of records or ``{key: [...]}``."""
    filepath = Path(filepath)
    try:
        data = json.loads(filepath.read_text(encoding="utf-8-sig"))
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in {filepath}: {e}") from e

    if isinstance(data, dict):
        data = data.get(key, [])
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of {key} in {filepath}")

    records = [r for r in data if isinstance(r, dict)]
    skipped = len(data) - len(records)
    if skipped:
        logger.warning("Skipped %d non-object entries in %s", skipped, filepath)
    return records


class JsonFeedImporter(TransactionImporter):
    """Aggregator transaction export: ``[{...}, ...]`` or ``{"transactions": [...]}``."""

    def identify(self, filepath: str | Path) -> bool:
        return Path(filepath).suffix.lower() == ".json"

    def extract(self, filepath: str | Path) -> list[Transaction]:
        return [Transaction.from_dict(r) for r in _read_records(filepath, "transactions")]


def load_bills(filepath: str | Path) -> list[FinancialEvent]:
    """Load bills from ``[{...}, ...]`` or ``{"bills": [...]}``."""
    return [FinancialEvent.from_dict(r) for r in _read_records(filepath, "bills")]
