"""Recurring subscription detection from transaction history.

Groups outflows by normalized merchant name, then looks for a stable amount
and a regular monthly, quarterly or annual interval between charges.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum
from typing import Any

from billmatch.categorize.rules import CategorySuggester
from billmatch.config.schema import SubscriptionConfig
from billmatch.importers.base import Frequency, Transaction, advance_date

logger = logging.getLogger(__name__)

RECENT_CHARGE_COUNT = 3
DAYS_PER_MONTH = 30
FULL_HISTORY_MONTHS = 3

OCCURRENCE_WEIGHT = 0.4
AMOUNT_WEIGHT = 0.3
REGULARITY_WEIGHT = 0.2
TIMESPAN_WEIGHT = 0.1

_CORPORATE_SUFFIX = re.compile(
    r"(?:[\s,]+(?:inc|llc|ltd|corp|co|company|corporation|limited)\.?|\.(?:com|net|org))$"
)
_VARYING_SUFFIX = re.compile(r"\s+(?:financial|auto|bank|services|group)$")


class BillingCycle(str, Enum):
    MONTHLY = "Monthly"
    QUARTERLY = "Quarterly"
    ANNUAL = "Annual"

    @property
    def frequency(self) -> Frequency:
        return _CYCLE_FREQUENCY[self]


_CYCLE_FREQUENCY = {
    BillingCycle.MONTHLY: Frequency.MONTHLY,
    BillingCycle.QUARTERLY: Frequency.QUARTERLY,
    BillingCycle.ANNUAL: Frequency.ANNUAL,
}

# cycle: (min average gap, max average gap, expected gap, regularity tolerance)
CYCLE_RANGES: dict[BillingCycle, tuple[int, int, int, int]] = {
    BillingCycle.MONTHLY: (28, 32, 30, 2),
    BillingCycle.QUARTERLY: (89, 93, 91, 2),
    BillingCycle.ANNUAL: (360, 370, 365, 5),
}


def normalize_merchant_name(name: str | None) -> str:
    """Lowercase a merchant name and strip corporate and varying suffixes.

    ``"Netflix.com"`` and ``"NETFLIX INC"`` both become ``"netflix"``.
    """
    original = (name or "").lower().strip()
    text = _CORPORATE_SUFFIX.sub("", original)
    text = _VARYING_SUFFIX.sub("", text)
    text = re.sub(r"\s+", " ", text).strip()
    return text or original


def classify_cycle(average_gap: float) -> BillingCycle | None:
    for cycle, (low, high, _, _) in CYCLE_RANGES.items():
        if low <= average_gap <= high:
            return cycle
    return None


@dataclass(frozen=True)
class RecurringCharge:
    date: date
    amount: Decimal
    transaction_id: str | None = None


@dataclass(frozen=True)
class SubscriptionCandidate:
    """A merchant whose charges look like a subscription."""

    merchant_name: str
    normalized_name: str
    amount: Decimal  # average absolute charge
    billing_cycle: BillingCycle
    confidence: int  # 0-100
    occurrences: int
    recent_charges: tuple[RecurringCharge, ...]
    next_renewal: date
    category: str
    transaction_ids: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "merchantName": self.merchant_name,
            "amount": str(self.amount),
            "billingCycle": self.billing_cycle.value,
            "confidence": self.confidence,
            "occurrences": self.occurrences,
            "recentCharges": [
                {"date": c.date.isoformat(), "amount": str(c.amount)} for c in self.recent_charges
            ],
            "nextRenewal": self.next_renewal.isoformat(),
            "category": self.category,
            "transactionIds": list(self.transaction_ids),
        }


class SubscriptionDetector:
    """Detect recurring charges that are not yet tracked as subscriptions."""

    def __init__(
        self,
        config: SubscriptionConfig | None = None,
        categorizer: CategorySuggester | None = None,
    ):
        self.config = config or SubscriptionConfig()
        self.categorizer = categorizer or CategorySuggester()

    def detect(
        self,
        transactions: Iterable[Transaction],
        existing_subscriptions: Iterable[str] = (),
    ) -> list[SubscriptionCandidate]:
        """Return subscription candidates, highest confidence first.

        Args:
            transactions: Transaction history. Only dated outflows with a
                merchant name are considered.
            existing_subscriptions: Names of subscriptions already tracked.
                Merchants whose normalized name contains, or is contained in,
                one of these are left out.
        """
        existing = [k for k in map(normalize_merchant_name, existing_subscriptions) if k]

        groups: dict[str, list[Transaction]] = {}
        for tx in transactions:
            if not tx.is_outflow or not (tx.merchant_name or "").strip() or tx.date is None:
                continue
            groups.setdefault(normalize_merchant_name(tx.merchant_name), []).append(tx)

        candidates = []
        for key, charges in groups.items():
            candidate = self._evaluate(key, charges)
            if candidate is None:
                continue
            if any(key in name or name in key for name in existing):
                logger.debug("Skipping %r: already tracked", key)
                continue
            candidates.append(candidate)

        candidates.sort(key=lambda c: c.confidence, reverse=True)
        return candidates

    def _evaluate(self, key: str, charges: list[Transaction]) -> SubscriptionCandidate | None:
        if len(charges) < self.config.min_occurrences:
            logger.debug("Skipping %r: only %d charge(s)", key, len(charges))
            return None

        charges = sorted(charges, key=lambda tx: tx.date)
        amounts = [abs(tx.amount) for tx in charges]
        mean = sum(amounts) / len(amounts)
        within = sum(1 for a in amounts if abs(a - mean) <= self.config.amount_tolerance)
        amount_consistency = within / len(amounts)
        if amount_consistency < self.config.min_amount_consistency:
            logger.debug("Skipping %r: amount consistency %.2f", key, amount_consistency)
            return None

        gaps = [(b.date - a.date).days for a, b in zip(charges, charges[1:])]
        average_gap = sum(gaps) / len(gaps)
        cycle = classify_cycle(average_gap)
        if cycle is None:
            logger.debug("Skipping %r: no billing cycle for %.1f day gap", key, average_gap)
            return None

        _, _, expected, tolerance = CYCLE_RANGES[cycle]
        regularity = sum(1 for g in gaps if abs(g - expected) <= tolerance) / len(gaps)
        months = (charges[-1].date - charges[0].date).days / DAYS_PER_MONTH

        occurrence_score = min(1.0, (len(charges) - 2) / 4 + 0.5)
        timespan_score = min(1.0, months / FULL_HISTORY_MONTHS)
        confidence = 100 * (
            OCCURRENCE_WEIGHT * occurrence_score
            + AMOUNT_WEIGHT * amount_consistency
            + REGULARITY_WEIGHT * regularity
            + TIMESPAN_WEIGHT * timespan_score
        )
        if confidence < self.config.min_confidence:
            logger.debug("Skipping %r: confidence %.1f", key, confidence)
            return None

        last = charges[-1]
        return SubscriptionCandidate(
            merchant_name=last.merchant_name,
            normalized_name=key,
            amount=Decimal(mean).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
            billing_cycle=cycle,
            confidence=int(confidence + 0.5),
            occurrences=len(charges),
            recent_charges=tuple(
                RecurringCharge(date=tx.date, amount=abs(tx.amount), transaction_id=tx.id)
                for tx in charges[-RECENT_CHARGE_COUNT:]
            ),
            next_renewal=advance_date(last.date, cycle.frequency),
            category=self.categorizer.suggest(key),
            transaction_ids=tuple(tx.id for tx in charges if tx.id),
        )
