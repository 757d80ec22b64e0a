"""User-authored payment rules and their scoring against transactions."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal

from pydantic import BaseModel, ConfigDict, Field

from billmatch.importers.base import FinancialEvent, Transaction
from billmatch.matching.patterns import PaymentPatternExtractor

DEFAULT_AMOUNT_TOLERANCE = Decimal("0.50")
OPTIONAL_KEYWORD_WEIGHT = 0.5


class _RuleModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, frozen=True)


class DateWindow(_RuleModel):
    """Days around the bill's due (or paid) date a transaction may fall in."""

    days_before: int = Field(3, alias="daysBefore", ge=0)
    days_after: int = Field(5, alias="daysAfter", ge=0)


class MatchCriteria(_RuleModel):
    amount_exact: Decimal | None = Field(None, alias="amountExact")
    amount_tolerance: Decimal | None = Field(None, alias="amountTolerance", ge=0)
    required_keywords: tuple[str, ...] = Field((), alias="requiredKeywords")
    optional_keywords: tuple[str, ...] = Field((), alias="optionalKeywords")
    transaction_types: tuple[str, ...] = Field((), alias="transactionTypes")
    date_window: DateWindow | None = Field(None, alias="dateWindow")


class PaymentRule(_RuleModel):
    """Explicit matching criteria a user attached to a bill."""

    id: str
    bill_id: str | None = Field(None, alias="billId")
    bill_name: str | None = Field(None, alias="billName")
    match_criteria: MatchCriteria = Field(default_factory=MatchCriteria, alias="matchCriteria")
    enabled: bool = True


def amounts_match(a: Decimal, b: Decimal, tolerance: Decimal) -> bool:
    """Compare absolute amounts within a tolerance."""
    return abs(abs(a) - abs(b)) <= tolerance


def within_date_window(tx_date: date, anchor: date, days_before: int, days_after: int) -> bool:
    return anchor - timedelta(days=days_before) <= tx_date <= anchor + timedelta(days=days_after)


class RuleEvaluator:
    """Score a transaction against a rule as matched criteria / applicable criteria.

    Required keywords are a gate: if any is missing the score is 0 no matter
    what else matches. The evaluator never applies a confidence threshold;
    that is the matcher's job.
    """

    def __init__(self, extractor: PaymentPatternExtractor | None = None):
        self.extractor = extractor or PaymentPatternExtractor()

    def score(
        self,
        rule: PaymentRule,
        tx: Transaction,
        bill: FinancialEvent,
        anchor: date | None = None,
    ) -> float:
        """Fraction of the rule's applicable criteria that ``tx`` satisfies."""
        matched, applicable, gated = self._evaluate(rule, tx, bill, anchor)
        if gated or applicable == 0:
            return 0.0
        return matched / applicable

    def matched_criteria(
        self,
        rule: PaymentRule,
        tx: Transaction,
        bill: FinancialEvent,
        anchor: date | None = None,
    ) -> list[str]:
        """Names of the criteria ``tx`` satisfies, for audit output."""
        names: list[str] = []
        self._evaluate(rule, tx, bill, anchor, names)
        return names

    def _evaluate(
        self,
        rule: PaymentRule,
        tx: Transaction,
        bill: FinancialEvent,
        anchor: date | None,
        names: list[str] | None = None,
    ) -> tuple[float, float, bool]:
        criteria = rule.match_criteria
        text = tx.display_name.lower()
        anchor = anchor or bill.anchor_date
        matched = 0.0
        applicable = 0.0
        gated = False

        def hit(name: str, weight: float = 1.0) -> None:
            nonlocal matched
            matched += weight
            if names is not None:
                names.append(name)

        # Amount always applies: the rule's own amount, else the bill's
        applicable += 1
        if criteria.amount_exact is not None:
            tolerance = criteria.amount_tolerance
            if tolerance is None:
                tolerance = DEFAULT_AMOUNT_TOLERANCE
            if amounts_match(tx.amount, criteria.amount_exact, tolerance):
                hit("amount")
        elif amounts_match(tx.amount, bill.amount, DEFAULT_AMOUNT_TOLERANCE):
            hit("amount")

        if criteria.required_keywords:
            applicable += 1
            if all(kw.lower() in text for kw in criteria.required_keywords):
                hit("required_keywords")
            else:
                gated = True

        if criteria.optional_keywords:
            if any(kw.lower() in text for kw in criteria.optional_keywords):
                applicable += OPTIONAL_KEYWORD_WEIGHT
                hit("optional_keywords", OPTIONAL_KEYWORD_WEIGHT)

        if criteria.transaction_types:
            applicable += 1
            payment_type = self.extractor.payment_type(tx)
            if payment_type and payment_type in criteria.transaction_types:
                hit("transaction_type")

        if criteria.date_window is not None and tx.date is not None and anchor is not None:
            applicable += 1
            window = criteria.date_window
            if within_date_window(tx.date, anchor, window.days_before, window.days_after):
                hit("date_window")

        return matched, applicable, gated
