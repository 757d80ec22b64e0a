"""Bill matching engine - links expected bills to observed bank transactions."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date
from enum import Enum
from typing import Any

from billmatch.config.schema import MatchingConfig
from billmatch.errors import PreconditionError
from billmatch.importers.base import FinancialEvent, Transaction
from billmatch.matching.aliases import MerchantAliasTable, generate_aliases
from billmatch.matching.context import MatcherContext
from billmatch.matching.patterns import PaymentPatternExtractor
from billmatch.matching.rules import PaymentRule, RuleEvaluator, amounts_match
from billmatch.matching.similarity import similarity

logger = logging.getLogger(__name__)

USER_RULE_CONFIDENCE = 0.95
PAYMENT_PATTERN_CAP = 0.90
MERCHANT_ALIAS_CAP = 0.85

NAME_WEIGHT = 0.5
AMOUNT_WEIGHT = 0.3
DATE_WEIGHT = 0.2
NEAR_SCORE = 0.8  # amount/date inside the gate but not exact


class MatchStrategy(str, Enum):
    USER_RULE = "user_rule"
    PAYMENT_PATTERN = "payment_pattern"
    MERCHANT_ALIAS = "merchant_alias"
    FUZZY_MATCH = "fuzzy_match"


# Priority order; the first strategy clearing the threshold wins
STRATEGY_ORDER: tuple[MatchStrategy, ...] = (
    MatchStrategy.USER_RULE,
    MatchStrategy.PAYMENT_PATTERN,
    MatchStrategy.MERCHANT_ALIAS,
    MatchStrategy.FUZZY_MATCH,
)


@dataclass(frozen=True)
class MatchScores:
    """Per-signal breakdown behind a confidence score."""

    name: float
    amount: float
    date: float

    def weighted(self) -> float:
        return NAME_WEIGHT * self.name + AMOUNT_WEIGHT * self.amount + DATE_WEIGHT * self.date

    def to_dict(self) -> dict[str, float]:
        return {"name": self.name, "amount": self.amount, "date": self.date}


@dataclass(frozen=True)
class MatchResult:
    """The transaction chosen for a bill and why."""

    transaction: Transaction
    confidence: float  # 0.0 to 1.0
    strategy: MatchStrategy
    scores: MatchScores | None = None
    payment_type: str | None = None
    recipient: str | None = None
    rule_id: str | None = None
    rule_score: float | None = None
    criteria_matched: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        tx = self.transaction
        data: dict[str, Any] = {
            "transaction": {
                "id": tx.id,
                "name": tx.display_name,
                "amount": str(tx.amount),
                "date": tx.date.isoformat() if tx.date else None,
            },
            "confidence": round(self.confidence, 4),
            "strategy": self.strategy.value,
        }
        if self.scores is not None:
            data["scores"] = self.scores.to_dict()
        if self.payment_type:
            data["paymentType"] = self.payment_type
        if self.recipient:
            data["recipient"] = self.recipient
        if self.rule_id:
            data["ruleId"] = self.rule_id
            data["ruleScore"] = self.rule_score
            data["criteriaMatched"] = list(self.criteria_matched)
        return data


@dataclass(frozen=True)
class BillMatch:
    bill: FinancialEvent
    result: MatchResult


@dataclass
class MatchingOutput:
    """Output of a batch matching run."""

    matched: list[BillMatch] = field(default_factory=list)
    unmatched: list[FinancialEvent] = field(default_factory=list)


class TransactionMatcher:
    """Four-strategy bill matcher.

    Strategy 1: User payment rules (reported at a constant 0.95)
    Strategy 2: P2P payment recipient vs bill name (capped at 0.90)
    Strategy 3: Merchant alias groups (capped at 0.85)
    Strategy 4: Plain fuzzy name match (uncapped)

    Strategies run in that order and the first result at or above the
    confidence threshold is returned. Rules and aliases come from a
    ``MatcherContext``, either injected directly or produced by ``loader``.
    """

    def __init__(
        self,
        context: MatcherContext | None = None,
        loader: Callable[[], MatcherContext] | None = None,
        config: MatchingConfig | None = None,
    ):
        self.config = config or MatchingConfig()
        self.extractor = PaymentPatternExtractor()
        self.evaluator = RuleEvaluator(self.extractor)
        self._context = context
        self._loader = loader

    @property
    def context(self) -> MatcherContext:
        return self.initialize()

    def initialize(self) -> MatcherContext:
        """Load rules and aliases once. Later calls reuse the loaded context."""
        if self._context is None:
            self._load()
        return self._context

    def reload(self) -> MatcherContext:
        """Discard the cached context and load it again through the loader."""
        if self._loader is None:
            logger.debug("No loader configured, keeping injected context")
            return self.initialize()
        self._load()
        return self._context

    def _load(self) -> None:
        self._context = self._loader() if self._loader else MatcherContext()
        logger.info(
            "Matcher initialised with %d rules and %d merchant alias entries",
            len(self._context.rules),
            len(self._context.aliases),
        )

    def find_match(
        self,
        bill: FinancialEvent,
        pool: Sequence[Transaction],
        exclude: Iterable[str] = (),
    ) -> MatchResult | None:
        """Find the transaction that most plausibly paid ``bill``.

        Args:
            bill: The bill to match.
            pool: Candidate transactions. Ids must be unique.
            exclude: Transaction ids already claimed by other bills.

        Returns:
            The winning MatchResult, or None when no strategy clears the
            confidence threshold.

        Raises:
            PreconditionError: The pool contains duplicate transaction ids.
        """
        context = self.initialize()
        candidates = self._candidates(pool, exclude)
        if not candidates:
            return None

        anchor = self._anchor_date(bill, context)
        threshold = self.config.confidence_threshold

        for strategy in STRATEGY_ORDER:
            result = self._run_strategy(strategy, bill, candidates, anchor, context)
            if result is None:
                continue
            # Rule matches are exempt from the threshold; they always report 0.95
            if strategy is MatchStrategy.USER_RULE or result.confidence >= threshold:
                logger.debug(
                    "Bill %r matched %r via %s (%.2f)",
                    bill.name,
                    result.transaction.display_name,
                    strategy.value,
                    result.confidence,
                )
                return result
            logger.debug(
                "Bill %r: best %s candidate %.2f below threshold",
                bill.name,
                strategy.value,
                result.confidence,
            )

        return None

    def match_bills(
        self, bills: Iterable[FinancialEvent], pool: Sequence[Transaction]
    ) -> MatchingOutput:
        """Match many bills so that each transaction pays at most one bill.

        Bills that already carry a linked transaction are skipped. The rest
        are processed earliest anchor date first (undated bills last) and
        each matched transaction is removed from the pool for later bills.
        """
        context = self.initialize()
        remaining = list(pool)
        self._candidates(remaining, ())

        pending = [b for b in bills if not b.linked_transaction_id]
        ordered = sorted(
            pending,
            key=lambda b: self._sort_key(self._anchor_date(b, context)),
        )

        output = MatchingOutput()
        for bill in ordered:
            result = self.find_match(bill, remaining)
            if result is None:
                output.unmatched.append(bill)
                continue
            output.matched.append(BillMatch(bill=bill, result=result))
            remaining = [tx for tx in remaining if tx is not result.transaction]

        logger.info("Matched %d of %d bills", len(output.matched), len(ordered))
        return output

    @staticmethod
    def _sort_key(anchor: date | None) -> tuple[bool, date]:
        return (anchor is None, anchor or date.min)

    def _candidates(
        self, pool: Sequence[Transaction], exclude: Iterable[str]
    ) -> list[Transaction]:
        """Drop linked and excluded transactions, rejecting duplicate ids."""
        excluded = set(exclude)
        seen: set[str] = set()
        candidates = []
        for tx in pool:
            if tx.id is not None:
                if tx.id in seen:
                    raise PreconditionError(
                        "Duplicate transaction id in pool", context={"id": tx.id}
                    )
                seen.add(tx.id)
            if tx.linked_event_id or (tx.id is not None and tx.id in excluded):
                continue
            candidates.append(tx)
        return candidates

    def _anchor_date(self, bill: FinancialEvent, context: MatcherContext) -> date | None:
        if bill.anchor_date:
            return bill.anchor_date
        if bill.recurring_pattern_id:
            pattern = context.patterns.get(bill.recurring_pattern_id)
            if pattern is not None:
                return pattern.next_occurrence
        return None

    def _run_strategy(
        self,
        strategy: MatchStrategy,
        bill: FinancialEvent,
        candidates: list[Transaction],
        anchor: date | None,
        context: MatcherContext,
    ) -> MatchResult | None:
        match strategy:
            case MatchStrategy.USER_RULE:
                return self._strategy_user_rule(bill, candidates, anchor, context.rules)
            case MatchStrategy.PAYMENT_PATTERN:
                return self._strategy_payment_pattern(bill, candidates, anchor)
            case MatchStrategy.MERCHANT_ALIAS:
                return self._strategy_merchant_alias(bill, candidates, anchor, context.aliases)
            case MatchStrategy.FUZZY_MATCH:
                return self._strategy_fuzzy(bill, candidates, anchor)

    # -- gates and tiered scores ------------------------------------------

    def _within_amount(self, tx: Transaction, bill: FinancialEvent) -> bool:
        return amounts_match(tx.amount, bill.amount, self.config.amount_tolerance)

    @staticmethod
    def _within_days(tx: Transaction, anchor: date | None, days: int) -> bool:
        if tx.date is None or anchor is None:
            return True
        return abs((tx.date - anchor).days) <= days

    def _amount_score(self, tx: Transaction, bill: FinancialEvent) -> float:
        exact = amounts_match(tx.amount, bill.amount, self.config.exact_amount_tolerance)
        return 1.0 if exact else NEAR_SCORE

    def _date_score(self, tx: Transaction, anchor: date | None) -> float:
        if tx.date is None or anchor is None:
            return NEAR_SCORE
        same_day = abs((tx.date - anchor).days) <= self.config.same_day_window_days
        return 1.0 if same_day else NEAR_SCORE

    # -- strategies -------------------------------------------------------

    def _rule_applies(self, rule: PaymentRule, bill: FinancialEvent) -> bool:
        if not rule.enabled:
            return False
        if rule.bill_id is not None and rule.bill_id != bill.id:
            return False
        if rule.bill_name is not None:
            return similarity(rule.bill_name, bill.name) >= self.config.rule_name_threshold
        return True

    def _strategy_user_rule(
        self,
        bill: FinancialEvent,
        candidates: list[Transaction],
        anchor: date | None,
        rules: Sequence[PaymentRule],
    ) -> MatchResult | None:
        """Strategy 1: explicit user rules. Any positive rule score is trusted."""
        best: tuple[float, PaymentRule, Transaction] | None = None
        for rule in rules:
            if not self._rule_applies(rule, bill):
                continue
            for tx in candidates:
                score = self.evaluator.score(rule, tx, bill, anchor)
                if score > 0 and (best is None or score > best[0]):
                    best = (score, rule, tx)

        if best is None:
            return None
        score, rule, tx = best
        return MatchResult(
            transaction=tx,
            confidence=USER_RULE_CONFIDENCE,
            strategy=MatchStrategy.USER_RULE,
            rule_id=rule.id,
            rule_score=score,
            criteria_matched=tuple(self.evaluator.matched_criteria(rule, tx, bill, anchor)),
        )

    def _strategy_payment_pattern(
        self, bill: FinancialEvent, candidates: list[Transaction], anchor: date | None
    ) -> MatchResult | None:
        """Strategy 2: Zelle/Venmo/check style payments to a named recipient."""
        window = self.config.payment_date_window_days
        best = None
        best_name = -1.0
        for tx in candidates:
            info = self.extractor.extract_from(tx)
            if info is None:
                continue
            if not self._within_amount(tx, bill) or not self._within_days(tx, anchor, window):
                continue
            name = self.extractor.match_to_bill(info, bill)
            if name > best_name:
                best, best_name = (tx, info), name

        if best is None:
            return None
        tx, info = best
        scores = MatchScores(
            name=best_name,
            amount=self._amount_score(tx, bill),
            date=self._date_score(tx, anchor),
        )
        return MatchResult(
            transaction=tx,
            confidence=min(PAYMENT_PATTERN_CAP, scores.weighted()),
            strategy=MatchStrategy.PAYMENT_PATTERN,
            scores=scores,
            payment_type=info.payment_type,
            recipient=info.recipient,
        )

    def bill_aliases(self, bill: FinancialEvent, table: MerchantAliasTable) -> list[str]:
        """Aliases for a bill: its own merchant names, curated ones, or generated."""
        if bill.merchant_names:
            return list(bill.merchant_names)
        entry = table.lookup(bill.name)
        if entry is not None and entry.aliases:
            return list(entry.aliases)
        return generate_aliases(bill.name)

    def _alias_terms(self, bill: FinancialEvent, table: MerchantAliasTable) -> list[str]:
        """Bill name, its aliases and every alias group fuzzily related to them."""
        own = [bill.name, *self.bill_aliases(bill, table)]
        terms = list(own)
        threshold = self.config.alias_group_threshold
        for _, entry in table.entries():
            if any(similarity(a, t) > threshold for a in entry.aliases for t in own):
                terms.extend(entry.aliases)
        return list(dict.fromkeys(t for t in terms if t))

    def _strategy_merchant_alias(
        self,
        bill: FinancialEvent,
        candidates: list[Transaction],
        anchor: date | None,
        table: MerchantAliasTable,
    ) -> MatchResult | None:
        """Strategy 3: bill name and alias groups vs transaction text."""
        terms = self._alias_terms(bill, table)
        if not terms:
            return None
        return self._best_by_name(
            bill,
            candidates,
            anchor,
            name_score=lambda tx: max(similarity(t, tx.display_name) for t in terms),
            strategy=MatchStrategy.MERCHANT_ALIAS,
            cap=MERCHANT_ALIAS_CAP,
        )

    def _strategy_fuzzy(
        self, bill: FinancialEvent, candidates: list[Transaction], anchor: date | None
    ) -> MatchResult | None:
        """Strategy 4: plain bill name similarity, no aliases, no cap."""
        return self._best_by_name(
            bill,
            candidates,
            anchor,
            name_score=lambda tx: similarity(bill.name, tx.display_name),
            strategy=MatchStrategy.FUZZY_MATCH,
            cap=None,
        )

    def _best_by_name(
        self,
        bill: FinancialEvent,
        candidates: list[Transaction],
        anchor: date | None,
        name_score: Callable[[Transaction], float],
        strategy: MatchStrategy,
        cap: float | None,
    ) -> MatchResult | None:
        window = self.config.alias_date_window_days
        best: Transaction | None = None
        best_name = -1.0
        for tx in candidates:
            if not self._within_amount(tx, bill) or not self._within_days(tx, anchor, window):
                continue
            name = name_score(tx)
            if name > best_name:
                best, best_name = tx, name

        if best is None:
            return None
        scores = MatchScores(
            name=best_name,
            amount=self._amount_score(best, bill),
            date=self._date_score(best, anchor),
        )
        confidence = scores.weighted()
        if cap is not None:
            confidence = min(cap, confidence)
        return MatchResult(
            transaction=best, confidence=confidence, strategy=strategy, scores=scores
        )
