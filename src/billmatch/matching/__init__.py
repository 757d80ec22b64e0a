"""Bill-to-transaction matching."""

from billmatch.matching.aliases import MerchantAliasEntry, MerchantAliasTable, generate_aliases
from billmatch.matching.context import MatcherContext, load_context
from billmatch.matching.engine import (
    BillMatch,
    MatchingOutput,
    MatchResult,
    MatchScores,
    MatchStrategy,
    TransactionMatcher,
)
from billmatch.matching.patterns import PaymentInfo, PaymentPatternExtractor
from billmatch.matching.rules import PaymentRule, RuleEvaluator
from billmatch.matching.similarity import similarity

__all__ = [
    "BillMatch",
    "MatchResult",
    "MatchScores",
    "MatchStrategy",
    "MatcherContext",
    "MatchingOutput",
    "MerchantAliasEntry",
    "MerchantAliasTable",
    "PaymentInfo",
    "PaymentPatternExtractor",
    "PaymentRule",
    "RuleEvaluator",
    "TransactionMatcher",
    "generate_aliases",
    "load_context",
    "similarity",
]
