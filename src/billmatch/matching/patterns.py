"""Peer-to-peer payment recognition (Zelle, Venmo, Cash App, check, ACH, wire).

P2P transaction text usually carries a person's name instead of a merchant
brand, e.g. ``"Zelle Transfer CONF# P73F008MJ; RAYLENE PANDO"``. The extractor
pulls that recipient out so it can be compared against bill names.
"""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass

from billmatch.importers.base import FinancialEvent, Transaction

MIN_RECIPIENT_LENGTH = 3
MIN_KEYWORD_LENGTH = 3

# Leading filler words that sometimes get captured as part of a recipient
_FILLER_WORDS = {"to", "from", "transfer", "payment", "conf"}


@dataclass(frozen=True)
class PaymentInfo:
    """Recipient details parsed from a P2P payment description."""

    payment_type: str  # zelle, venmo, cashapp, check, ach, wire
    recipient: str
    confidence: float
    original_text: str
    pattern_used: str
    keywords: tuple[str, ...]


def clean_recipient_name(raw: str | None) -> str:
    """Lowercase, drop digits and punctuation, collapse whitespace."""
    if not raw:
        return ""
    text = re.sub(r"[^a-z\s]", "", raw.lower())
    return re.sub(r"\s+", " ", text).strip()


def extract_keywords(recipient: str) -> tuple[str, ...]:
    return tuple(w for w in recipient.split() if len(w) >= MIN_KEYWORD_LENGTH)


def _strip_filler(name: str) -> str:
    words = name.split()
    while words and words[0] in _FILLER_WORDS:
        words.pop(0)
    return " ".join(words)


def _default_recipient(match: re.Match[str], text: str) -> str:
    return clean_recipient_name(match.group(1))


def _zelle_recipient(match: re.Match[str], text: str) -> str:
    # Reference codes ("CONF#ABC123") can trail the name
    raw = re.split(r"\bconf\b", match.group(1))[0]
    name = _strip_filler(clean_recipient_name(raw))
    if name:
        return name
    after_semicolon = re.search(r";\s*([a-z\s]+)", text)
    if after_semicolon:
        return _strip_filler(clean_recipient_name(after_semicolon.group(1)))
    return ""


@dataclass(frozen=True)
class PaymentPattern:
    """One row of the recognition table."""

    name: str
    regex: re.Pattern[str]
    payment_type: str
    confidence: float
    extract_recipient: Callable[[re.Match[str], str], str] = _default_recipient


# Order matters: the first pattern whose regex matches wins.
PAYMENT_PATTERNS: list[PaymentPattern] = [
    PaymentPattern(
        name="zelle",
        regex=re.compile(
            r"\bzelle\s+(?:transfer|payment)?\s*(?:to\s+)?(?:conf#?\s*[a-z0-9]+\s*)?;?\s*"
            r"([a-z][a-z\s]*)",
            re.IGNORECASE,
        ),
        payment_type="zelle",
        confidence=0.90,
        extract_recipient=_zelle_recipient,
    ),
    PaymentPattern(
        name="venmo",
        regex=re.compile(
            r"\bvenmo\s+(?:payment\s+)?(?:to\s+)?@?([a-z0-9][a-z0-9\s]*)", re.IGNORECASE
        ),
        payment_type="venmo",
        confidence=0.90,
    ),
    PaymentPattern(
        name="cash_app",
        regex=re.compile(r"\bcash\s*app\s+(?:to\s+)?\$?@?([a-z0-9]+)", re.IGNORECASE),
        payment_type="cashapp",
        confidence=0.90,
    ),
    PaymentPattern(
        name="check",
        regex=re.compile(
            r"\bcheck\s+(?:#?\s*\d+\s+)?(?:to\s+)?([a-z][a-z\s]*)", re.IGNORECASE
        ),
        payment_type="check",
        confidence=0.85,
    ),
    PaymentPattern(
        name="ach",
        regex=re.compile(
            r"\bach\s+(?:payment|transfer|debit)\s+(?:to\s+)?([a-z][a-z\s]*)", re.IGNORECASE
        ),
        payment_type="ach",
        confidence=0.85,
    ),
    PaymentPattern(
        name="wire_transfer",
        regex=re.compile(r"\bwire\s+(?:transfer\s+)?(?:to\s+)?([a-z][a-z\s]*)", re.IGNORECASE),
        payment_type="wire",
        confidence=0.85,
    ),
]


class PaymentPatternExtractor:
    """Recognize P2P payment text and extract a normalized recipient."""

    def __init__(self, patterns: list[PaymentPattern] | None = None):
        self.patterns = list(patterns) if patterns is not None else list(PAYMENT_PATTERNS)

    def extract(self, text: str | None) -> PaymentInfo | None:
        """Parse transaction text. Returns None when it is not a P2P payment.

        Recipients shorter than three characters are rejected outright; such
        fragments are too noisy to compare against bill names.
        """
        text = (text or "").lower().strip()
        if not text:
            return None

        for pattern in self.patterns:
            match = pattern.regex.search(text)
            if not match:
                continue
            recipient = pattern.extract_recipient(match, text)
            if len(recipient) < MIN_RECIPIENT_LENGTH:
                continue
            return PaymentInfo(
                payment_type=pattern.payment_type,
                recipient=recipient,
                confidence=pattern.confidence,
                original_text=text,
                pattern_used=pattern.name,
                keywords=extract_keywords(recipient),
            )

        return None

    def extract_from(self, tx: Transaction) -> PaymentInfo | None:
        return self.extract(tx.display_name)

    def is_p2p_payment(self, tx: Transaction) -> bool:
        return self.extract_from(tx) is not None

    def payment_type(self, tx: Transaction) -> str | None:
        info = self.extract_from(tx)
        return info.payment_type if info else None

    def match_to_bill(self, info: PaymentInfo | None, bill: FinancialEvent) -> float:
        """Score how well a payment recipient matches a bill name.

        0.95 for direct containment; otherwise 0.75-0.95 in proportion to the
        recipient keywords found in the bill name; 0 with no overlap.
        """
        if info is None:
            return 0.0
        bill_name = (bill.name or "").lower().strip()
        if not bill_name:
            return 0.0

        if info.recipient in bill_name or bill_name in info.recipient:
            return 0.95

        if not info.keywords:
            return 0.0
        matched = sum(1 for kw in info.keywords if kw in bill_name)
        if matched == 0:
            return 0.0
        return 0.75 + (matched / len(info.keywords)) * 0.2
