"""Tests for subscription detection."""

from dataclasses import replace
from datetime import date, timedelta
from decimal import Decimal

import pytest

from billmatch.categorize import CategorySuggester
from billmatch.config import SubscriptionConfig
from billmatch.importers.base import Transaction
from billmatch.subscriptions import BillingCycle, SubscriptionDetector, normalize_merchant_name


def _charges(merchant: str, dates: list[date], amount: str = "-10.99", prefix: str = "t"):
    return [
        Transaction(
            id=f"{prefix}{i}",
            name=merchant.upper(),
            merchant_name=merchant,
            amount=Decimal(amount),
            date=d,
        )
        for i, d in enumerate(dates)
    ]


MONTHLY = [date(2025, 1, 1), date(2025, 2, 1), date(2025, 3, 1), date(2025, 4, 1)]


@pytest.fixture
def detector():
    return SubscriptionDetector()


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("Netflix.com", "netflix"),
        ("NETFLIX INC", "netflix"),
        ("Hulu, LLC", "hulu"),
        ("Honda Financial", "honda"),
        ("Chase Auto", "chase"),
        ("  Planet   Fitness  ", "planet fitness"),
        ("Inc", "inc"),
    ],
)
def test_normalize_merchant_name(raw, expected):
    assert normalize_merchant_name(raw) == expected


def test_monthly_spotify(detector):
    result = detector.detect(_charges("Spotify", MONTHLY))

    assert len(result) == 1
    candidate = result[0]
    assert candidate.billing_cycle == BillingCycle.MONTHLY
    assert candidate.confidence == 100
    assert candidate.amount == Decimal("10.99")
    assert candidate.occurrences == 4
    assert candidate.next_renewal == date(2025, 5, 1)
    assert candidate.category == "Subscriptions & Entertainment"
    assert [c.date for c in candidate.recent_charges] == MONTHLY[1:]
    assert candidate.transaction_ids == ("t0", "t1", "t2", "t3")


def test_quarterly(detector):
    dates = [date(2025, 1, 15), date(2025, 4, 16), date(2025, 7, 16)]
    result = detector.detect(_charges("Water District", dates, amount="-88.00"))
    assert result[0].billing_cycle == BillingCycle.QUARTERLY
    assert result[0].next_renewal == date(2025, 10, 16)
    assert result[0].category == "Utilities & Home Services"


def test_annual_two_charges(detector):
    dates = [date(2024, 3, 10), date(2025, 3, 10)]
    result = detector.detect(_charges("Amazon Prime", dates, amount="-139.00"))
    assert result[0].billing_cycle == BillingCycle.ANNUAL
    # 0.4*0.5 + 0.3 + 0.2 + 0.1
    assert result[0].confidence == 80
    assert result[0].next_renewal == date(2026, 3, 10)


def test_two_charges_45_days_apart_never_detected(detector):
    dates = [date(2025, 1, 1), date(2025, 1, 1) + timedelta(days=45)]
    assert detector.detect(_charges("Gym", dates)) == []


def test_single_charge_ignored(detector):
    assert detector.detect(_charges("Spotify", MONTHLY[:1])) == []


def test_two_monthly_charges_below_confidence_floor(detector):
    # 0.4*0.5 + 0.3 + 0.2 + 0.1*(1/3) = 73.3
    assert detector.detect(_charges("Spotify", MONTHLY[:2])) == []


def test_volatile_amounts_discarded(detector):
    txs = [
        Transaction(id=f"t{i}", name="UTIL", merchant_name="Util", amount=Decimal(a), date=d)
        for i, (d, a) in enumerate(zip(MONTHLY, ["-10", "-40", "-95", "-200"]))
    ]
    assert detector.detect(txs) == []


def test_inflows_and_unnamed_ignored(detector):
    refunds = _charges("Spotify", MONTHLY, amount="10.99")
    unnamed = [
        Transaction(id=f"u{i}", name="X", merchant_name=None, amount=Decimal("-5"), date=d)
        for i, d in enumerate(MONTHLY)
    ]
    undated = [replace(tx, date=None) for tx in _charges("Hulu", MONTHLY)]
    assert detector.detect(refunds + unnamed + undated) == []


def test_existing_subscriptions_filtered_by_containment(detector):
    txs = _charges("Spotify USA", MONTHLY) + _charges("Hulu", MONTHLY, prefix="h")

    result = detector.detect(txs, existing_subscriptions=["Spotify"])

    assert [c.normalized_name for c in result] == ["hulu"]


@pytest.mark.parametrize("blank", ["", "  ", None])
def test_blank_existing_names_filter_nothing(detector, blank):
    txs = _charges("Spotify", MONTHLY)

    assert len(detector.detect(txs, existing_subscriptions=[])) == 1
    result = detector.detect(txs, existing_subscriptions=[blank])
    assert [c.normalized_name for c in result] == ["spotify"]


def test_groups_by_normalized_name(detector):
    txs = _charges("Netflix.com", MONTHLY[:2]) + _charges("NETFLIX INC", MONTHLY[2:], prefix="n")
    result = detector.detect(txs)
    assert len(result) == 1
    assert result[0].occurrences == 4
    assert result[0].merchant_name == "NETFLIX INC"


def test_sorted_by_confidence(detector):
    txs = _charges("Amazon Prime", [date(2024, 3, 10), date(2025, 3, 10)], amount="-139")
    txs += _charges("Spotify", MONTHLY, prefix="s")
    result = detector.detect(txs)
    assert [c.confidence for c in result] == [100, 80]


def test_user_category_rules():
    detector = SubscriptionDetector(categorizer=CategorySuggester({"spotify": "Music"}))
    assert detector.detect(_charges("Spotify", MONTHLY))[0].category == "Music"


def test_configurable_floor():
    detector = SubscriptionDetector(config=SubscriptionConfig(min_confidence=50))
    assert len(detector.detect(_charges("Spotify", MONTHLY[:2]))) == 1


def test_to_dict(detector):
    data = detector.detect(_charges("Spotify", MONTHLY))[0].to_dict()
    assert data["merchantName"] == "Spotify"
    assert data["billingCycle"] == "Monthly"
    assert data["nextRenewal"] == "2025-05-01"
    assert data["recentCharges"][0] == {"date": "2025-02-01", "amount": "10.99"}
    assert data["transactionIds"] == ["t0", "t1", "t2", "t3"]


def test_detect_is_deterministic(detector):
    txs = _charges("Spotify", MONTHLY) + _charges("Hulu", MONTHLY, prefix="h")
    assert detector.detect(txs) == detector.detect(txs)
