"""Tests for payment rule scoring."""

from datetime import date
from decimal import Decimal

import pytest

from billmatch.importers.base import FinancialEvent, Transaction
from billmatch.matching.rules import PaymentRule, RuleEvaluator


def _make_tx(**kwargs) -> Transaction:
    defaults = {
        "id": "t1",
        "name": "ZELLE PAYMENT TO JOHN SMITH",
        "amount": Decimal("-1200.00"),
        "date": date(2025, 11, 1),
    }
    defaults.update(kwargs)
    return Transaction(**defaults)


def _make_bill(**kwargs) -> FinancialEvent:
    defaults = {
        "id": "rent",
        "name": "Rent",
        "amount": Decimal("1200.00"),
        "due_date": date(2025, 11, 1),
    }
    defaults.update(kwargs)
    return FinancialEvent(**defaults)


def _rule(**criteria) -> PaymentRule:
    return PaymentRule.model_validate({"id": "r1", "billId": "rent", "matchCriteria": criteria})


@pytest.fixture
def evaluator():
    return RuleEvaluator()


def test_rule_parses_camel_case():
    rule = PaymentRule.model_validate(
        {
            "id": "r1",
            "billName": "Rent",
            "matchCriteria": {
                "amountExact": 1200,
                "amountTolerance": "5.00",
                "requiredKeywords": ["smith"],
                "dateWindow": {"daysBefore": 2, "daysAfter": 4},
            },
        }
    )
    assert rule.bill_name == "Rent"
    assert rule.match_criteria.amount_exact == Decimal("1200")
    assert rule.match_criteria.date_window.days_after == 4
    assert rule.enabled is True


def test_missing_required_keyword_scores_zero(evaluator):
    """Required keywords gate the whole rule even when amount and date match."""
    rule = _rule(requiredKeywords=["landlord"], dateWindow={"daysBefore": 3, "daysAfter": 5})
    assert evaluator.score(rule, _make_tx(), _make_bill()) == 0.0


def test_required_keywords_all_present(evaluator):
    rule = _rule(requiredKeywords=["John", "smith"])
    assert evaluator.score(rule, _make_tx(), _make_bill()) == 1.0


def test_amount_defaults_to_bill_amount(evaluator):
    rule = _rule()
    assert evaluator.score(rule, _make_tx(amount=Decimal("-1200.40")), _make_bill()) == 1.0
    assert evaluator.score(rule, _make_tx(amount=Decimal("-1201.00")), _make_bill()) == 0.0


def test_amount_exact_with_tolerance(evaluator):
    rule = _rule(amountExact="1190.00", amountTolerance="10")
    assert evaluator.score(rule, _make_tx(amount=Decimal("-1195.00")), _make_bill()) == 1.0
    assert evaluator.score(rule, _make_tx(amount=Decimal("-1175.00")), _make_bill()) == 0.0


def test_optional_keywords_only_count_when_present(evaluator):
    rule = _rule(optionalKeywords=["rent", "smith"])
    # Amount misses, optional keyword hits: 0.5 / 1.5
    tx = _make_tx(amount=Decimal("-900.00"))
    assert evaluator.score(rule, tx, _make_bill()) == pytest.approx(1 / 3)

    # No optional keyword present: criterion not applicable
    tx = _make_tx(name="ONLINE TRANSFER")
    assert evaluator.score(rule, tx, _make_bill()) == 1.0


def test_transaction_types(evaluator):
    rule = _rule(transactionTypes=["zelle", "venmo"])
    assert evaluator.score(rule, _make_tx(), _make_bill()) == 1.0
    ach = _make_tx(name="ACH PAYMENT TO PROPERTY MGMT")
    assert evaluator.score(rule, ach, _make_bill()) == 0.5


def test_date_window(evaluator):
    rule = _rule(dateWindow={"daysBefore": 3, "daysAfter": 5})
    bill = _make_bill()
    assert evaluator.score(rule, _make_tx(date=date(2025, 10, 29)), bill) == 1.0
    assert evaluator.score(rule, _make_tx(date=date(2025, 11, 6)), bill) == 1.0
    assert evaluator.score(rule, _make_tx(date=date(2025, 11, 7)), bill) == 0.5
    assert evaluator.score(rule, _make_tx(date=date(2025, 10, 28)), bill) == 0.5


def test_date_window_skipped_without_dates(evaluator):
    rule = _rule(dateWindow={"daysBefore": 3, "daysAfter": 5})
    assert evaluator.score(rule, _make_tx(date=None), _make_bill()) == 1.0
    bill = _make_bill(due_date=None)
    assert evaluator.score(rule, _make_tx(date=date(2026, 1, 1)), bill) == 1.0


def test_date_window_uses_explicit_anchor(evaluator):
    rule = _rule(dateWindow={"daysBefore": 0, "daysAfter": 0})
    bill = _make_bill(due_date=None)
    tx = _make_tx(date=date(2025, 12, 1))
    assert evaluator.score(rule, tx, bill, anchor=date(2025, 12, 1)) == 1.0


def test_matched_criteria(evaluator):
    rule = _rule(
        requiredKeywords=["smith"],
        transactionTypes=["ach"],
        dateWindow={"daysBefore": 3, "daysAfter": 5},
    )
    names = evaluator.matched_criteria(rule, _make_tx(), _make_bill())
    assert names == ["amount", "required_keywords", "date_window"]
