"""Tests for P2P payment pattern extraction."""

from datetime import date
from decimal import Decimal

import pytest

from billmatch.importers.base import FinancialEvent, Transaction
from billmatch.matching.patterns import PaymentInfo, PaymentPatternExtractor


@pytest.fixture
def extractor():
    return PaymentPatternExtractor()


def _bill(name: str) -> FinancialEvent:
    return FinancialEvent(id="b1", name=name, amount=Decimal("100.00"))


def test_zelle_with_confirmation_code(extractor):
    info = extractor.extract("Zelle Transfer CONF# P73F008MJ; RAYLENE PANDO")
    assert info is not None
    assert info.payment_type == "zelle"
    assert info.recipient == "raylene pando"
    assert info.keywords == ("raylene", "pando")
    assert info.confidence == 0.90


def test_zelle_trailing_confirmation(extractor):
    info = extractor.extract("ZELLE PAYMENT TO JOHN SMITH CONF#ABC123")
    assert info.payment_type == "zelle"
    assert info.recipient == "john smith"


def test_zelle_semicolon_recipient(extractor):
    info = extractor.extract("Zelle Transfer; LANDLORD NAME LLC")
    assert info.recipient == "landlord name llc"


@pytest.mark.parametrize(
    "text,payment_type,recipient",
    [
        ("Venmo Payment to @username", "venmo", "username"),
        ("Venmo payment Jane Doe", "venmo", "jane doe"),
        ("Cash App to $johndoe", "cashapp", "johndoe"),
        ("CASH APP $USERNAME123", "cashapp", "username"),
        ("Check #1234 to ABC Property Management", "check", "abc property management"),
        ("CHECK 5678 ELECTRIC COMPANY", "check", "electric company"),
        ("ACH PAYMENT TO UTILITY PROVIDER", "ach", "utility provider"),
        ("ACH TRANSFER LANDLORD LLC", "ach", "landlord llc"),
        ("Wire Transfer to International Bank", "wire", "international bank"),
    ],
)
def test_payment_types(extractor, text, payment_type, recipient):
    info = extractor.extract(text)
    assert info is not None
    assert info.payment_type == payment_type
    assert info.recipient == recipient


@pytest.mark.parametrize("text", ["WALMART SUPERCENTER #1234", "SHELL GAS STATION", "", None])
def test_non_p2p_text(extractor, text):
    assert extractor.extract(text) is None


def test_short_recipient_rejected(extractor):
    assert extractor.extract("Venmo to @ab") is None


def test_transaction_helpers(extractor):
    tx = Transaction(
        id="t1",
        name="ZELLE PAYMENT TO JOHN SMITH",
        amount=Decimal("-1200.00"),
        date=date(2025, 11, 1),
    )
    assert extractor.is_p2p_payment(tx)
    assert extractor.payment_type(tx) == "zelle"

    grocery = Transaction(id="t2", name="SAFEWAY #42", amount=Decimal("-50"), date=None)
    assert not extractor.is_p2p_payment(grocery)
    assert extractor.payment_type(grocery) is None


def test_match_to_bill_containment(extractor):
    info = extractor.extract("ZELLE PAYMENT TO JOHN SMITH CONF#ABC123")
    assert extractor.match_to_bill(info, _bill("Rent - John Smith")) == 0.95


def test_match_to_bill_keyword_overlap(extractor):
    info = extractor.extract("Zelle Transfer CONF# P73F008MJ; RAYLENE PANDO")
    # One of two keywords appears in the bill name
    assert extractor.match_to_bill(info, _bill("Pando Rent")) == pytest.approx(0.85)


def test_match_to_bill_no_overlap(extractor):
    info = extractor.extract("Venmo payment Jane Doe")
    assert extractor.match_to_bill(info, _bill("Electric")) == 0.0
    assert extractor.match_to_bill(info, _bill("")) == 0.0
    assert extractor.match_to_bill(None, _bill("Electric")) == 0.0


def test_match_to_bill_without_keywords(extractor):
    info = PaymentInfo(
        payment_type="venmo",
        recipient="bo",
        confidence=0.9,
        original_text="venmo bo",
        pattern_used="venmo",
        keywords=(),
    )
    assert extractor.match_to_bill(info, _bill("Internet")) == 0.0
