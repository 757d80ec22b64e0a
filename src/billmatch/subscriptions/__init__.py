"""Recurring subscription detection."""

from billmatch.subscriptions.detector import (
    BillingCycle,
    RecurringCharge,
    SubscriptionCandidate,
    SubscriptionDetector,
    normalize_merchant_name,
)

__all__ = [
    "BillingCycle",
    "RecurringCharge",
    "SubscriptionCandidate",
    "SubscriptionDetector",
    "normalize_merchant_name",
]
