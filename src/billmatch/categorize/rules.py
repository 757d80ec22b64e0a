"""Keyword-based category suggestion for recurring charges."""

from __future__ import annotations

from billmatch.categorize.taxonomy import DEFAULT_CATEGORY, RECURRING_BILL_CATEGORIES


class CategorySuggester:
    """Suggest a category from a merchant name using keyword rules."""

    def __init__(self, keyword_rules: dict[str, str] | None = None):
        # User rules are checked before the built-in table
        self.keyword_rules = dict(keyword_rules or {})

    def suggest(self, merchant_name: str | None) -> str:
        """Return the first category whose keyword appears in the name, else "Other"."""
        text = (merchant_name or "").lower()
        if not text:
            return DEFAULT_CATEGORY

        for keyword, category in self.keyword_rules.items():
            if keyword.lower() in text:
                return category

        for category, keywords in RECURRING_BILL_CATEGORIES.items():
            if any(kw in text for kw in keywords):
                return category

        return DEFAULT_CATEGORY
