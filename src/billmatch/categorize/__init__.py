"""Category suggestion for recurring bills."""

from billmatch.categorize.rules import CategorySuggester
from billmatch.categorize.taxonomy import DEFAULT_CATEGORY, RECURRING_BILL_CATEGORIES

__all__ = ["CategorySuggester", "DEFAULT_CATEGORY", "RECURRING_BILL_CATEGORIES"]
