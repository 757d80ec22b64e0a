"""Tests for category suggestion."""

from billmatch.categorize import CategorySuggester
from billmatch.categorize.taxonomy import RECURRING_BILL_CATEGORIES, all_categories


def test_default_categories():
    suggester = CategorySuggester()
    assert suggester.suggest("netflix") == "Subscriptions & Entertainment"
    assert suggester.suggest("GEICO AUTO PAY") == "Auto & Transportation"
    assert suggester.suggest("xfinity") == "Phone & Internet"
    assert suggester.suggest("Planet Fitness") == "Insurance & Healthcare"
    assert suggester.suggest("Dropbox") == "Software"


def test_unknown_defaults_to_other():
    suggester = CategorySuggester()
    assert suggester.suggest("qwerty") == "Other"
    assert suggester.suggest("") == "Other"
    assert suggester.suggest(None) == "Other"


def test_table_order_wins():
    # "landlord" (Housing) is listed before anything else that could match
    assert CategorySuggester().suggest("landlord cable") == "Housing"


def test_user_rules_checked_first():
    suggester = CategorySuggester({"NETFLIX": "Streaming"})
    assert suggester.suggest("netflix") == "Streaming"
    assert suggester.suggest("hulu") == "Subscriptions & Entertainment"


def test_all_categories():
    categories = all_categories()
    assert categories[-1] == "Other"
    assert len(categories) == len(RECURRING_BILL_CATEGORIES) + 1
