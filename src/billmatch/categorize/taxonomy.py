"""Category taxonomy for recurring bills and subscriptions."""

from __future__ import annotations

DEFAULT_CATEGORY = "Other"

# Checked in order; the first category with a keyword in the merchant name wins
RECURRING_BILL_CATEGORIES: dict[str, list[str]] = {
    "Housing": [
        "rent", "mortgage", "hoa", "property management", "homeowners insurance",
        "apartment", "condo", "property tax", "lease", "landlord",
    ],
    "Auto & Transportation": [
        # Loans and financing
        "chrysler capital", "chase auto", "honda financial", "toyota financial",
        "ford credit", "gm financial", "ally auto", "capital one auto", "carvana",
        "car payment", "auto loan", "vehicle payment",
        # Insurance
        "geico", "progressive", "state farm", "allstate", "liberty mutual",
        "farmers insurance", "usaa", "esurance", "auto insurance", "car insurance",
        "parking", "toll", "ezpass", "fastrak", "sunpass",
    ],
    "Credit Cards & Loans": [
        "upgrade", "lending club", "sofi", "prosper", "avant", "marcus",
        "discover personal loan", "best egg", "upstart", "payoff", "personal loan",
        # Buy now pay later
        "affirm", "klarna", "afterpay", "sezzle", "quadpay", "zip", "splitit",
        "capital one", "chase card", "discover", "amex", "american express",
        "comenity", "bread financial", "synchrony", "barclays", "citibank",
        "bank of america card", "wells fargo card", "credit card payment",
    ],
    "Utilities & Home Services": [
        "electric", "electricity", "nv energy", "duke energy", "pge", "pg&e",
        "southern california edison", "florida power", "con edison", "power company",
        "water", "sewer", "water district", "municipal water",
        "gas company", "natural gas", "propane",
        "trash", "waste management", "republic services", "garbage", "recycling",
        "adt", "ring", "security", "alarm", "lawn care", "landscaping", "pest control",
    ],
    "Phone & Internet": [
        "verizon", "at&t", "t-mobile", "sprint", "mint mobile", "cricket",
        "boost mobile", "metro pcs", "visible", "phone", "mobile", "wireless",
        "comcast", "xfinity", "spectrum", "cox", "centurylink", "frontier",
        "optimum", "mediacom", "internet", "cable", "broadband", "fiber",
    ],
    "Insurance & Healthcare": [
        "health insurance", "medical insurance", "anthem", "blue cross", "aetna",
        "united healthcare", "humana", "kaiser", "cigna",
        "dental", "vision", "life insurance", "disability insurance",
        "gym", "planet fitness", "24 hour fitness", "la fitness", "equinox",
        "yoga", "peloton", "fitness", "crunch", "anytime fitness",
        "therapy", "counseling", "medical",
    ],
    "Subscriptions & Entertainment": [
        # Streaming
        "netflix", "hulu", "disney", "disney plus", "hbo", "hbo max", "max",
        "spotify", "apple music", "youtube premium", "youtube music", "prime video",
        "apple tv", "paramount", "peacock", "showtime", "starz", "crunchyroll",
        # Gaming
        "xbox", "playstation", "nintendo", "steam", "epic games", "game pass",
        "audible", "kindle unlimited", "news", "magazine", "newspaper",
    ],
    "Software": [
        "adobe", "microsoft", "office 365", "github", "dropbox", "icloud",
        "google one", "notion", "slack", "zoom", "canva", "grammarly",
        "aws", "cloud", "hosting", "domain", "software",
    ],
    "Personal Care": ["ulta", "sephora", "salon", "spa", "beauty", "nails", "haircut", "barber"],
    "Food": [
        "meal kit", "hello fresh", "blue apron", "factor", "home chef", "freshly",
        "daily harvest",
    ],
}


def all_categories() -> list[str]:
    """Return all category names, the fallback category last."""
    return [*RECURRING_BILL_CATEGORIES, DEFAULT_CATEGORY]
