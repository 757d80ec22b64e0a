"""billmatch - bill-to-transaction matching and subscription detection."""

__version__ = "0.1.0"
