"""Exception hierarchy for billmatch.

"Nothing matched" is never an error: matching functions return ``None`` or an
empty list. These exceptions mean matching could not run at all.
"""

from __future__ import annotations

from typing import Any


class BillmatchError(Exception):
    """Base class for all billmatch errors.

    Attributes:
        message: Human-readable error message
        context: Extra structured data for debugging
        original_error: Wrapped exception, if any
    """

    def __init__(
        self,
        message: str,
        *,
        context: dict[str, Any] | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}
        self.original_error = original_error

    def __str__(self) -> str:
        base = self.message
        if self.context:
            ctx_str = ", ".join(f"{k}={v}" for k, v in self.context.items())
            base = f"{base} ({ctx_str})"
        if self.original_error:
            base = f"{base} [caused by: {type(self.original_error).__name__}]"
        return base


class ConfigurationError(BillmatchError):
    """A rule, alias or config snapshot is unreadable or malformed."""


class PreconditionError(BillmatchError):
    """The caller broke the engine's input contract (e.g. duplicate transaction ids)."""
