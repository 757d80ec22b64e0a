"""Rule and alias snapshots the matcher runs against, and their JSON loaders."""

from __future__ import annotations

import json
import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from billmatch.errors import ConfigurationError
from billmatch.importers.base import RecurringPattern
from billmatch.matching.aliases import MerchantAliasTable
from billmatch.matching.rules import PaymentRule

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MatcherContext:
    """Read-only inputs shared by every match call of one matcher."""

    rules: tuple[PaymentRule, ...] = ()
    aliases: MerchantAliasTable = field(default_factory=MerchantAliasTable)
    patterns: Mapping[str, RecurringPattern] = field(default_factory=dict)

    @classmethod
    def from_snapshots(
        cls,
        rules: Iterable[Mapping[str, Any]] | None = None,
        aliases: Mapping[str, Any] | None = None,
        patterns: Iterable[Mapping[str, Any]] | None = None,
    ) -> MatcherContext:
        """Validate raw snapshots. Disabled rules are dropped here.

        Raises:
            ConfigurationError: A rule or alias snapshot is malformed.
        """
        parsed: list[PaymentRule] = []
        for i, raw in enumerate(rules or ()):
            try:
                rule = PaymentRule.model_validate(raw)
            except ValidationError as e:
                raise ConfigurationError(
                    "Malformed payment rule",
                    context={"index": i, "errors": e.error_count()},
                    original_error=e,
                ) from e
            if rule.enabled:
                parsed.append(rule)
            else:
                logger.debug("Skipping disabled rule %s", rule.id)

        recurring = {}
        for raw in patterns or ():
            pattern = RecurringPattern.from_dict(raw)
            if pattern.id:
                recurring[pattern.id] = pattern

        return cls(
            rules=tuple(parsed),
            aliases=MerchantAliasTable.from_snapshot(aliases),
            patterns=recurring,
        )


def _read_json(path: str | Path, what: str) -> Any:
    path = Path(path)
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except OSError as e:
        raise ConfigurationError(
            f"Cannot read {what} file", context={"path": str(path)}, original_error=e
        ) from e
    except json.JSONDecodeError as e:
        raise ConfigurationError(
            f"Invalid JSON in {what} file",
            context={"path": str(path), "line": e.lineno},
            original_error=e,
        ) from e


def _rule_list(data: Any, path: str | Path) -> list[Any]:
    if isinstance(data, Mapping):
        data = data.get("rules", [])
    if not isinstance(data, list):
        raise ConfigurationError("Rules file must hold a list", context={"path": str(path)})
    return data


def load_rules(path: str | Path) -> tuple[PaymentRule, ...]:
    """Load enabled payment rules from a JSON list (or ``{"rules": [...]}``)."""
    data = _rule_list(_read_json(path, "rules"), path)
    return MatcherContext.from_snapshots(rules=data).rules


def load_alias_table(path: str | Path) -> MerchantAliasTable:
    """Load a ``{"merchants": {...}}`` alias snapshot."""
    data = _read_json(path, "aliases")
    if not isinstance(data, Mapping):
        raise ConfigurationError("Alias file must hold an object", context={"path": str(path)})
    return MerchantAliasTable.from_snapshot(data)


def load_context(
    rules_path: str | Path | None = None,
    aliases_path: str | Path | None = None,
    default_aliases: bool = True,
) -> MatcherContext:
    """Build a context from optional rule and alias files.

    Without an alias file the curated default table is used, unless
    ``default_aliases`` is False.
    """
    rules = load_rules(rules_path) if rules_path else ()
    if aliases_path:
        aliases = load_alias_table(aliases_path)
    elif default_aliases:
        aliases = MerchantAliasTable.default()
    else:
        aliases = MerchantAliasTable()
    return MatcherContext(rules=rules, aliases=aliases)
