"""Pydantic configuration models and TOML loading."""

from __future__ import annotations

import os
import re
import tomllib
from decimal import Decimal
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from billmatch.errors import ConfigurationError


class GeneralConfig(BaseModel):
    """General project configuration."""

    data_dir: str = "./data"
    rules_file: str | None = None  # JSON list of payment rules
    aliases_file: str | None = None  # JSON merchant alias snapshot


class MatchingConfig(BaseModel):
    """Thresholds and tolerances for the bill-to-transaction matcher."""

    confidence_threshold: float = Field(0.70, ge=0.0, le=1.0)
    amount_tolerance: Decimal = Decimal("0.50")
    exact_amount_tolerance: Decimal = Decimal("0.01")
    payment_date_window_days: int = 5
    alias_date_window_days: int = 3
    same_day_window_days: int = 1
    alias_group_threshold: float = 0.7
    rule_name_threshold: float = 0.7


class SubscriptionConfig(BaseModel):
    """Thresholds for recurring-charge detection."""

    min_occurrences: int = Field(2, ge=2)
    amount_tolerance: Decimal = Decimal("2.00")
    min_amount_consistency: float = 0.3
    min_confidence: float = 75.0


class Config(BaseModel):
    """Root configuration model."""

    general: GeneralConfig = Field(default_factory=GeneralConfig)
    matching: MatchingConfig = Field(default_factory=MatchingConfig)
    subscriptions: SubscriptionConfig = Field(default_factory=SubscriptionConfig)
    categorize: dict[str, Any] = Field(default_factory=dict)

    @property
    def data_path(self) -> Path:
        return Path(self.general.data_dir)

    def resolve_data_file(self, name: str | None) -> Path | None:
        """Resolve a configured file name relative to the data directory."""
        if not name:
            return None
        path = Path(name)
        return path if path.is_absolute() else self.data_path / path

    def get_categorize_rules(self) -> dict[str, str]:
        """Get keyword-to-category mapping from config."""
        return self.categorize.get("rules", {})


_ENV_REF = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


def _expand_env(value: Any) -> Any:
    """Expand ${VAR} references anywhere in string values. Unset variables stay as written."""
    if isinstance(value, dict):
        return {k: _expand_env(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_expand_env(v) for v in value]
    if isinstance(value, str):
        return _ENV_REF.sub(lambda m: os.environ.get(m.group(1), m.group(0)), value)
    return value


def load_config(config_path: str | Path | None = None) -> Config:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to config.toml. If None, looks for config.toml
                     in the current directory.

    Returns:
        Parsed Config object. Defaults are returned when the file is missing.

    Raises:
        ConfigurationError: The file exists but is not valid TOML or fails validation.
    """
    if config_path is None:
        config_path = Path("config.toml")
    else:
        config_path = Path(config_path)

    if not config_path.exists():
        return Config()

    try:
        with open(config_path, "rb") as f:
            raw = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigurationError(
            "Invalid TOML in config file", context={"path": str(config_path)}, original_error=e
        ) from e

    raw = _expand_env(raw)
    try:
        return Config.model_validate(raw)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid configuration: {e.error_count()} error(s)",
            context={"path": str(config_path)},
            original_error=e,
        ) from e
