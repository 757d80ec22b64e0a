"""Configuration loading."""

from billmatch.config.schema import (
    Config,
    GeneralConfig,
    MatchingConfig,
    SubscriptionConfig,
    load_config,
)

__all__ = ["Config", "GeneralConfig", "MatchingConfig", "SubscriptionConfig", "load_config"]
