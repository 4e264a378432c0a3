"""Configuration source and change subscriptions."""

from .settings import (
    DEFAULT_CONFIG_PATH,
    ConfigChange,
    ConfigError,
    ConfigSource,
    Subscription,
    flatten,
    load_config,
    read_config_file,
)

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "ConfigChange",
    "ConfigError",
    "ConfigSource",
    "Subscription",
    "flatten",
    "load_config",
    "read_config_file",
]
