"""Configuration management for mastercleaner."""

from mastercleaner.foundation.config.loader import (
    CleanerConfig,
    get_config,
    load_config,
    reset_config,
    save_default_config,
)

__all__ = [
    "CleanerConfig",
    "get_config",
    "load_config",
    "reset_config",
    "save_default_config",
]
