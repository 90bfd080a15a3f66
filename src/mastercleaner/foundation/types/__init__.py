"""Shared type definitions."""

from mastercleaner.foundation.types.config import (
    ClassifierConfig,
    DiscoveryConfig,
    ReportConfig,
    WalkerConfig,
)

__all__ = [
    "ClassifierConfig",
    "DiscoveryConfig",
    "ReportConfig",
    "WalkerConfig",
]
