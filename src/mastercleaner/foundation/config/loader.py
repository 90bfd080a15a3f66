"""Mastercleaner configuration management.

Loads configuration from .mastercleaner/config.yaml with sensible defaults.
All settings can be overridden via environment variables (MASTERCLEANER_*).

Config locations (in priority order):
1. Explicit path passed to load_config()
2. .mastercleaner/config.yaml (project-local)
3. ~/.mastercleaner/config.yaml (user-global)
4. Built-in defaults
"""


import logging
import os
import threading
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any

import yaml

from mastercleaner.foundation.errors import config_error
from mastercleaner.foundation.types.config import (
    ClassifierConfig,
    DiscoveryConfig,
    ReportConfig,
    WalkerConfig,
)

logger = logging.getLogger(__name__)

_ENV_PREFIX = "MASTERCLEANER_"

_SECTIONS: dict[str, type] = {
    "walker": WalkerConfig,
    "classifier": ClassifierConfig,
    "discovery": DiscoveryConfig,
    "report": ReportConfig,
}

_REPORT_FORMATS = ("json", "yaml")


@dataclass(frozen=True, slots=True)
class CleanerConfig:
    """Root configuration for mastercleaner."""

    walker: WalkerConfig = field(default_factory=WalkerConfig)
    """Graph walker limits."""

    classifier: ClassifierConfig = field(default_factory=ClassifierConfig)
    """Category routing for the hit classifier."""

    discovery: DiscoveryConfig = field(default_factory=DiscoveryConfig)
    """Data directory discovery and plugin triage."""

    report: ReportConfig = field(default_factory=ReportConfig)
    """Report and dummy master output."""


# Global config instance (lazy-loaded, thread-safe)
_config: CleanerConfig | None = None
_config_lock = threading.Lock()


def _deep_update(base: dict, updates: dict) -> dict:
    """Recursively update a dict with another dict."""
    for key, value in updates.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _deep_update(base[key], value)
        else:
            base[key] = value
    return base


def _coerce_env_value(value: str, default: Any) -> Any:
    """Coerce an environment string to the type of the field default.

    Fields without a typed default (str, or None for optional paths) keep
    the raw string.
    """
    if isinstance(default, tuple):
        return tuple(part.strip() for part in value.split(",") if part.strip())
    if isinstance(default, bool):
        return value.lower() in ("1", "true", "yes", "on")
    if isinstance(default, int):
        try:
            return int(value)
        except ValueError:
            return value
    return value


def _apply_env_overrides(config_dict: dict, environ: dict[str, str] | None = None) -> dict:
    """Apply environment variable overrides.

    Environment variables follow pattern: MASTERCLEANER_SECTION_KEY

    Examples:
        MASTERCLEANER_WALKER_MAX_DEPTH=20
        MASTERCLEANER_DISCOVERY_DATA_DIR=/games/skyrim/Data
        MASTERCLEANER_DISCOVERY_BASE_MASTERS=Skyrim.esm,Update.esm
    """
    env = os.environ if environ is None else environ

    for key, value in env.items():
        if not key.startswith(_ENV_PREFIX):
            continue

        path_str = key[len(_ENV_PREFIX):].lower()
        for section, section_type in _SECTIONS.items():
            if not path_str.startswith(section + "_"):
                continue
            field_name = path_str[len(section) + 1:]
            defaults = section_type()
            if field_name not in {f.name for f in fields(section_type)}:
                logger.debug("Ignoring unknown config override %s", key)
                break
            config_dict.setdefault(section, {})[field_name] = _coerce_env_value(
                value, getattr(defaults, field_name)
            )
            break

    return config_dict


def _build_section(section: str, data: Any) -> Any:
    """Build one typed config section, turning YAML lists into tuples."""
    section_type = _SECTIONS[section]
    if data is None:
        return section_type()
    if not isinstance(data, dict):
        raise config_error(section, "expected a mapping")

    known = {f.name for f in fields(section_type)}
    unknown = sorted(set(data) - known)
    if unknown:
        raise config_error(section, f"unknown keys: {', '.join(unknown)}")

    defaults = section_type()
    values = {
        key: _checked_value(f"{section}.{key}", value, getattr(defaults, key))
        for key, value in data.items()
    }
    return section_type(**values)


def _checked_value(key: str, value: Any, default: Any) -> Any:
    """Check a config value against the type of its default."""
    if isinstance(default, tuple):
        if not isinstance(value, (list, tuple)) or not all(isinstance(v, str) for v in value):
            raise config_error(key, "must be a list of strings")
        return tuple(value)
    if isinstance(default, bool):
        if not isinstance(value, bool):
            raise config_error(key, "must be true or false")
    elif isinstance(default, int):
        if isinstance(value, bool) or not isinstance(value, int):
            raise config_error(key, "must be an integer")
    elif not isinstance(value, str) and not (default is None and value is None):
        raise config_error(key, "must be a string")
    return value


def _validate(config: CleanerConfig) -> None:
    if not isinstance(config.walker.max_depth, int) or config.walker.max_depth < 0:
        raise config_error("walker.max_depth", "must be a non-negative integer")
    if not isinstance(config.discovery.max_missing_masters, int) or config.discovery.max_missing_masters < 1:
        raise config_error("discovery.max_missing_masters", "must be a positive integer")
    if config.report.format not in _REPORT_FORMATS:
        raise config_error("report.format", f"must be one of {', '.join(_REPORT_FORMATS)}")


def _dict_to_config(data: dict) -> CleanerConfig:
    """Convert a dict to CleanerConfig."""
    unknown = sorted(set(data) - set(_SECTIONS))
    if unknown:
        raise config_error(unknown[0], "unknown configuration section")

    config = CleanerConfig(
        walker=_build_section("walker", data.get("walker")),
        classifier=_build_section("classifier", data.get("classifier")),
        discovery=_build_section("discovery", data.get("discovery")),
        report=_build_section("report", data.get("report")),
    )
    _validate(config)
    return config


def load_config(path: str | Path | None = None) -> CleanerConfig:
    """Load configuration from file with defaults and env overrides.

    Priority (highest to lowest):
    1. Environment variables (MASTERCLEANER_*)
    2. Explicit path if provided
    3. .mastercleaner/config.yaml (project-local)
    4. ~/.mastercleaner/config.yaml (user-global)
    5. Built-in defaults

    Args:
        path: Optional explicit config file path.

    Returns:
        Merged CleanerConfig instance.

    Raises:
        CleanerError: If a config file holds unknown keys or invalid values.
    """
    global _config

    config_dict: dict[str, Any] = {
        name: asdict(section_type()) for name, section_type in _SECTIONS.items()
    }

    config_paths = []
    if path:
        config_paths.append(Path(path))
    config_paths.extend([
        Path(".mastercleaner/config.yaml"),
        Path.home() / ".mastercleaner" / "config.yaml",
    ])

    for config_path in config_paths:
        if not config_path.exists():
            continue
        try:
            with open(config_path, encoding="utf-8") as f:
                file_config = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            logger.warning("Skipping unreadable config file %s: %s", config_path, e)
            continue
        if not isinstance(file_config, dict):
            raise config_error(str(config_path), "top level must be a mapping")
        _deep_update(config_dict, file_config)
        logger.debug("Loaded config from %s", config_path)
        break  # Use first found config

    config_dict = _apply_env_overrides(config_dict)

    _config = _dict_to_config(config_dict)
    return _config


def get_config() -> CleanerConfig:
    """Get the current configuration, loading if needed."""
    global _config

    if _config is not None:
        return _config

    with _config_lock:
        if _config is None:
            _config = load_config()
        return _config


def reset_config() -> None:
    """Reset the global config (useful for testing)."""
    global _config
    with _config_lock:
        _config = None


def save_default_config(path: str | Path = ".mastercleaner/config.yaml") -> Path:
    """Save the default configuration to a file.

    Args:
        path: Where to save the config.

    Returns:
        Path to the saved config file.
    """
    config_content = '''# mastercleaner configuration
#
# NOTE: Actual defaults are defined in mastercleaner/foundation/types/config.py.
# This file is an example template - edit values you want to override.

walker:
  # Deepest nesting level searched for references (deeper branches are skipped)
  max_depth: 16
  # Extra field names never traversed
  skip_fields: []

classifier:
  placed_object_category: PlacedObject
  form_list_category: FormList
  container_category: Container
  leveled_prefix: Leveled
  cell_categories: [Cell]
  worldspace_categories: [Worldspace]
  top_cell_field: top_cell

discovery:
  # Game Data directory (auto-detected when unset)
  data_dir: null
  anchor_master: Skyrim.esm
  base_masters: [Skyrim.esm, Update.esm, Dawnguard.esm, HearthFires.esm, Dragonborn.esm]
  plugin_extensions: [.esp, .esm, .esl]
  # Plugins missing more masters than this can only be cleaned manually
  max_missing_masters: 1

report:
  format: json
  indent: 2
  suffix: _MissingMasterReport
'''

    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(config_content, encoding="utf-8")
    return path
