"""Configuration type definitions - single source of truth for all config classes."""


from dataclasses import dataclass

DEFAULT_BASE_MASTERS: tuple[str, ...] = (
    "Skyrim.esm",
    "Update.esm",
    "Dawnguard.esm",
    "HearthFires.esm",
    "Dragonborn.esm",
)


@dataclass(frozen=True, slots=True)
class WalkerConfig:
    """Configuration for the reference-graph walker."""

    max_depth: int = 16
    """Deepest nesting level searched; deeper branches are truncated silently."""

    skip_fields: tuple[str, ...] = ()
    """Extra field names never traversed, on top of the built-in denylist."""


@dataclass(frozen=True, slots=True)
class ClassifierConfig:
    """Category names the hit classifier routes on.

    All comparisons are case-insensitive.
    """

    placed_object_category: str = "PlacedObject"
    """Owned records of this category are reported as placed references."""

    form_list_category: str = "FormList"
    """Foreign records of this category go to the FormLists bucket."""

    container_category: str = "Container"
    """Foreign records of this category go to the Containers bucket."""

    leveled_prefix: str = "Leveled"
    """Foreign records whose category starts with this go to LeveledLists."""

    cell_categories: tuple[str, ...] = ("Cell",)
    """Records holding Persistent/Temporary placed-reference sequences directly."""

    worldspace_categories: tuple[str, ...] = ("Worldspace",)
    """Records holding those sequences on their top-level nested cell."""

    top_cell_field: str = "top_cell"
    """Field of a worldspace-like record that holds its top-level cell."""


@dataclass(frozen=True, slots=True)
class DiscoveryConfig:
    """Configuration for Data directory discovery and plugin triage."""

    data_dir: str | None = None
    """Game Data directory; auto-detected when unset."""

    anchor_master: str = "Skyrim.esm"
    """File that must exist for a directory to count as a Data directory."""

    base_masters: tuple[str, ...] = DEFAULT_BASE_MASTERS
    """Base-game masters that are never triaged."""

    plugin_extensions: tuple[str, ...] = (".esp", ".esm", ".esl")
    """File extensions that identify plugins."""

    max_missing_masters: int = 1
    """Plugins missing more masters than this can only be cleaned manually."""

    registry_key: str = r"SOFTWARE\WOW6432Node\Bethesda Softworks\Skyrim Special Edition"
    """Windows registry key holding the game's install path."""


@dataclass(frozen=True, slots=True)
class ReportConfig:
    """Configuration for report and dummy master output."""

    format: str = "json"
    """Report document format: json or yaml."""

    indent: int = 2
    """Indentation of the written report."""

    suffix: str = "_MissingMasterReport"
    """Appended to the plugin stem to name the report file."""

    dummy_author: str = "mastercleaner"
    """Author recorded in generated dummy masters."""

    dummy_description: str = "Temporary dummy master created by mastercleaner"
    """Description recorded in generated dummy masters."""

    edit_script: str = "MissingMasterCleaner_ApplyJsonRemovals"
    """Name of the editor script that applies the report (shown in next steps)."""
