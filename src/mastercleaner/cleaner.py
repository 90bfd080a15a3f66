"""Cleaning steps shared by the CLI commands.

Each step takes the loaded ``CleanerConfig`` and raises ``CleanerError``
for anything the person running the tool has to fix.
"""

from __future__ import annotations

import logging
from pathlib import Path

from mastercleaner.analysis.classifier import classify
from mastercleaner.analysis.report import MissingMasterReport
from mastercleaner.analysis.walker import ReferenceWalker
from mastercleaner.discovery import list_plugins, missing_masters, present_plugins
from mastercleaner.foundation.config.loader import CleanerConfig
from mastercleaner.foundation.errors import ErrorCode, plugin_error
from mastercleaner.model.identity import CollectionIdentity
from mastercleaner.model.plugin import Plugin
from mastercleaner.storage.dump import load_plugin, write_dummy_master
from mastercleaner.storage.report_writer import report_path_for, write_report

logger = logging.getLogger(__name__)


def load_target_plugin(plugin_path: str | Path) -> Plugin:
    """Load the plugin to clean.

    Raises:
        CleanerError: If the file does not exist or cannot be loaded.
    """
    plugin_path = Path(plugin_path)
    if not plugin_path.is_file():
        raise plugin_error(ErrorCode.PLUGIN_NOT_FOUND, plugin=plugin_path.name, path=str(plugin_path))
    return load_plugin(plugin_path)


def resolve_missing_master(
    plugin: Plugin,
    plugin_path: str | Path,
    config: CleanerConfig,
    missing: str | None = None,
) -> CollectionIdentity:
    """Pick the master to clean ``plugin`` against.

    An explicit ``missing`` name must be one of the plugin's masters.
    Otherwise the masters absent from the plugin's directory decide: there
    must be at least one and no more than ``max_missing_masters``; the
    first in header order is chosen.
    """
    name = plugin.identity.name
    if missing is not None:
        master = CollectionIdentity(missing)
        if master not in plugin.masters:
            raise plugin_error(ErrorCode.PLUGIN_MASTER_NOT_LISTED, plugin=name, master=missing)
        return master

    settings = config.discovery
    directory = Path(plugin_path).parent
    present = present_plugins(list_plugins(directory, settings.plugin_extensions), settings.plugin_extensions)
    absent = missing_masters(plugin.header, present)
    if not absent:
        raise plugin_error(ErrorCode.PLUGIN_NO_MISSING_MASTER, plugin=name, path=str(plugin_path))
    if len(absent) > settings.max_missing_masters:
        raise plugin_error(
            ErrorCode.PLUGIN_TOO_MANY_MISSING,
            plugin=name,
            path=str(plugin_path),
            count=len(absent),
            masters=", ".join(m.name for m in absent),
        )
    logger.info("Detected missing master %s for %s", absent[0], name)
    return absent[0]


def analyze_plugin(
    plugin: Plugin,
    missing: CollectionIdentity,
    config: CleanerConfig,
    *,
    max_depth: int | None = None,
) -> MissingMasterReport:
    """Classify every record of ``plugin`` against ``missing``."""
    walker = ReferenceWalker(
        max_depth=config.walker.max_depth if max_depth is None else max_depth,
        skip_fields=config.walker.skip_fields,
    )
    return classify(
        plugin.major_records(),
        missing,
        plugin.identity.name,
        settings=config.classifier,
        walker=walker,
    )


def save_report(
    report: MissingMasterReport,
    plugin_path: str | Path,
    config: CleanerConfig,
    *,
    output_dir: str | Path | None = None,
    fmt: str | None = None,
) -> Path:
    """Write ``report`` under the name derived from the plugin file."""
    settings = config.report
    fmt = fmt or settings.format
    path = report_path_for(plugin_path, output_dir, suffix=settings.suffix, fmt=fmt)
    return write_report(report, path, fmt=fmt, indent=settings.indent)


def place_dummy_master(data_dir: str | Path, missing: CollectionIdentity, config: CleanerConfig) -> Path:
    """Put an empty stand-in for ``missing`` into the Data directory."""
    return write_dummy_master(
        data_dir,
        missing,
        author=config.report.dummy_author,
        description=config.report.dummy_description,
    )
