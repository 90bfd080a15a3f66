"""Data directory discovery and plugin triage.

Triage sorts every plugin in a Data directory by how many of its masters
are missing:

- none missing: nothing to do
- up to ``max_missing_masters`` missing: cleanable with a report
- more than that: unsafe, manual cleaning only
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from mastercleaner.foundation.errors import CleanerError, ErrorCode
from mastercleaner.foundation.types.config import DiscoveryConfig
from mastercleaner.model.identity import CollectionIdentity
from mastercleaner.model.plugin import PluginHeader
from mastercleaner.storage.dump import DUMP_SUFFIXES, read_header

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PluginTriage:
    """A plugin with at least one missing master."""

    path: Path
    identity: CollectionIdentity
    missing: tuple[CollectionIdentity, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "plugin": self.identity.name,
            "path": str(self.path),
            "missing_masters": [m.name for m in self.missing],
        }


@dataclass(frozen=True, slots=True)
class TriageFailure:
    """A plugin whose header could not be read."""

    path: Path
    error: str

    def to_dict(self) -> dict[str, Any]:
        return {"path": str(self.path), "error": self.error}


@dataclass(slots=True)
class TriageResult:
    """Plugins of one Data directory, sorted by cleanability."""

    data_dir: Path
    cleanable: list[PluginTriage] = field(default_factory=list)
    unsafe: list[PluginTriage] = field(default_factory=list)
    failed: list[TriageFailure] = field(default_factory=list)
    scanned: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "data_dir": str(self.data_dir),
            "scanned": self.scanned,
            "cleanable": [p.to_dict() for p in self.cleanable],
            "unsafe": [p.to_dict() for p in self.unsafe],
            "failed": [f.to_dict() for f in self.failed],
        }


def plugin_name_of(path: Path, extensions: tuple[str, ...]) -> str | None:
    """The plugin file name a path stands for, or None if it is no plugin.

    ``Foo.esp`` and the dump ``Foo.esp.json`` both stand for ``Foo.esp``.
    """
    name = path.name
    if path.suffix.lower() in DUMP_SUFFIXES:
        name = path.stem
    if Path(name).suffix.lower() in {e.lower() for e in extensions}:
        return name
    return None


def is_valid_data_dir(path: str | Path | None, anchor: str = "Skyrim.esm") -> bool:
    """A Data directory exists and holds the anchor master (or its dump)."""
    if path is None or not str(path).strip():
        return False
    path = Path(path)
    if not path.is_dir():
        return False
    return any((path / f"{anchor}{suffix}").is_file() for suffix in ("", *DUMP_SUFFIXES))


def _registry_data_dir(registry_key: str) -> Path | None:
    """Data directory from the game's install path in the Windows registry."""
    if sys.platform != "win32":
        return None

    import winreg

    try:
        with winreg.OpenKey(winreg.HKEY_LOCAL_MACHINE, registry_key) as key:
            install_path, _ = winreg.QueryValueEx(key, "Installed Path")
    except OSError:
        return None
    if not install_path:
        return None
    return Path(install_path) / "Data"


def detect_data_dir(
    explicit: str | Path | None = None,
    settings: DiscoveryConfig | None = None,
    confirm: Callable[[Path], bool] | None = None,
) -> Path | None:
    """Find the Data directory.

    Order: explicit path, configured ``data_dir``, Windows registry. A
    registry path is only used if ``confirm``, when given, accepts it.

    Raises:
        CleanerError: If an explicit path is given but is not a Data directory.
    """
    settings = settings or DiscoveryConfig()

    if explicit is not None:
        if not is_valid_data_dir(explicit, settings.anchor_master):
            raise CleanerError(
                ErrorCode.DATA_DIR_INVALID,
                context={"path": str(explicit), "anchor": settings.anchor_master},
            )
        return Path(explicit)

    if settings.data_dir:
        if is_valid_data_dir(settings.data_dir, settings.anchor_master):
            return Path(settings.data_dir)
        logger.warning(
            "Configured data_dir %s does not contain %s; ignoring it",
            settings.data_dir,
            settings.anchor_master,
        )

    registry_dir = _registry_data_dir(settings.registry_key)
    if registry_dir is not None and is_valid_data_dir(registry_dir, settings.anchor_master):
        logger.info("Detected Data directory from registry: %s", registry_dir)
        if confirm is None or confirm(registry_dir):
            return registry_dir
        logger.info("Detected Data directory rejected: %s", registry_dir)

    return None


def list_plugins(data_dir: str | Path, extensions: tuple[str, ...]) -> list[Path]:
    """Plugin files in ``data_dir``, sorted by file name."""
    return sorted(
        (p for p in Path(data_dir).iterdir() if p.is_file() and plugin_name_of(p, extensions)),
        key=lambda p: p.name.casefold(),
    )


def present_plugins(
    paths: Iterable[Path],
    extensions: tuple[str, ...],
) -> frozenset[CollectionIdentity]:
    """Identities of the plugins ``paths`` stand for."""
    names = (plugin_name_of(p, extensions) for p in paths)
    return frozenset(CollectionIdentity(name) for name in names if name is not None)


def missing_masters(
    header: PluginHeader,
    present: frozenset[CollectionIdentity],
) -> tuple[CollectionIdentity, ...]:
    """Masters of ``header`` that are not among ``present``, in header order."""
    return tuple(m for m in header.masters if m not in present)


def triage_plugins(
    data_dir: str | Path,
    settings: DiscoveryConfig | None = None,
) -> TriageResult:
    """Sort the plugins of ``data_dir`` by how many masters they miss.

    A plugin whose header cannot be read is recorded as failed; triage
    carries on with the rest.
    """
    settings = settings or DiscoveryConfig()
    data_dir = Path(data_dir)
    result = TriageResult(data_dir=data_dir)

    plugins = list_plugins(data_dir, settings.plugin_extensions)
    present = present_plugins(plugins, settings.plugin_extensions)
    base_masters = {CollectionIdentity(m) for m in settings.base_masters}

    for path in plugins:
        identity = CollectionIdentity(plugin_name_of(path, settings.plugin_extensions) or path.name)
        if identity in base_masters:
            continue

        result.scanned += 1
        try:
            header = read_header(path)
        except CleanerError as e:
            logger.error("Error loading %s: %s", path.name, e.message)
            result.failed.append(TriageFailure(path=path, error=e.message))
            continue

        missing = missing_masters(header, present)
        if not missing:
            continue

        entry = PluginTriage(path=path, identity=identity, missing=missing)
        if len(missing) > settings.max_missing_masters:
            result.unsafe.append(entry)
        else:
            result.cleanable.append(entry)

    logger.info(
        "Triaged %d plugin(s) in %s: %d cleanable, %d unsafe, %d failed",
        result.scanned,
        data_dir,
        len(result.cleanable),
        len(result.unsafe),
        len(result.failed),
    )
    return result
