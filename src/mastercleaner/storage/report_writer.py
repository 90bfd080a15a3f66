"""Report file placement and crash-tolerant writing."""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

import yaml

from mastercleaner.analysis.report import MissingMasterReport
from mastercleaner.foundation.errors import ErrorCode, config_error, io_error
from mastercleaner.storage.dump import DUMP_SUFFIXES

logger = logging.getLogger(__name__)

_FORMAT_SUFFIX = {"json": ".json", "yaml": ".yaml"}


def report_path_for(
    plugin_path: str | Path,
    output_dir: str | Path | None = None,
    *,
    suffix: str = "_MissingMasterReport",
    fmt: str = "json",
) -> Path:
    """Name the report for a plugin: ``<stem><suffix>.json`` next to it.

    ``Foo.esp`` and the dump ``Foo.esp.json`` both give
    ``Foo_MissingMasterReport.json``.
    """
    if fmt not in _FORMAT_SUFFIX:
        raise config_error("report.format", f"unsupported format {fmt!r}")
    plugin_path = Path(plugin_path)
    name = plugin_path.name
    if plugin_path.suffix.lower() in DUMP_SUFFIXES:
        name = plugin_path.stem
    stem = Path(name).stem
    directory = Path(output_dir) if output_dir is not None else plugin_path.parent
    return directory / f"{stem}{suffix}{_FORMAT_SUFFIX[fmt]}"


def render_report(report: MissingMasterReport, fmt: str = "json", indent: int = 2) -> str:
    """Render a report document as text."""
    if fmt == "json":
        return report.to_json(indent=indent)
    if fmt == "yaml":
        return yaml.safe_dump(report.to_dict(), default_flow_style=False, sort_keys=False, indent=indent)
    raise config_error("report.format", f"unsupported format {fmt!r}")


def write_report(
    report: MissingMasterReport,
    path: str | Path,
    *,
    fmt: str = "json",
    indent: int = 2,
) -> Path:
    """Write a report atomically (temp file + rename).

    Raises:
        CleanerError: If the file cannot be written.
    """
    path = Path(path)
    content = render_report(report, fmt=fmt, indent=indent)

    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(suffix=".tmp", prefix=path.stem + "_", dir=path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp_path, path)
        except BaseException:
            Path(tmp_path).unlink(missing_ok=True)
            raise
    except OSError as e:
        raise io_error(ErrorCode.FILE_WRITE_FAILED, str(path), cause=e) from e

    logger.info("Report written to %s", path)
    return path
