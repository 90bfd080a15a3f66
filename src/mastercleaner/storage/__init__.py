"""Storage collaborators: record dumps in, reports and dummy masters out."""

from mastercleaner.storage.dump import (
    DUMP_SUFFIXES,
    load_plugin,
    read_header,
    write_dummy_master,
)
from mastercleaner.storage.report_writer import render_report, report_path_for, write_report

__all__ = [
    "DUMP_SUFFIXES",
    "load_plugin",
    "read_header",
    "render_report",
    "report_path_for",
    "write_dummy_master",
    "write_report",
]
