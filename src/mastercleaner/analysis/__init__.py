"""Reference analysis: walk record graphs, classify links, assemble reports."""

from mastercleaner.analysis.classifier import (
    MissingMasterClassifier,
    classify,
    placed_ref_position,
)
from mastercleaner.analysis.paths import FieldSegment, IndexSegment, render_path
from mastercleaner.analysis.report import (
    Bucket,
    MissingMasterReport,
    ReportAssembler,
    ReportEntry,
)
from mastercleaner.analysis.shapes import (
    NodeShape,
    classify_shape,
    display_name_of,
    field_names,
    read_field,
)
from mastercleaner.analysis.walker import (
    DEFAULT_MAX_DEPTH,
    LinkHit,
    ReferenceWalker,
    find_references,
)

__all__ = [
    "Bucket",
    "DEFAULT_MAX_DEPTH",
    "FieldSegment",
    "IndexSegment",
    "LinkHit",
    "MissingMasterClassifier",
    "MissingMasterReport",
    "NodeShape",
    "ReferenceWalker",
    "ReportAssembler",
    "ReportEntry",
    "classify",
    "classify_shape",
    "display_name_of",
    "field_names",
    "find_references",
    "placed_ref_position",
    "read_field",
    "render_path",
]
