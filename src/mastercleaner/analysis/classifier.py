"""Hit classifier: sorts a plugin's links into a missing master by safety.

Two passes over the records:

1. Collect the form keys of every record the missing master owns.
2. Classify each record:

   - owned records are listed as wholesale removals, placed references
     apart from everything else; they are never walked
   - foreign form lists, leveled lists and containers keep every link,
     because those are exactly the list entries to edit out
   - any other foreign record drops links to owned records (the owned
     record's removal already covers them) and links nested in a placed
     reference that is itself being removed; what is left is unsafe

Pass 1 finishes over the whole collection before pass 2 starts: the
filtering in pass 2 depends on every owned key, not just those seen so far.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from typing import Any

from mastercleaner.analysis.paths import FieldSegment, IndexSegment, PathSegment
from mastercleaner.analysis.report import (
    Bucket,
    MissingMasterReport,
    ReportAssembler,
    ReportEntry,
)
from mastercleaner.analysis.shapes import classify_shape, display_name_of, resolve_reference
from mastercleaner.analysis.walker import LinkHit, ReferenceWalker
from mastercleaner.foundation.types.config import ClassifierConfig
from mastercleaner.model.identity import CollectionIdentity, FormKey
from mastercleaner.model.records import RecordLike

logger = logging.getLogger(__name__)

# Sequences of placed references held by cells
PLACED_REF_SEQUENCES = frozenset({"persistent", "temporary"})


def placed_ref_position(segments: Sequence[PathSegment]) -> tuple[str, int] | None:
    """Locate the first ``persistent[n]`` or ``temporary[n]`` step of a path.

    Matches whole field segments only (case-insensitive) and requires the
    index to follow immediately.

    Returns:
        (field name as it appears in the path, index), or None.
    """
    for segment, following in zip(segments, segments[1:]):
        if (
            isinstance(segment, FieldSegment)
            and segment.name.casefold() in PLACED_REF_SEQUENCES
            and isinstance(following, IndexSegment)
        ):
            return segment.name, following.index
    return None


def _form_key_of(value: Any) -> FormKey | None:
    key = getattr(value, "form_key", None)
    if isinstance(key, FormKey):
        return key
    shape = classify_shape(value)
    return resolve_reference(value, shape) if shape.is_reference else None


class MissingMasterClassifier:
    """Builds the missing-master report for one plugin."""

    def __init__(
        self,
        target: CollectionIdentity,
        *,
        settings: ClassifierConfig | None = None,
        walker: ReferenceWalker | None = None,
    ) -> None:
        self.target = target
        self.settings = settings or ClassifierConfig()
        self.walker = walker or ReferenceWalker()

        s = self.settings
        self._cell_categories = frozenset(c.casefold() for c in s.cell_categories)
        self._worldspace_categories = frozenset(c.casefold() for c in s.worldspace_categories)

    def classify(self, records: Iterable[RecordLike], plugin: str) -> MissingMasterReport:
        """Classify ``records`` (in the order given) into a report."""
        records = tuple(records)
        owned = self.collect_owned(records)

        assembler = ReportAssembler()
        for record in records:
            entry = self.classify_record(record, owned)
            if entry is not None:
                assembler.add(entry)

        report = assembler.build(plugin, self.target)
        logger.info(
            "Classified %d record(s) of %s against %s: %d owned, %d placed refs, "
            "%d safe list links, %d other links",
            len(records),
            plugin,
            self.target,
            len(report.owned_non_placed),
            len(report.owned_placed_refs),
            report.safe_link_count,
            report.other_link_count,
        )
        return report

    def collect_owned(self, records: Iterable[RecordLike]) -> frozenset[FormKey]:
        """Form keys of every record the target collection owns."""
        return frozenset(r.form_key for r in records if r.form_key.collection == self.target)

    def classify_record(
        self,
        record: RecordLike,
        owned: frozenset[FormKey],
    ) -> ReportEntry | None:
        """Return the report entry for one record, or None if it has none."""
        if record.form_key.collection == self.target:
            return self._owned_entry(record)

        hits = self.walker.find_references(record, self.target)
        if not hits:
            return None

        bucket = self.bucket_for(record.category)
        if bucket is Bucket.UNSAFE_OTHER_LINKS:
            hits = [
                hit for hit in hits
                if hit.referenced not in owned
                and not self.inside_removed_placed_ref(record, hit)
            ]
            if not hits:
                return None

        return ReportEntry(
            bucket=bucket,
            record_type=record.category,
            form_key=record.form_key,
            editor_id=record.editor_id,
            links=tuple(hits),
        )

    def bucket_for(self, category: str) -> Bucket:
        """Bucket for a foreign record of ``category`` that holds links."""
        s = self.settings
        folded = category.casefold()
        if folded == s.form_list_category.casefold():
            return Bucket.SAFE_FORM_LISTS
        if folded.startswith(s.leveled_prefix.casefold()):
            return Bucket.SAFE_LEVELED_LISTS
        if folded == s.container_category.casefold():
            return Bucket.SAFE_CONTAINERS
        return Bucket.UNSAFE_OTHER_LINKS

    def inside_removed_placed_ref(self, record: RecordLike, hit: LinkHit) -> bool:
        """Whether ``hit`` sits inside a placed reference owned by the target.

        Such a placed reference is removed wholesale, taking the link with it.
        """
        position = placed_ref_position(hit.segments)
        if position is None:
            return False

        holder = self._placed_ref_holder(record)
        if holder is None:
            return False

        field_name, index = position
        sequence = self.walker.fields.find(holder, field_name)
        if not isinstance(sequence, Sequence) or isinstance(sequence, (str, bytes)):
            return False
        if not 0 <= index < len(sequence):
            return False

        key = _form_key_of(sequence[index])
        return key is not None and key.collection == self.target

    def _placed_ref_holder(self, record: RecordLike) -> Any:
        """The object holding a record's placed-reference sequences."""
        category = record.category.casefold()
        if category in self._cell_categories:
            return record
        if category in self._worldspace_categories:
            return self.walker.fields.find(record, self.settings.top_cell_field)
        return None

    def _owned_entry(self, record: RecordLike) -> ReportEntry:
        placed = record.category.casefold() == self.settings.placed_object_category.casefold()
        return ReportEntry(
            bucket=Bucket.OWNED_PLACED_REFS if placed else Bucket.OWNED_NON_PLACED,
            record_type=record.category,
            form_key=record.form_key,
            editor_id=record.editor_id,
            display_name=display_name_of(record),
        )


def classify(
    records: Iterable[RecordLike],
    target: CollectionIdentity,
    plugin: str,
    *,
    settings: ClassifierConfig | None = None,
    walker: ReferenceWalker | None = None,
) -> MissingMasterReport:
    """Classify ``records`` of ``plugin`` against the missing ``target``."""
    return MissingMasterClassifier(target, settings=settings, walker=walker).classify(records, plugin)
