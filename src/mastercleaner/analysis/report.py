"""Missing-master report: buckets, entries and the assembler that fills them.

The report is the hand-off to the editor script that performs the removals,
so its mapping keys (``PlacedObjects``, ``Links``, ``ReferencedFormKey``, ...)
are a stable external format.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any

from mastercleaner.analysis.walker import LinkHit
from mastercleaner.model.identity import CollectionIdentity, FormKey


class Bucket(Enum):
    """Report sections; the value is the section's key in the document."""

    OWNED_NON_PLACED = "PlacedObjects"
    OWNED_PLACED_REFS = "PlacedRefs"
    SAFE_FORM_LISTS = "FormLists"
    SAFE_LEVELED_LISTS = "LeveledLists"
    SAFE_CONTAINERS = "Containers"
    UNSAFE_OTHER_LINKS = "OtherLinks"

    @property
    def is_owned(self) -> bool:
        """Sections listing records of the missing master itself."""
        return self in (Bucket.OWNED_NON_PLACED, Bucket.OWNED_PLACED_REFS)

    @property
    def is_safe_list(self) -> bool:
        """Sections whose links can be dropped from their list mechanically."""
        return self in (
            Bucket.SAFE_FORM_LISTS,
            Bucket.SAFE_LEVELED_LISTS,
            Bucket.SAFE_CONTAINERS,
        )


@dataclass(frozen=True, slots=True)
class ReportEntry:
    """One record's line in the report."""

    bucket: Bucket
    record_type: str
    form_key: FormKey
    editor_id: str | None = None
    display_name: str | None = None
    """Only reported for owned records."""

    links: tuple[LinkHit, ...] = ()
    """Links into the missing master; empty for owned records."""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the report's mapping layout."""
        if self.bucket.is_owned:
            data: dict[str, Any] = {
                "RecordType": self.record_type,
                "ReferencedFormKey": str(self.form_key),
                "RecordFormIDHex": self.form_key.form_id_hex,
                "EditorID": self.editor_id,
            }
            if self.display_name:
                data["DisplayName"] = self.display_name
            return data

        return {
            "RecordType": self.record_type,
            "RecordFormKey": str(self.form_key),
            "RecordFormIDHex": self.form_key.form_id_hex,
            "EditorID": self.editor_id,
            "Links": [hit.to_dict() for hit in self.links],
        }


@dataclass(frozen=True, slots=True)
class MissingMasterReport:
    """Classified references from one plugin into its missing master."""

    plugin: str
    missing_master: CollectionIdentity
    owned_non_placed: tuple[ReportEntry, ...] = ()
    owned_placed_refs: tuple[ReportEntry, ...] = ()
    safe_form_lists: tuple[ReportEntry, ...] = ()
    safe_leveled_lists: tuple[ReportEntry, ...] = ()
    safe_containers: tuple[ReportEntry, ...] = ()
    unsafe_other_links: tuple[ReportEntry, ...] = ()

    def entries(self, bucket: Bucket) -> tuple[ReportEntry, ...]:
        return {
            Bucket.OWNED_NON_PLACED: self.owned_non_placed,
            Bucket.OWNED_PLACED_REFS: self.owned_placed_refs,
            Bucket.SAFE_FORM_LISTS: self.safe_form_lists,
            Bucket.SAFE_LEVELED_LISTS: self.safe_leveled_lists,
            Bucket.SAFE_CONTAINERS: self.safe_containers,
            Bucket.UNSAFE_OTHER_LINKS: self.unsafe_other_links,
        }[bucket]

    def counts(self) -> dict[Bucket, int]:
        """Entries per bucket."""
        return {bucket: len(self.entries(bucket)) for bucket in Bucket}

    def link_count(self, bucket: Bucket) -> int:
        """Links listed across all entries of ``bucket``."""
        return sum(len(entry.links) for entry in self.entries(bucket))

    @property
    def safe_link_count(self) -> int:
        return sum(self.link_count(b) for b in Bucket if b.is_safe_list)

    @property
    def other_link_count(self) -> int:
        return self.link_count(Bucket.UNSAFE_OTHER_LINKS)

    @property
    def is_empty(self) -> bool:
        return not any(self.counts().values())

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "Plugin": self.plugin,
            "MissingMaster": self.missing_master.name,
        }
        for bucket in Bucket:
            data[bucket.value] = [entry.to_dict() for entry in self.entries(bucket)]
        return data

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


class ReportAssembler:
    """Collects entries bucket by bucket, in the order they are added.

    The assembler neither filters nor reorders; it only refuses link
    entries without links.
    """

    def __init__(self) -> None:
        self._buckets: dict[Bucket, list[ReportEntry]] = {bucket: [] for bucket in Bucket}

    def add(self, entry: ReportEntry) -> None:
        if not entry.bucket.is_owned and not entry.links:
            raise ValueError(f"link entry without links for {entry.form_key}")
        self._buckets[entry.bucket].append(entry)

    def counts(self) -> dict[Bucket, int]:
        """Entries per bucket so far."""
        return {bucket: len(entries) for bucket, entries in self._buckets.items()}

    def link_count(self, bucket: Bucket) -> int:
        return sum(len(entry.links) for entry in self._buckets[bucket])

    def build(self, plugin: str, missing_master: CollectionIdentity) -> MissingMasterReport:
        return MissingMasterReport(
            plugin=plugin,
            missing_master=missing_master,
            owned_non_placed=tuple(self._buckets[Bucket.OWNED_NON_PLACED]),
            owned_placed_refs=tuple(self._buckets[Bucket.OWNED_PLACED_REFS]),
            safe_form_lists=tuple(self._buckets[Bucket.SAFE_FORM_LISTS]),
            safe_leveled_lists=tuple(self._buckets[Bucket.SAFE_LEVELED_LISTS]),
            safe_containers=tuple(self._buckets[Bucket.SAFE_CONTAINERS]),
            unsafe_other_links=tuple(self._buckets[Bucket.UNSAFE_OTHER_LINKS]),
        )
