"""Plugin container: header plus records."""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

from mastercleaner.model.identity import CollectionIdentity
from mastercleaner.model.records import MajorRecord


@dataclass(frozen=True, slots=True)
class PluginHeader:
    """The part of a plugin needed for triage: its name and its masters."""

    identity: CollectionIdentity
    masters: tuple[CollectionIdentity, ...] = ()


@dataclass(frozen=True, slots=True)
class Plugin:
    """A loaded record collection."""

    header: PluginHeader
    records: tuple[MajorRecord, ...] = field(default_factory=tuple)
    """Top-level records, in file order."""

    @property
    def identity(self) -> CollectionIdentity:
        return self.header.identity

    @property
    def masters(self) -> tuple[CollectionIdentity, ...]:
        return self.header.masters

    def major_records(self) -> Iterator[MajorRecord]:
        """Yield every major record, nested ones included, depth-first.

        Placed references inside cells and cells inside worldspaces are major
        records of their own and follow their parent in document order.
        """
        for record in self.records:
            yield record
            yield from record.iter_nested_records()
