"""Record identity: collections, form keys and links.

A `FormKey` names one record by the collection (plugin file) that owns it
and a 32-bit local id. Links are the typed slots records use to point at
other records; all three link shapes resolve to a `FormKey`.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import ClassVar, Generic, TypeVar

_MAX_LOCAL_ID = 0xFFFFFFFF

# "Foo.esp:000ABC" (collection first) or "000ABC:Foo.esp" (id first)
_COLLECTION_FIRST = re.compile(r"^(?P<name>.+):(?P<id>[0-9A-Fa-f]{1,8})$")
_ID_FIRST = re.compile(r"^(?P<id>[0-9A-Fa-f]{1,8}):(?P<name>.+)$")


@dataclass(frozen=True, slots=True, eq=False)
class CollectionIdentity:
    """Names one record collection by its file name.

    Equality and hashing ignore case: ``Foo.esp`` and ``FOO.ESP`` are the
    same collection.
    """

    name: str

    NULL: ClassVar[CollectionIdentity]

    @property
    def stem(self) -> str:
        """File name without its extension."""
        stem, _, _ = self.name.rpartition(".")
        return stem or self.name

    @property
    def extension(self) -> str:
        """Lower-cased extension including the dot, or '' when absent."""
        _, dot, ext = self.name.rpartition(".")
        return f".{ext.lower()}" if dot else ""

    @property
    def is_null(self) -> bool:
        return not self.name

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CollectionIdentity):
            return NotImplemented
        return self.name.casefold() == other.name.casefold()

    def __hash__(self) -> int:
        return hash(self.name.casefold())

    def __str__(self) -> str:
        return self.name


CollectionIdentity.NULL = CollectionIdentity("")


@dataclass(frozen=True, slots=True)
class FormKey:
    """Identifier of one record: owning collection plus local id."""

    collection: CollectionIdentity
    local_id: int

    NULL: ClassVar[FormKey]

    def __post_init__(self) -> None:
        if not 0 <= self.local_id <= _MAX_LOCAL_ID:
            raise ValueError(f"local id out of 32-bit range: {self.local_id}")

    @classmethod
    def parse(cls, text: str) -> FormKey:
        """Parse ``Foo.esp:000ABC`` or ``000ABC:Foo.esp``.

        The collection-first form wins when both readings are possible.

        Raises:
            ValueError: If the text matches neither form.
        """
        text = text.strip()
        match = _COLLECTION_FIRST.match(text) or _ID_FIRST.match(text)
        if match is None:
            raise ValueError(f"not a form key: {text!r}")
        return cls(CollectionIdentity(match["name"]), int(match["id"], 16))

    @property
    def is_null(self) -> bool:
        return self == FormKey.NULL

    @property
    def form_id_hex(self) -> str:
        """Local id as eight upper-case hex digits."""
        return f"{self.local_id:08X}"

    def __str__(self) -> str:
        return f"{self.collection.name}:{self.local_id:06X}"


FormKey.NULL = FormKey(CollectionIdentity.NULL, 0)


@dataclass(frozen=True, slots=True)
class FormLink:
    """An untyped link slot wrapping a single form key."""

    form_key: FormKey

    @property
    def is_null(self) -> bool:
        return self.form_key.is_null


T = TypeVar("T")


@dataclass(frozen=True, slots=True)
class TypedFormLink(Generic[T]):
    """A link slot parameterized by the record type it points at.

    ``target_type`` keeps the parameter at runtime for reporting; the
    walker only looks at ``form_key``.
    """

    form_key: FormKey
    target_type: str = ""

    @property
    def is_null(self) -> bool:
        return self.form_key.is_null
