"""Record object model.

Records are graph nodes: a form key, a category tag, an optional editor id
and any number of typed fields (scalars, nested groups, sequences, links).
Field enumeration is an explicit capability (`FieldAccess`) so traversal
never has to guess at an object's attributes.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Mapping
from typing import Any, Protocol, runtime_checkable

from mastercleaner.model.identity import CollectionIdentity, FormKey

# Field names that carry a record's human-readable name
DISPLAY_NAME_FIELDS: tuple[str, ...] = ("name", "display_name")


@runtime_checkable
class FieldAccess(Protocol):
    """Capability of nodes that enumerate their own fields."""

    def field_names(self) -> tuple[str, ...]: ...

    def has_field(self, name: str) -> bool: ...

    def get_field(self, name: str) -> Any: ...


@runtime_checkable
class RecordLike(Protocol):
    """What the classifier needs from a record."""

    form_key: FormKey
    category: str
    editor_id: str | None


class FieldGroup:
    """A nested structure of named fields inside a record."""

    __slots__ = ("_fields",)

    def __init__(self, fields: Mapping[str, Any] | None = None) -> None:
        self._fields: dict[str, Any] = dict(fields or {})

    def field_names(self) -> tuple[str, ...]:
        return tuple(self._fields)

    def has_field(self, name: str) -> bool:
        return name in self._fields

    def get_field(self, name: str) -> Any:
        try:
            return self._fields[name]
        except KeyError:
            raise AttributeError(name) from None

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get_field(name)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FieldGroup):
            return NotImplemented
        return self._fields == other._fields

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._fields!r})"


class MajorRecord(FieldGroup):
    """A top-level or nested record owned by one collection.

    Example:
        >>> fk = FormKey.parse("Foo.esp:000801")
        >>> cell = MajorRecord(fk, "Cell", editor_id="FooCell", fields={"persistent": []})
        >>> cell.persistent
        []
    """

    __slots__ = ("form_key", "category", "editor_id")

    def __init__(
        self,
        form_key: FormKey,
        category: str,
        editor_id: str | None = None,
        fields: Mapping[str, Any] | None = None,
    ) -> None:
        super().__init__(fields)
        self.form_key = form_key
        self.category = category
        self.editor_id = editor_id

    @property
    def collection(self) -> CollectionIdentity:
        return self.form_key.collection

    def field_names(self) -> tuple[str, ...]:
        return ("form_key", "editor_id", *self._fields)

    def has_field(self, name: str) -> bool:
        return name in ("form_key", "editor_id") or name in self._fields

    def get_field(self, name: str) -> Any:
        if name == "form_key":
            return self.form_key
        if name == "editor_id":
            return self.editor_id
        return super().get_field(name)

    def iter_nested_records(self) -> Iterator[MajorRecord]:
        """Yield records held in this record's fields, depth-first."""
        for value in self._fields.values():
            yield from _nested_records(value)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, MajorRecord):
            return NotImplemented
        return (
            self.form_key == other.form_key
            and self.category == other.category
            and self.editor_id == other.editor_id
            and self._fields == other._fields
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"MajorRecord({self.category} {self.form_key}, editor_id={self.editor_id!r})"


def _nested_records(value: Any) -> Iterable[MajorRecord]:
    if isinstance(value, MajorRecord):
        yield value
        yield from value.iter_nested_records()
    elif isinstance(value, FieldGroup):
        for name in value.field_names():
            yield from _nested_records(value.get_field(name))
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _nested_records(item)
