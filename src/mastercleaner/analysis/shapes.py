"""Node shape recognition and field access for the graph walker.

Every value met during traversal falls in exactly one `NodeShape`. The
shape is worked out once per runtime type and cached, so repeated record
layouts cost a dict lookup. Aggregates enumerate their fields through an
explicit plan, also cached per type:

- `FieldAccess` objects list their own fields (records, field groups)
- mappings expose their string keys
- dataclasses expose their fields, slotted classes their slots
- ``__walk_fields__`` on a class overrides all of the above
- public properties are added for classes that are not `FieldAccess`
- other objects expose their public instance attributes
"""

from __future__ import annotations

import dataclasses
import enum
import logging
import types
import uuid
from collections.abc import Mapping, Sequence, Set
from datetime import date, time, timedelta
from decimal import Decimal
from fractions import Fraction
from typing import Any, Generic

from mastercleaner.model.identity import CollectionIdentity, FormKey, FormLink, TypedFormLink
from mastercleaner.model.records import DISPLAY_NAME_FIELDS, FieldAccess

logger = logging.getLogger(__name__)

# Administrative and back-reference fields never traversed
DEFAULT_SKIP_FIELDS: tuple[str, ...] = (
    "parent",
    "parents",
    "link_cache",
    "links",
    "registration",
    "form_version",
)

_LEAF_TYPES: tuple[type, ...] = (
    type(None),
    bool,
    int,
    float,
    complex,
    str,
    bytes,
    bytearray,
    memoryview,
    Decimal,
    Fraction,
    date,
    time,
    timedelta,
    uuid.UUID,
    enum.Enum,
    CollectionIdentity,
    type,
    types.FunctionType,
    types.BuiltinFunctionType,
    types.MethodType,
    types.ModuleType,
)

# Declared fields of a duck-typed link wrapper
_LINK_FIELDS = frozenset({"form_key"})
_TYPED_LINK_FIELDS = frozenset({"form_key", "target_type"})


class NodeShape(enum.Enum):
    """Closed set of shapes the walker dispatches on."""

    LEAF = "leaf"
    DIRECT_REFERENCE = "direct_reference"
    WRAPPER_REFERENCE = "wrapper_reference"
    PARAMETERIZED_REFERENCE = "parameterized_reference"
    SEQUENCE = "sequence"
    AGGREGATE = "aggregate"

    @property
    def is_reference(self) -> bool:
        return self in (
            NodeShape.DIRECT_REFERENCE,
            NodeShape.WRAPPER_REFERENCE,
            NodeShape.PARAMETERIZED_REFERENCE,
        )


class _PlanKind(enum.Enum):
    CAPABILITY = "capability"
    MAPPING = "mapping"
    STATIC = "static"
    INSTANCE = "instance"


@dataclasses.dataclass(frozen=True, slots=True)
class _FieldPlan:
    kind: _PlanKind
    names: tuple[str, ...] = ()
    """Static field names (STATIC) or public property names (INSTANCE)."""


_shape_cache: dict[type, NodeShape] = {}
_plan_cache: dict[type, _FieldPlan] = {}


def normalize_field_name(name: str) -> str:
    """Comparison key for field names: ``LinkCache`` == ``link_cache``."""
    return name.replace("_", "").casefold()


def _declared_fields(tp: type) -> tuple[str, ...]:
    if dataclasses.is_dataclass(tp):
        return tuple(f.name for f in dataclasses.fields(tp))
    slots: list[str] = []
    for klass in reversed(tp.__mro__):
        declared = vars(klass).get("__slots__", ())
        if isinstance(declared, str):
            declared = (declared,)
        slots.extend(s for s in declared if s not in ("__dict__", "__weakref__"))
    return tuple(slots)


def _has_instance_dict(tp: type) -> bool:
    return getattr(tp, "__dictoffset__", 0) != 0


def _public_properties(tp: type) -> tuple[str, ...]:
    names: list[str] = []
    for klass in reversed(tp.__mro__):
        for name, attr in vars(klass).items():
            if isinstance(attr, property) and not name.startswith("_") and name not in names:
                names.append(name)
    return tuple(names)


def _compute_shape(tp: type) -> NodeShape:
    if issubclass(tp, _LEAF_TYPES):
        return NodeShape.LEAF
    if issubclass(tp, FormKey):
        return NodeShape.DIRECT_REFERENCE
    if issubclass(tp, TypedFormLink):
        return NodeShape.PARAMETERIZED_REFERENCE
    if issubclass(tp, FormLink):
        return NodeShape.WRAPPER_REFERENCE
    if issubclass(tp, Mapping):
        return NodeShape.AGGREGATE
    if issubclass(tp, (Sequence, Set)):
        return NodeShape.SEQUENCE
    if hasattr(tp, "field_names") and hasattr(tp, "get_field"):
        return NodeShape.AGGREGATE

    declared = frozenset(_declared_fields(tp))
    if declared == _LINK_FIELDS or declared == _TYPED_LINK_FIELDS:
        if issubclass(tp, Generic):  # type: ignore[arg-type]
            return NodeShape.PARAMETERIZED_REFERENCE
        return NodeShape.WRAPPER_REFERENCE

    if declared or _has_instance_dict(tp) or hasattr(tp, "__walk_fields__"):
        return NodeShape.AGGREGATE
    # Unknown opaque objects degrade to leaves
    return NodeShape.LEAF


def classify_shape(value: Any) -> NodeShape:
    """Return the shape of ``value``, cached per runtime type."""
    tp = type(value)
    shape = _shape_cache.get(tp)
    if shape is None:
        shape = _compute_shape(tp)
        _shape_cache[tp] = shape
    return shape


def resolve_reference(value: Any, shape: NodeShape) -> FormKey | None:
    """Extract the form key a reference-shaped value points at."""
    if shape is NodeShape.DIRECT_REFERENCE:
        return value
    if shape.is_reference:
        key = getattr(value, "form_key", None)
        return key if isinstance(key, FormKey) else None
    return None


def _compute_plan(tp: type) -> _FieldPlan:
    walk_fields = getattr(tp, "__walk_fields__", None)
    if walk_fields is not None:
        return _FieldPlan(_PlanKind.STATIC, tuple(walk_fields))
    if issubclass(tp, Mapping):
        return _FieldPlan(_PlanKind.MAPPING)
    if hasattr(tp, "field_names") and hasattr(tp, "get_field"):
        return _FieldPlan(_PlanKind.CAPABILITY)

    properties = _public_properties(tp)
    declared = tuple(name for name in _declared_fields(tp) if not name.startswith("_"))
    if dataclasses.is_dataclass(tp) or not _has_instance_dict(tp):
        return _FieldPlan(_PlanKind.STATIC, declared + tuple(p for p in properties if p not in declared))
    return _FieldPlan(_PlanKind.INSTANCE, properties)


def _plan_for(tp: type) -> _FieldPlan:
    plan = _plan_cache.get(tp)
    if plan is None:
        plan = _compute_plan(tp)
        _plan_cache[tp] = plan
    return plan


class FieldEnumerator:
    """Lists and reads the traversable fields of aggregate nodes.

    Field names matching the skip list are never listed; matching ignores
    case and underscores.
    """

    def __init__(self, skip_fields: tuple[str, ...] = ()) -> None:
        self._skip = frozenset(
            normalize_field_name(name) for name in (*DEFAULT_SKIP_FIELDS, *skip_fields)
        )
        self._static_cache: dict[type, tuple[str, ...]] = {}

    def is_skipped(self, name: str) -> bool:
        return normalize_field_name(name) in self._skip

    def field_names(self, node: Any) -> tuple[str, ...]:
        """Return the names of the traversable fields of ``node``."""
        tp = type(node)
        plan = _plan_for(tp)

        if plan.kind is _PlanKind.STATIC:
            names = self._static_cache.get(tp)
            if names is None:
                names = tuple(n for n in plan.names if not self.is_skipped(n))
                self._static_cache[tp] = names
            return names

        if plan.kind is _PlanKind.CAPABILITY:
            raw = tuple(node.field_names())
        elif plan.kind is _PlanKind.MAPPING:
            raw = tuple(key for key in node if isinstance(key, str))
        else:
            attrs = tuple(name for name in vars(node) if not name.startswith("_"))
            raw = attrs + tuple(p for p in plan.names if p not in attrs)
        return tuple(n for n in raw if not self.is_skipped(n))

    def read(self, node: Any, name: str) -> Any:
        """Read one field; a field that fails to read counts as absent."""
        kind = _plan_for(type(node)).kind
        try:
            if kind is _PlanKind.MAPPING:
                return node[name]
            if kind is _PlanKind.CAPABILITY:
                return node.get_field(name)
            return getattr(node, name)
        except Exception as e:
            logger.debug("Unreadable field %s on %s: %s", name, type(node).__name__, e)
            return None

    def find(self, node: Any, name: str) -> Any:
        """Read the field whose normalized name matches ``name``.

        ``top_cell`` finds a field listed as ``TopCell`` and vice versa.
        """
        wanted = normalize_field_name(name)
        for candidate in self.field_names(node):
            if normalize_field_name(candidate) == wanted:
                return self.read(node, candidate)
        return None


_default_enumerator = FieldEnumerator()


def field_names(value: Any) -> tuple[str, ...]:
    """List the traversable fields of ``value`` with the default skip list."""
    return _default_enumerator.field_names(value)


def read_field(value: Any, name: str) -> Any:
    """Read one field of ``value``; unreadable fields come back as None."""
    return _default_enumerator.read(value, name)


_display_field_cache: dict[tuple[type, Any], str | None] = {}


def _display_field(record: Any) -> str | None:
    """Resolve the display-name field once per (record type, category).

    Records with the `FieldAccess` capability hold per-instance fields, so a
    miss on one of them is not cached.
    """
    key = (type(record), getattr(record, "category", None))
    if key in _display_field_cache:
        return _display_field_cache[key]

    if isinstance(record, FieldAccess):
        found = next((n for n in DISPLAY_NAME_FIELDS if record.has_field(n)), None)
        if found is None:
            return None
    else:
        plan = _plan_for(type(record))
        candidates = plan.names if plan.kind is not _PlanKind.INSTANCE else (
            *plan.names, *DISPLAY_NAME_FIELDS,
        )
        found = next((n for n in DISPLAY_NAME_FIELDS if n in candidates), None)
    _display_field_cache[key] = found
    return found


def display_name_of(record: Any) -> str | None:
    """Return a record's display name, or None when it has none.

    Blank names count as absent.
    """
    field_name = _display_field(record)
    if field_name is None:
        return None
    if isinstance(record, FieldAccess):
        value = record.get_field(field_name) if record.has_field(field_name) else None
    else:
        value = getattr(record, field_name, None)

    if value is None:
        return None
    text = str(value)
    return text if text.strip() else None
