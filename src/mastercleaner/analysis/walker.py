"""Reference-graph walker.

Walks the object graph under one record and collects every link into a
target collection. The walk is depth-bounded and cycle-safe:

- nodes currently on the walk stack are tracked by identity; meeting one
  again ends that branch
- branches deeper than ``max_depth`` are cut off silently
- a field that raises when read is treated as absent
- a reference is tested and never walked into, match or not

Example:
    >>> walker = ReferenceWalker(max_depth=16)
    >>> hits = walker.find_references(record, CollectionIdentity("Missing.esp"))
    >>> [h.path for h in hits]
    ['base', 'persistent[2].form_key']
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from mastercleaner.analysis.paths import (
    FieldSegment,
    IndexSegment,
    PathSegment,
    PathStack,
    render_path,
)
from mastercleaner.analysis.shapes import (
    FieldEnumerator,
    NodeShape,
    classify_shape,
    resolve_reference,
)
from mastercleaner.model.identity import CollectionIdentity, FormKey

logger = logging.getLogger(__name__)

DEFAULT_MAX_DEPTH = 16


@dataclass(frozen=True, slots=True)
class LinkHit:
    """One link from a record into the target collection."""

    segments: tuple[PathSegment, ...]
    """Access path from the record to the link."""

    referenced: FormKey
    """Form key the link resolves to; never null, always in the target."""

    @property
    def path(self) -> str:
        return render_path(self.segments)

    def to_dict(self) -> dict[str, str]:
        return {
            "Path": self.path,
            "ReferencedFormKey": str(self.referenced),
        }


class _Walk:
    """State of one top-level walk; discarded when it returns."""

    __slots__ = ("target", "max_depth", "fields", "hits", "stack", "visiting")

    def __init__(self, target: CollectionIdentity, max_depth: int, fields: FieldEnumerator) -> None:
        self.target = target
        self.max_depth = max_depth
        self.fields = fields
        self.hits: list[LinkHit] = []
        self.stack = PathStack()
        self.visiting: set[int] = set()

    def visit(self, node: Any, depth: int) -> None:
        if node is None or depth > self.max_depth:
            return

        shape = classify_shape(node)
        if shape is NodeShape.LEAF:
            return

        if shape.is_reference:
            key = resolve_reference(node, shape)
            if key is not None and not key.is_null and key.collection == self.target:
                self.hits.append(LinkHit(self.stack.snapshot(), key))
            return

        node_id = id(node)
        if node_id in self.visiting:
            return
        self.visiting.add(node_id)
        try:
            if shape is NodeShape.SEQUENCE:
                self._visit_elements(node, depth)
            else:
                self._visit_fields(node, depth)
        finally:
            self.visiting.discard(node_id)

    def _visit_elements(self, node: Any, depth: int) -> None:
        for index, item in enumerate(node):
            with self.stack.push(IndexSegment(index)):
                self.visit(item, depth + 1)

    def _visit_fields(self, node: Any, depth: int) -> None:
        for name in self.fields.field_names(node):
            value = self.fields.read(node, name)
            if value is None:
                continue
            with self.stack.push(FieldSegment(name)):
                self.visit(value, depth + 1)


class ReferenceWalker:
    """Finds links into a target collection under a root record.

    A walker holds no per-walk state and can be reused across records.
    """

    def __init__(
        self,
        max_depth: int = DEFAULT_MAX_DEPTH,
        skip_fields: tuple[str, ...] = (),
    ) -> None:
        if max_depth < 0:
            raise ValueError(f"max_depth must be non-negative, got {max_depth}")
        self.max_depth = max_depth
        self.fields = FieldEnumerator(skip_fields)

    def find_references(self, root: Any, target: CollectionIdentity) -> list[LinkHit]:
        """Return every link under ``root`` into ``target``, in walk order."""
        walk = _Walk(target, self.max_depth, self.fields)
        walk.visit(root, 0)
        logger.debug("Walked %r: %d hit(s) into %s", root, len(walk.hits), target)
        return walk.hits


def find_references(
    root: Any,
    target: CollectionIdentity,
    max_depth: int = DEFAULT_MAX_DEPTH,
) -> list[LinkHit]:
    """Return every link under ``root`` into ``target``."""
    return ReferenceWalker(max_depth).find_references(root, target)
