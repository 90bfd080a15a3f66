"""Access paths from a record to a reference inside it.

A path is a sequence of segments: field names and sequence indices.
Rendered, ``persistent[2].base`` reads "field persistent, element 2,
field base". The empty path renders as ``<root>``.
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from dataclasses import dataclass

ROOT_PATH = "<root>"


@dataclass(frozen=True, slots=True)
class FieldSegment:
    """Step into a named field."""

    name: str

    def render(self, first: bool) -> str:
        return self.name if first else f".{self.name}"


@dataclass(frozen=True, slots=True)
class IndexSegment:
    """Step into one element of a sequence."""

    index: int

    def render(self, first: bool) -> str:
        return f"[{self.index}]"


PathSegment = FieldSegment | IndexSegment


def render_path(segments: Sequence[PathSegment]) -> str:
    """Render segments as ``a.b[0].c``; no segments renders as ``<root>``."""
    if not segments:
        return ROOT_PATH
    return "".join(segment.render(i == 0) for i, segment in enumerate(segments))


class PathStack:
    """Segments from the walk root to the node being visited.

    Segments are pushed for the duration of a ``with`` block so every exit
    path, early returns included, pops what it pushed.
    """

    __slots__ = ("_segments",)

    def __init__(self) -> None:
        self._segments: list[PathSegment] = []

    @contextmanager
    def push(self, segment: PathSegment) -> Iterator[None]:
        self._segments.append(segment)
        try:
            yield
        finally:
            self._segments.pop()

    def snapshot(self) -> tuple[PathSegment, ...]:
        return tuple(self._segments)

    def render(self) -> str:
        return render_path(self._segments)

    def __len__(self) -> int:
        return len(self._segments)
