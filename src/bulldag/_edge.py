"""Directed edge between two vertex keys."""

from __future__ import annotations

from collections.abc import Hashable
from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ._vertex import Vertex


@dataclass(frozen=True, slots=True)
class Edge[Ix: Hashable]:
    """An immutable arc from ``source`` to ``reference``.

    Two edges are equal when both endpoints are equal, so edges can be
    stored in sets and used as dict keys.

    Example:
        >>> Edge("a", "b") == Edge("a", "b")
        True
        >>> Edge("a", "b") == Edge("b", "a")
        False

    """

    source: Ix
    reference: Ix

    @classmethod
    def from_vertices(cls, source: Vertex[object, Ix], reference: Vertex[object, Ix]) -> Edge[Ix]:
        """Build the edge pointing from ``source`` to ``reference``."""
        return cls(source.get_index(), reference.get_index())

    @classmethod
    def from_pair(cls, pair: tuple[Vertex[object, Ix], Vertex[object, Ix]]) -> Edge[Ix]:
        """Build an edge from a ``(source, reference)`` vertex pair."""
        source, reference = pair
        return cls.from_vertices(source, reference)

    def get_source(self) -> Ix:
        return self.source

    def get_reference(self) -> Ix:
        return self.reference

    def is_self_loop(self) -> bool:
        """Whether both endpoints are the same key."""
        return self.source == self.reference

    def __str__(self) -> str:
        return f"{self.source!r} -> {self.reference!r}"
