"""Graph vertex holding a payload and its neighbor keys."""

from __future__ import annotations

import copy
from collections.abc import Hashable
from typing import TYPE_CHECKING

from ._index import validate_index

if TYPE_CHECKING:
    from ._edge import Edge


class Vertex[T, Ix: Hashable]:
    """The data-carrying unit of a graph.

    A vertex holds an opaque payload, the key that identifies it inside a
    graph, and two sets of neighbor keys:

    - ``sources``: keys of vertices with an edge pointing into this vertex.
    - ``references``: keys of vertices this vertex points to.

    A vertex without sources is a root, a vertex without references is a
    leaf. Neighbor sets only ever grow.

    Example:
        >>> v = Vertex(5, "source")
        >>> v.add_edge(Edge("source", "reference"))
        >>> v.n_references()
        1
        >>> v.is_leaf()
        False

    """

    __slots__ = ("_data", "_index", "_references", "_sources")

    def __init__(self, data: T, index: Ix) -> None:
        self._data = data
        self._index = validate_index(index)
        self._sources: set[Ix] = set()
        self._references: set[Ix] = set()

    @property
    def index(self) -> Ix:
        """The identifying key of this vertex."""
        return self._index

    @property
    def sources(self) -> frozenset[Ix]:
        """Snapshot of the source keys."""
        return frozenset(self._sources)

    @property
    def references(self) -> frozenset[Ix]:
        """Snapshot of the reference keys."""
        return frozenset(self._references)

    def add_edge(self, edge: Edge[Ix]) -> None:
        """Absorb an edge into the neighbor sets.

        If the edge starts at this vertex its reference becomes one of our
        references; if it ends at this vertex its source becomes one of our
        sources. Both checks are independent. Edges that do not touch this
        vertex are ignored.
        """
        if edge.source == self._index:
            self._references.add(edge.reference)
        if edge.reference == self._index:
            self._sources.add(edge.source)

    def get_data(self) -> T:
        """Return a shallow copy of the payload."""
        return copy.copy(self._data)

    def get_index(self) -> Ix:
        return self._index

    def get_sources(self) -> list[Ix]:
        """Source keys, in no particular order."""
        return list(self._sources)

    def get_references(self) -> list[Ix]:
        """Reference keys, in no particular order."""
        return list(self._references)

    def is_source(self, index: Ix) -> bool:
        return index in self._sources

    def is_reference(self, index: Ix) -> bool:
        return index in self._references

    def n_sources(self) -> int:
        return len(self._sources)

    def n_references(self) -> int:
        return len(self._references)

    def is_root(self) -> bool:
        return not self._sources

    def is_leaf(self) -> bool:
        return not self._references

    def copy(self) -> Vertex[T, Ix]:
        """Return an independent vertex with copied neighbor sets.

        The payload object itself is shared.
        """
        clone: Vertex[T, Ix] = Vertex(self._data, self._index)
        clone._sources = set(self._sources)
        clone._references = set(self._references)
        return clone

    def as_item(self) -> tuple[Ix, Vertex[T, Ix]]:
        """Return ``(index, vertex)``, handy for building keyed mappings."""
        return self._index, self

    def __repr__(self) -> str:
        return (
            f"Vertex(data={self._data!r}, index={self._index!r}, "
            f"sources={len(self._sources)}, references={len(self._references)})"
        )
