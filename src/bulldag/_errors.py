"""Exceptions raised by graph operations."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ._enums import GraphErrorKind, RejectionReason

if TYPE_CHECKING:
    from ._edge import Edge
    from ._index import Index


class GraphError(Exception):
    """Base class for graph errors.

    Raised directly for failures that fit no other category.
    """

    kind: GraphErrorKind = GraphErrorKind.OTHER


class WouldCycleError(GraphError):
    """Raised when the graph cannot stay acyclic.

    Either a candidate edge would close a cycle, or the graph has lost its
    roots or leaves and can no longer be ordered.
    """

    kind = GraphErrorKind.WOULD_CYCLE

    def __init__(self, reason: RejectionReason = RejectionReason.WOULD_CYCLE, edge: Edge[Index] | None = None) -> None:
        self.reason = reason
        self.edge = edge
        if edge is None:
            super().__init__(f"Graph is not acyclic: {reason.__doc__}")
        else:
            super().__init__(f"Edge {edge} rejected: {reason.__doc__}")


class _MissingVertexError(GraphError):
    role = "Vertex"

    def __init__(self, index: Index) -> None:
        self.index = index
        super().__init__(f"{self.role} {index!r} does not exist in the graph")


class NonExistentSourceError(_MissingVertexError):
    """Raised when an edge's source key is not a vertex of the graph."""

    kind = GraphErrorKind.NON_EXISTENT_SOURCE
    role = "Source vertex"


class NonExistentReferenceError(_MissingVertexError):
    """Raised when an edge's reference key is not a vertex of the graph."""

    kind = GraphErrorKind.NON_EXISTENT_REFERENCE
    role = "Reference vertex"


class NonExistentVertexError(_MissingVertexError):
    """Raised when a looked-up key is not a vertex of the graph."""

    kind = GraphErrorKind.NON_EXISTENT_VERTEX


class NoEdgesError(GraphError):
    """Raised when an operation needs at least one edge and got none."""

    kind = GraphErrorKind.NO_EDGES
