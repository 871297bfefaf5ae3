"""The DAG container."""

from __future__ import annotations

import logging
from collections.abc import Hashable
from typing import TYPE_CHECKING

from bulldag._edge import Edge
from bulldag._enums import Direction, EdgeStatus, RejectionReason
from bulldag._errors import (
    NonExistentReferenceError,
    NonExistentSourceError,
    NonExistentVertexError,
    WouldCycleError,
)
from bulldag._vertex import Vertex

from ._algorithms import SortKey, adjacency, has_cycle, post_order, topological_sort
from ._outcome import EdgeOutcome

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

logger = logging.getLogger(__name__)

type VertexPair[T, Ix: Hashable] = tuple[Vertex[T, Ix], Vertex[T, Ix]]


class BullDag[T, Ix: Hashable]:
    """An insert-only directed acyclic graph of payload vertices.

    The graph owns every vertex (keyed by index) and every accepted edge,
    and keeps the sets of root keys (no sources) and leaf keys (no
    references) up to date as edges arrive.

    Edges are submitted as ``(source_vertex, reference_vertex)`` pairs.
    Vertices that are not yet in the graph are created on first use. An
    edge that would close a cycle is dropped and the graph is left exactly
    as it was; the returned :class:`EdgeOutcome` says which happened.

    Vertices passed in are copied, and lookups return copies, so callers
    cannot bypass the root/leaf bookkeeping. :meth:`get_vertex_mut` is the
    one exception.

    Example:
        >>> graph = BullDag()
        >>> a, b = Vertex(1, "a"), Vertex(2, "b")
        >>> graph.add_edge((a, b)).status
        <EdgeStatus.ACCEPTED: 'accepted'>
        >>> graph.add_edge((b, a)).reason
        <RejectionReason.WOULD_CYCLE: 'would_cycle'>
        >>> graph.topological_sort()
        ['a', 'b']

    """

    __slots__ = ("_edges", "_leaves", "_roots", "_vertices")

    def __init__(self) -> None:
        self._vertices: dict[Ix, Vertex[T, Ix]] = {}
        self._edges: set[Edge[Ix]] = set()
        self._roots: set[Ix] = set()
        self._leaves: set[Ix] = set()

    @classmethod
    def from_edges(cls, pairs: Iterable[VertexPair[T, Ix]]) -> BullDag[T, Ix]:
        """Build a graph by submitting each ``(source, reference)`` pair in turn.

        Pairs that would close a cycle are dropped.
        """
        graph: BullDag[T, Ix] = cls()
        graph.extend_from_edges(pairs)
        return graph

    @classmethod
    def from_parts(
        cls,
        vertices: Iterable[Vertex[T, Ix]],
        edges: Iterable[Edge[Ix]],
        roots: Iterable[Ix],
        leaves: Iterable[Ix],
    ) -> BullDag[T, Ix]:
        """Rebuild a graph from previously dumped state.

        Nothing is checked or recomputed, so an inconsistent dump gives an
        inconsistent graph. Use :meth:`validate` on the result.
        """
        graph: BullDag[T, Ix] = cls()
        graph._vertices = {vertex.get_index(): vertex.copy() for vertex in vertices}
        graph._edges = set(edges)
        graph._roots = set(roots)
        graph._leaves = set(leaves)
        return graph

    # -- root / leaf bookkeeping -------------------------------------------

    def _classify(self, vertex: Vertex[T, Ix]) -> None:
        index = vertex.get_index()
        if vertex.is_root():
            self._roots.add(index)
        else:
            self._roots.discard(index)
        if vertex.is_leaf():
            self._leaves.add(index)
        else:
            self._leaves.discard(index)

    def _collapsed(self) -> bool:
        return not self.is_empty() and (not self._roots or not self._leaves)

    def get_roots(self) -> set[Ix]:
        """Keys of vertices without sources (a copy)."""
        return set(self._roots)

    def get_leaves(self) -> set[Ix]:
        """Keys of vertices without references (a copy)."""
        return set(self._leaves)

    def n_roots(self) -> int:
        return len(self._roots)

    def n_leaves(self) -> int:
        return len(self._leaves)

    # -- vertices ----------------------------------------------------------

    def add_vertex(self, vertex: Vertex[T, Ix]) -> None:
        """Insert a copy of ``vertex``, replacing any vertex with the same key.

        Root and leaf membership follow the vertex's own neighbor sets.
        """
        stored = vertex.copy()
        self._classify(stored)
        self._vertices[stored.get_index()] = stored

    def add_vertices(self, vertices: Iterable[Vertex[T, Ix]]) -> None:
        for vertex in vertices:
            self.add_vertex(vertex)

    def get_vertex(self, index: Ix) -> Vertex[T, Ix] | None:
        """Return a copy of the vertex at ``index``, or ``None``."""
        vertex = self._vertices.get(index)
        return vertex.copy() if vertex is not None else None

    def require_vertex(self, index: Ix) -> Vertex[T, Ix]:
        """Return a copy of the vertex at ``index``.

        Raises:
            NonExistentVertexError: If no vertex has that key.

        """
        vertex = self.get_vertex(index)
        if vertex is None:
            raise NonExistentVertexError(index)
        return vertex

    def get_vertex_mut(self, index: Ix) -> Vertex[T, Ix] | None:
        """Return the live vertex at ``index``, or ``None``.

        Calling ``add_edge`` on the returned vertex changes its neighbor
        sets without touching the graph's edges, roots or leaves. Callers
        that do so must call :meth:`repair` afterwards and accept that the
        edge set no longer matches; :meth:`validate` reports the mismatch.
        """
        return self._vertices.get(index)

    # -- edges -------------------------------------------------------------

    def _absorb(self, local: Vertex[T, Ix], edge: Edge[Ix]) -> None:
        existing = self._vertices.get(local.get_index())
        if existing is None:
            self.add_vertex(local)
            return
        existing.add_edge(edge)
        self._classify(existing)

    def add_edge(self, pair: VertexPair[T, Ix]) -> EdgeOutcome[Ix]:
        """Submit the edge ``source -> reference``.

        The edge is committed only if it keeps the graph acyclic. On
        commit, missing vertices are created from copies of the submitted
        ones and both endpoints' neighbor sets, the edge set and the
        root/leaf sets are updated together. On rejection nothing changes.
        An edge that is already committed is reported as a duplicate
        without being checked again.

        Args:
            pair: ``(source_vertex, reference_vertex)``.

        Returns:
            The outcome of the submission. Rejections are reported here,
            never raised.

        """
        edge = Edge.from_pair(pair)
        if edge in self._edges:
            logger.debug("Edge %s already present", edge)
            return EdgeOutcome(edge, EdgeStatus.DUPLICATE)

        source, reference = (vertex.copy() for vertex in pair)
        source.add_edge(edge)
        reference.add_edge(edge)

        try:
            self.check_cycles(pair)
        except WouldCycleError as e:
            logger.debug("Rejected edge %s: %s", edge, e.reason)
            return EdgeOutcome(edge, EdgeStatus.REJECTED, e.reason)

        logger.debug("Accepted edge %s", edge)
        self._absorb(source, edge)
        self._absorb(reference, edge)
        self._edges.add(edge)
        return EdgeOutcome(edge, EdgeStatus.ACCEPTED)

    def extend_from_edges(self, pairs: Iterable[VertexPair[T, Ix]]) -> list[EdgeOutcome[Ix]]:
        """Submit several edges in order.

        Each edge is checked against the graph as left by the previous
        ones, so a batch can be partially accepted.

        Returns:
            One outcome per submitted pair, in submission order.

        """
        outcomes = [self.add_edge(pair) for pair in pairs]
        rejected = sum(outcome.rejected for outcome in outcomes)
        logger.debug("Submitted %d edges, %d rejected", len(outcomes), rejected)
        return outcomes

    def connect(self, source: Ix, reference: Ix) -> EdgeOutcome[Ix]:
        """Submit an edge between two vertices already in the graph.

        Raises:
            NonExistentSourceError: If ``source`` is not a vertex key.
            NonExistentReferenceError: If ``reference`` is not a vertex key.

        """
        source_vertex = self._vertices.get(source)
        if source_vertex is None:
            raise NonExistentSourceError(source)
        reference_vertex = self._vertices.get(reference)
        if reference_vertex is None:
            raise NonExistentReferenceError(reference)
        return self.add_edge((source_vertex, reference_vertex))

    def get_edges(self) -> set[Edge[Ix]]:
        """All accepted edges (a copy)."""
        return set(self._edges)

    def n_edges(self) -> int:
        return len(self._edges)

    # -- cycle checking and traversal --------------------------------------

    def check_cycles(self, pair: VertexPair[T, Ix]) -> None:
        """Check that the edge ``source -> reference`` could be added safely.

        The check runs against the graph as it is, before the edge is
        added.

        Raises:
            WouldCycleError: If the graph has lost all its roots or leaves,
                if the edge is a self loop, or if the reference already
                reaches the source.

        """
        source, reference = pair
        edge = Edge.from_pair(pair)

        if self._collapsed():
            raise WouldCycleError(RejectionReason.COLLAPSED, edge)

        if edge.is_self_loop():
            raise WouldCycleError(RejectionReason.SELF_LOOP, edge)

        if edge.reference in self.trace(source, Direction.SOURCE):
            raise WouldCycleError(RejectionReason.WOULD_CYCLE, edge)

        if edge.source in self.trace(reference, Direction.REFERENCE):
            raise WouldCycleError(RejectionReason.WOULD_CYCLE, edge)

    def trace(self, target: Vertex[T, Ix] | Ix, direction: Direction | str) -> list[Ix]:
        """Collect every key reachable from ``target`` in one direction.

        Args:
            target: A vertex, or the key of a vertex in the graph. A vertex
                that is not in the graph traces to just its own key.
            direction: ``"source"`` walks to ancestors, ``"reference"`` to
                descendants.

        Returns:
            Reachable keys in post-order: each key follows everything
            reachable from it, and the target's key is last.

        Raises:
            NonExistentVertexError: If ``target`` is a key not in the graph.

        """
        if isinstance(target, Vertex):
            index = target.get_index()
        else:
            index = target
            if index not in self._vertices:
                raise NonExistentVertexError(index)
        return post_order(index, adjacency(self._edges, Direction(direction)))

    def ancestors(self, index: Ix) -> frozenset[Ix]:
        """All keys with a path to ``index``, excluding ``index`` itself."""
        return frozenset(self.trace(index, Direction.SOURCE)) - {index}

    def descendants(self, index: Ix) -> frozenset[Ix]:
        """All keys reachable from ``index``, excluding ``index`` itself."""
        return frozenset(self.trace(index, Direction.REFERENCE)) - {index}

    def topological_sort(self, key: SortKey | None = None) -> list[Ix]:
        """Return the vertex keys in topological order.

        Every key comes before all keys it has a path to. Siblings are
        ordered by ``key`` when given; otherwise their order is arbitrary.

        Args:
            key: Optional sort key applied to roots and references.

        Returns:
            Keys in topological order.

        Raises:
            WouldCycleError: If the graph has no roots or no leaves, which
                includes the empty graph.

        """
        if not self._roots or not self._leaves:
            raise WouldCycleError(RejectionReason.COLLAPSED)
        order = topological_sort(self._roots, adjacency(self._edges, Direction.REFERENCE), key=key)
        logger.debug("Topological order over %d vertices: %s", len(order), order)
        return order

    # -- integrity ---------------------------------------------------------

    def validate(self) -> list[str]:
        """Check the graph's invariants and return a list of error messages.

        Checks for:
        - Root and leaf sets that disagree with the vertices' neighbor sets
        - Edges whose endpoints are not vertices
        - Neighbor sets that disagree with the edge set
        - Cycles

        Returns:
            List of error messages. Empty list if the graph is consistent.

        """
        errors: list[str] = []

        for index, vertex in self._vertices.items():
            if vertex.is_root() != (index in self._roots):
                errors.append(f"Vertex {index!r} root membership does not match its sources")
            if vertex.is_leaf() != (index in self._leaves):
                errors.append(f"Vertex {index!r} leaf membership does not match its references")
            for source in vertex.get_sources():
                if Edge(source, index) not in self._edges:
                    errors.append(f"Vertex {index!r} lists source {source!r} without a matching edge")
            for reference in vertex.get_references():
                if Edge(index, reference) not in self._edges:
                    errors.append(f"Vertex {index!r} lists reference {reference!r} without a matching edge")

        for edge in self._edges:
            source = self._vertices.get(edge.source)
            reference = self._vertices.get(edge.reference)
            if source is None:
                errors.append(f"Edge {edge} has missing endpoint {edge.source!r}")
            elif not source.is_reference(edge.reference):
                errors.append(f"Edge {edge} is not among the references of {edge.source!r}")
            if reference is None:
                errors.append(f"Edge {edge} has missing endpoint {edge.reference!r}")
            elif not reference.is_source(edge.source):
                errors.append(f"Edge {edge} is not among the sources of {edge.reference!r}")

        successors = {index: vertex.get_references() for index, vertex in self._vertices.items()}
        for edge in self._edges:
            successors.setdefault(edge.source, []).append(edge.reference)
        if has_cycle(successors):
            errors.append("Graph contains a cycle")

        return errors

    def repair(self) -> None:
        """Recompute the root and leaf sets from the vertices' neighbor sets."""
        self._roots.clear()
        self._leaves.clear()
        for vertex in self._vertices.values():
            self._classify(vertex)
        logger.debug("Repaired graph: %d roots, %d leaves", len(self._roots), len(self._leaves))

    # -- container protocol ------------------------------------------------

    def is_empty(self) -> bool:
        return not self._vertices

    def __len__(self) -> int:
        """Return the number of vertices in the graph."""
        return len(self._vertices)

    def __contains__(self, index: object) -> bool:
        return index in self._vertices

    def __iter__(self) -> Iterator[Ix]:
        return iter(self._vertices)

    def __repr__(self) -> str:
        return (
            f"BullDag(vertices={len(self._vertices)}, edges={len(self._edges)}, "
            f"roots={len(self._roots)}, leaves={len(self._leaves)})"
        )
