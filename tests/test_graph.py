"""Tests for the BullDag container."""

import pytest

from bulldag import (
    BullDag,
    Direction,
    Edge,
    EdgeStatus,
    GraphErrorKind,
    NonExistentReferenceError,
    NonExistentSourceError,
    NonExistentVertexError,
    RejectionReason,
    Vertex,
    WouldCycleError,
)

type Graph = BullDag[int, str]


@pytest.fixture
def vertices() -> dict[str, Vertex[int, str]]:
    """The seven vertices used by the insertion scenarios."""
    return {
        "v1": Vertex(5, "source"),
        "v2": Vertex(4, "reference"),
        "v3": Vertex(3, "ultimate_source"),
        "v4": Vertex(2, "ref_reference"),
        "v5": Vertex(1, "new_reference"),
        "v6": Vertex(0, "cycle_ref"),
        "v7": Vertex(6, "cycle_source"),
    }


@pytest.fixture
def acyclic_graph(vertices: dict[str, Vertex[int, str]]) -> Graph:
    """Five vertices, six edges, one root."""
    v = vertices
    graph: Graph = BullDag()
    graph.extend_from_edges(
        [
            (v["v1"], v["v2"]),
            (v["v3"], v["v1"]),
            (v["v3"], v["v2"]),
            (v["v2"], v["v4"]),
            (v["v2"], v["v5"]),
            (v["v1"], v["v5"]),
        ],
    )
    return graph


def assert_root_leaf_consistency(graph: BullDag[object, object]) -> None:
    for index in graph:
        vertex = graph.require_vertex(index)
        assert (index in graph.get_roots()) == (vertex.n_sources() == 0)
        assert (index in graph.get_leaves()) == (vertex.n_references() == 0)


def assert_topological(graph: BullDag[object, object], order: list[object]) -> None:
    position = {key: i for i, key in enumerate(order)}
    assert set(order) == set(graph)
    for edge in graph.get_edges():
        assert position[edge.source] < position[edge.reference]


class TestEmptyGraph:
    def test_empty_graph(self) -> None:
        graph: Graph = BullDag()
        assert len(graph) == 0
        assert graph.is_empty()
        assert graph.n_edges() == 0
        assert graph.n_roots() == 0
        assert graph.n_leaves() == 0
        assert graph.get_roots() == set()
        assert graph.get_leaves() == set()

    def test_topological_sort_of_empty_graph_raises(self) -> None:
        graph: Graph = BullDag()
        with pytest.raises(WouldCycleError) as excinfo:
            graph.topological_sort()
        assert excinfo.value.reason is RejectionReason.COLLAPSED

    def test_empty_graph_still_accepts_edges(self) -> None:
        graph: Graph = BullDag()
        assert graph.add_edge((Vertex(1, "a"), Vertex(2, "b"))).status is EdgeStatus.ACCEPTED
        assert graph.topological_sort() == ["a", "b"]

    def test_repr(self) -> None:
        assert repr(BullDag()) == "BullDag(vertices=0, edges=0, roots=0, leaves=0)"


class TestAddEdge:
    def test_single_edge(self) -> None:
        graph: Graph = BullDag()
        outcome = graph.add_edge((Vertex(5, "source"), Vertex(4, "reference")))
        assert outcome.status is EdgeStatus.ACCEPTED
        assert outcome.accepted
        assert outcome.reason is None
        assert outcome.edge == Edge("source", "reference")
        assert graph.n_edges() == 1
        assert len(graph) == 2
        assert graph.get_roots() == {"source"}
        assert graph.get_leaves() == {"reference"}

    def test_batch_roots_and_leaves(self) -> None:
        graph: Graph = BullDag()
        v1 = Vertex(5, "source")
        graph.extend_from_edges([(v1, Vertex(4, "reference_1")), (v1, Vertex(3, "reference_2"))])
        assert len(graph) == 3
        assert graph.n_roots() == 1
        assert graph.n_leaves() == 2

    def test_acyclic_edges_are_all_accepted(self, acyclic_graph: Graph) -> None:
        assert acyclic_graph.n_edges() == 6

    def test_adding_edges_auto_adds_vertices(self, acyclic_graph: Graph) -> None:
        assert len(acyclic_graph) == 5
        assert "ultimate_source" in acyclic_graph
        assert "missing" not in acyclic_graph

    def test_submitted_vertices_are_not_mutated(self, vertices: dict[str, Vertex[int, str]]) -> None:
        graph: Graph = BullDag()
        graph.add_edge((vertices["v1"], vertices["v2"]))
        assert vertices["v1"].n_references() == 0
        assert vertices["v2"].n_sources() == 0

    def test_payload_is_kept(self, acyclic_graph: Graph) -> None:
        vertex = acyclic_graph.get_vertex("ultimate_source")
        assert vertex is not None
        assert vertex.get_data() == 3

    def test_cyclic_edge_is_rejected(self, vertices: dict[str, Vertex[int, str]]) -> None:
        v = vertices
        graph: Graph = BullDag()
        outcomes = graph.extend_from_edges(
            [
                (v["v1"], v["v2"]),
                (v["v3"], v["v1"]),
                (v["v2"], v["v4"]),
                (v["v3"], v["v4"]),
                (v["v4"], v["v5"]),
                (v["v5"], v["v6"]),
                (v["v6"], v["v7"]),
                (v["v6"], v["v1"]),
            ],
        )
        assert graph.n_edges() == 7
        assert [o.status for o in outcomes[:7]] == [EdgeStatus.ACCEPTED] * 7
        assert outcomes[7].status is EdgeStatus.REJECTED
        assert outcomes[7].reason is RejectionReason.WOULD_CYCLE
        assert outcomes[7].edge == Edge("cycle_ref", "source")
        assert Edge("cycle_ref", "source") not in graph.get_edges()

    def test_rejection_leaves_graph_untouched(self, acyclic_graph: Graph) -> None:
        before = (
            acyclic_graph.get_edges(),
            acyclic_graph.get_roots(),
            acyclic_graph.get_leaves(),
            {k: acyclic_graph.require_vertex(k).sources for k in acyclic_graph},
            {k: acyclic_graph.require_vertex(k).references for k in acyclic_graph},
        )
        outcome = acyclic_graph.add_edge((Vertex(1, "new_reference"), Vertex(3, "ultimate_source")))
        assert outcome.rejected
        after = (
            acyclic_graph.get_edges(),
            acyclic_graph.get_roots(),
            acyclic_graph.get_leaves(),
            {k: acyclic_graph.require_vertex(k).sources for k in acyclic_graph},
            {k: acyclic_graph.require_vertex(k).references for k in acyclic_graph},
        )
        assert before == after

    def test_two_vertex_cycle_is_rejected(self) -> None:
        graph: Graph = BullDag()
        a, b = Vertex(1, "a"), Vertex(2, "b")
        graph.add_edge((a, b))
        outcome = graph.add_edge((b, a))
        assert outcome.reason is RejectionReason.WOULD_CYCLE
        assert graph.n_edges() == 1

    def test_rejected_edge_does_not_create_vertices(self) -> None:
        graph: Graph = BullDag()
        graph.add_edge((Vertex(1, "a"), Vertex(2, "b")))
        graph.add_edge((Vertex(2, "b"), Vertex(3, "c")))
        graph.add_edge((Vertex(3, "c"), Vertex(1, "a")))
        assert len(graph) == 3
        assert graph.get_roots() == {"a"}
        assert graph.get_leaves() == {"c"}

    def test_duplicate_edge_is_idempotent(self) -> None:
        graph: Graph = BullDag()
        a, b = Vertex(1, "a"), Vertex(2, "b")
        first = graph.add_edge((a, b))
        second = graph.add_edge((a, b))
        assert first.status is EdgeStatus.ACCEPTED
        assert second.status is EdgeStatus.DUPLICATE
        assert second.accepted
        assert graph.n_edges() == 1
        assert graph.require_vertex("a").n_references() == 1
        assert graph.require_vertex("b").n_sources() == 1
        assert graph.require_vertex("a").n_sources() == 0

    def test_diamond_is_allowed(self) -> None:
        graph: Graph = BullDag()
        a, b, c, d = (Vertex(i, k) for i, k in enumerate("abcd"))
        outcomes = graph.extend_from_edges([(a, b), (a, c), (b, d), (c, d)])
        assert all(o.accepted for o in outcomes)
        assert graph.get_roots() == {"a"}
        assert graph.get_leaves() == {"d"}

    def test_from_edges(self) -> None:
        graph: Graph = BullDag.from_edges([(Vertex(1, "a"), Vertex(2, "b"))])
        assert graph.n_edges() == 1

    def test_integer_keys(self) -> None:
        graph: BullDag[str, int] = BullDag()
        graph.extend_from_edges([(Vertex("x", 1), Vertex("y", 2)), (Vertex("y", 2), Vertex("z", 3))])
        assert graph.topological_sort() == [1, 2, 3]


class TestSelfLoop:
    def test_self_loop_is_rejected(self) -> None:
        graph: Graph = BullDag()
        a = Vertex(1, "a")
        outcome = graph.add_edge((a, a))
        assert outcome.status is EdgeStatus.REJECTED
        assert outcome.reason is RejectionReason.SELF_LOOP
        assert graph.is_empty()
        assert graph.n_edges() == 0

    def test_self_loop_on_existing_vertex(self, acyclic_graph: Graph) -> None:
        v = acyclic_graph.require_vertex("reference")
        outcome = acyclic_graph.add_edge((v, v))
        assert outcome.reason is RejectionReason.SELF_LOOP
        assert acyclic_graph.n_edges() == 6

    def test_check_cycles_raises_for_self_loop(self) -> None:
        graph: Graph = BullDag()
        a = Vertex(1, "a")
        with pytest.raises(WouldCycleError) as excinfo:
            graph.check_cycles((a, a))
        assert excinfo.value.reason is RejectionReason.SELF_LOOP
        assert excinfo.value.kind is GraphErrorKind.WOULD_CYCLE


class TestRootLeafConsistency:
    def test_consistency_after_batch(self, acyclic_graph: Graph) -> None:
        assert_root_leaf_consistency(acyclic_graph)
        assert acyclic_graph.get_roots() == {"ultimate_source"}
        assert acyclic_graph.get_leaves() == {"ref_reference", "new_reference"}

    def test_consistency_after_each_insertion(self, vertices: dict[str, Vertex[int, str]]) -> None:
        v = vertices
        graph: Graph = BullDag()
        for pair in [
            (v["v1"], v["v2"]),
            (v["v3"], v["v1"]),
            (v["v2"], v["v4"]),
            (v["v3"], v["v4"]),
            (v["v4"], v["v5"]),
            (v["v6"], v["v5"]),
            (v["v5"], v["v3"]),
        ]:
            graph.add_edge(pair)
            assert_root_leaf_consistency(graph)
            assert graph.validate() == []

    def test_root_membership_is_lost_when_source_arrives(self) -> None:
        graph: Graph = BullDag()
        graph.add_edge((Vertex(1, "b"), Vertex(2, "c")))
        assert "b" in graph.get_roots()
        graph.add_edge((Vertex(0, "a"), Vertex(1, "b")))
        assert "b" not in graph.get_roots()
        assert graph.get_roots() == {"a"}

    def test_returned_sets_are_copies(self, acyclic_graph: Graph) -> None:
        acyclic_graph.get_roots().clear()
        acyclic_graph.get_leaves().clear()
        acyclic_graph.get_edges().clear()
        assert acyclic_graph.n_roots() == 1
        assert acyclic_graph.n_leaves() == 2
        assert acyclic_graph.n_edges() == 6


class TestVertexLookup:
    def test_get_vertex_references(self, acyclic_graph: Graph) -> None:
        target = acyclic_graph.get_vertex("source")
        assert target is not None
        assert target.is_reference("reference")
        assert target.is_reference("new_reference")

    def test_get_vertex_source(self, acyclic_graph: Graph) -> None:
        target = acyclic_graph.get_vertex("source")
        assert target is not None
        assert target.is_source("ultimate_source")

    def test_get_vertex_missing(self, acyclic_graph: Graph) -> None:
        assert acyclic_graph.get_vertex("missing") is None

    def test_require_vertex_missing(self, acyclic_graph: Graph) -> None:
        with pytest.raises(NonExistentVertexError, match="missing"):
            acyclic_graph.require_vertex("missing")

    def test_get_vertex_returns_a_copy(self, acyclic_graph: Graph) -> None:
        copy = acyclic_graph.get_vertex("new_reference")
        assert copy is not None
        copy.add_edge(Edge("new_reference", "elsewhere"))
        assert acyclic_graph.require_vertex("new_reference").n_references() == 0
        assert "new_reference" in acyclic_graph.get_leaves()

    def test_iteration_yields_keys(self, acyclic_graph: Graph) -> None:
        assert set(acyclic_graph) == {
            "source",
            "reference",
            "ultimate_source",
            "ref_reference",
            "new_reference",
        }


class TestAddVertex:
    def test_isolated_vertex_is_root_and_leaf(self) -> None:
        graph: Graph = BullDag()
        graph.add_vertex(Vertex(1, "alone"))
        assert graph.get_roots() == {"alone"}
        assert graph.get_leaves() == {"alone"}
        assert len(graph) == 1

    def test_add_vertices(self) -> None:
        graph: Graph = BullDag()
        graph.add_vertices([Vertex(1, "a"), Vertex(2, "b")])
        assert len(graph) == 2
        assert graph.n_edges() == 0

    def test_add_vertex_overwrites_by_key(self) -> None:
        graph: Graph = BullDag()
        graph.add_vertex(Vertex(1, "a"))
        graph.add_vertex(Vertex(2, "a"))
        assert len(graph) == 1
        assert graph.require_vertex("a").get_data() == 2

    def test_add_vertex_classifies_by_neighbor_sets(self) -> None:
        graph: Graph = BullDag()
        vertex = Vertex(1, "b")
        vertex.add_edge(Edge("a", "b"))
        graph.add_vertex(vertex)
        assert graph.get_roots() == set()
        assert graph.get_leaves() == {"b"}


class TestConnect:
    def test_connect_existing_vertices(self) -> None:
        graph: Graph = BullDag()
        graph.add_vertices([Vertex(1, "a"), Vertex(2, "b")])
        outcome = graph.connect("a", "b")
        assert outcome.status is EdgeStatus.ACCEPTED
        assert graph.get_roots() == {"a"}
        assert graph.get_leaves() == {"b"}

    def test_connect_missing_source(self) -> None:
        graph: Graph = BullDag()
        graph.add_vertex(Vertex(2, "b"))
        with pytest.raises(NonExistentSourceError) as excinfo:
            graph.connect("a", "b")
        assert excinfo.value.index == "a"
        assert excinfo.value.kind is GraphErrorKind.NON_EXISTENT_SOURCE

    def test_connect_missing_reference(self) -> None:
        graph: Graph = BullDag()
        graph.add_vertex(Vertex(1, "a"))
        with pytest.raises(NonExistentReferenceError, match="Reference vertex 'b'"):
            graph.connect("a", "b")

    def test_connect_reports_cycle(self) -> None:
        graph: Graph = BullDag()
        graph.add_edge((Vertex(1, "a"), Vertex(2, "b")))
        assert graph.connect("b", "a").reason is RejectionReason.WOULD_CYCLE


class TestTrace:
    def test_trace_sources(self, acyclic_graph: Graph) -> None:
        trace = acyclic_graph.trace("reference", Direction.SOURCE)
        assert set(trace) == {"reference", "source", "ultimate_source"}
        assert trace[-1] == "reference"
        assert trace.index("ultimate_source") < trace.index("source")

    def test_trace_references(self, acyclic_graph: Graph) -> None:
        trace = acyclic_graph.trace("source", Direction.REFERENCE)
        assert set(trace) == {"source", "reference", "ref_reference", "new_reference"}
        assert trace[-1] == "source"
        assert trace.index("ref_reference") < trace.index("reference")
        assert len(trace) == len(set(trace))

    def test_trace_accepts_vertex(self, acyclic_graph: Graph) -> None:
        vertex = acyclic_graph.require_vertex("ref_reference")
        assert acyclic_graph.trace(vertex, "reference") == ["ref_reference"]

    def test_trace_vertex_outside_graph(self, acyclic_graph: Graph) -> None:
        assert acyclic_graph.trace(Vertex(9, "stranger"), Direction.SOURCE) == ["stranger"]

    def test_trace_unknown_key(self, acyclic_graph: Graph) -> None:
        with pytest.raises(NonExistentVertexError):
            acyclic_graph.trace("stranger", Direction.SOURCE)

    def test_trace_invalid_direction(self, acyclic_graph: Graph) -> None:
        with pytest.raises(ValueError, match="sideways"):
            acyclic_graph.trace("source", "sideways")

    def test_ancestors_and_descendants(self, acyclic_graph: Graph) -> None:
        assert acyclic_graph.ancestors("new_reference") == frozenset(
            {"source", "reference", "ultimate_source"},
        )
        assert acyclic_graph.descendants("ultimate_source") == frozenset(
            {"source", "reference", "ref_reference", "new_reference"},
        )
        assert acyclic_graph.ancestors("ultimate_source") == frozenset()

    def test_deep_chain_does_not_hit_recursion_limit(self) -> None:
        graph: BullDag[None, int] = BullDag()
        depth = 1500
        graph.extend_from_edges((Vertex(None, i), Vertex(None, i + 1)) for i in range(depth))
        assert graph.n_edges() == depth
        assert len(graph.trace(depth, Direction.SOURCE)) == depth + 1
        assert graph.topological_sort() == list(range(depth + 1))
        assert graph.add_edge((Vertex(None, depth), Vertex(None, 0))).rejected


class TestTopologicalSort:
    def test_topological_order(self, acyclic_graph: Graph) -> None:
        opt_1 = ["ultimate_source", "source", "reference", "new_reference", "ref_reference"]
        opt_2 = ["ultimate_source", "source", "reference", "ref_reference", "new_reference"]
        assert acyclic_graph.topological_sort() in (opt_1, opt_2)

    def test_sort_key_makes_order_deterministic(self, acyclic_graph: Graph) -> None:
        assert acyclic_graph.topological_sort(key=str) == [
            "ultimate_source",
            "source",
            "reference",
            "ref_reference",
            "new_reference",
        ]

    def test_independent_subgraphs(self) -> None:
        graph: Graph = BullDag()
        graph.extend_from_edges(
            [
                (Vertex(1, "a"), Vertex(2, "b")),
                (Vertex(3, "x"), Vertex(4, "y")),
            ],
        )
        graph.add_vertex(Vertex(5, "alone"))
        order = graph.topological_sort()
        assert_topological(graph, order)
        assert graph.topological_sort(key=str) == ["x", "y", "alone", "a", "b"]

    def test_sort_is_valid_after_rejections(self, vertices: dict[str, Vertex[int, str]]) -> None:
        v = vertices
        graph: Graph = BullDag()
        graph.extend_from_edges(
            [
                (v["v1"], v["v2"]),
                (v["v3"], v["v1"]),
                (v["v2"], v["v4"]),
                (v["v4"], v["v3"]),
                (v["v4"], v["v5"]),
            ],
        )
        assert_topological(graph, graph.topological_sort())

    def test_collapsed_graph_cannot_be_sorted(self) -> None:
        graph: Graph = BullDag()
        vertex = Vertex(1, "a")
        vertex.add_edge(Edge("b", "a"))
        vertex.add_edge(Edge("a", "b"))
        graph.add_vertex(vertex)
        with pytest.raises(WouldCycleError) as excinfo:
            graph.topological_sort()
        assert excinfo.value.reason is RejectionReason.COLLAPSED
        assert excinfo.value.edge is None


class TestCollapsedGraph:
    def test_edges_are_rejected_once_roots_are_gone(self) -> None:
        graph: Graph = BullDag()
        graph.add_edge((Vertex(1, "a"), Vertex(2, "b")))
        live = graph.get_vertex_mut("a")
        assert live is not None
        live.add_edge(Edge("b", "a"))
        graph.repair()
        assert graph.n_roots() == 0

        outcome = graph.add_edge((Vertex(3, "c"), Vertex(4, "d")))
        assert outcome.reason is RejectionReason.COLLAPSED
        assert len(graph) == 2

    def test_committed_edge_is_a_duplicate_once_roots_are_gone(self) -> None:
        graph: Graph = BullDag()
        a, b = Vertex(1, "a"), Vertex(2, "b")
        graph.add_edge((a, b))
        live = graph.get_vertex_mut("a")
        assert live is not None
        live.add_edge(Edge("b", "a"))
        graph.repair()

        outcome = graph.add_edge((a, b))
        assert outcome.status is EdgeStatus.DUPLICATE
        assert outcome.accepted
        assert Edge("a", "b") in graph.get_edges()


class TestValidateAndRepair:
    def test_valid_graph_has_no_errors(self, acyclic_graph: Graph) -> None:
        assert acyclic_graph.validate() == []

    def test_mutable_lookup_bypasses_bookkeeping(self, acyclic_graph: Graph) -> None:
        live = acyclic_graph.get_vertex_mut("new_reference")
        assert live is not None
        live.add_edge(Edge("new_reference", "ref_reference"))

        errors = acyclic_graph.validate()
        assert "Vertex 'new_reference' leaf membership does not match its references" in errors
        assert any("without a matching edge" in error for error in errors)

        acyclic_graph.repair()
        assert "new_reference" not in acyclic_graph.get_leaves()
        assert not any("membership" in error for error in acyclic_graph.validate())

    def test_get_vertex_mut_missing(self, acyclic_graph: Graph) -> None:
        assert acyclic_graph.get_vertex_mut("missing") is None

    def test_validate_reports_cycle(self) -> None:
        graph = BullDag.from_parts(
            vertices=[Vertex(1, "a"), Vertex(2, "b")],
            edges=[Edge("a", "b"), Edge("b", "a")],
            roots=[],
            leaves=[],
        )
        assert "Graph contains a cycle" in graph.validate()

    def test_validate_reports_missing_endpoint(self) -> None:
        graph = BullDag.from_parts(
            vertices=[Vertex(1, "a")],
            edges=[Edge("a", "ghost")],
            roots=["a"],
            leaves=[],
        )
        assert "Edge 'a' -> 'ghost' has missing endpoint 'ghost'" in graph.validate()
