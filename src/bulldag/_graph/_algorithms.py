"""Traversal algorithms over edge sets."""

from collections import defaultdict
from collections.abc import Callable, Collection, Hashable, Iterable, Mapping
from typing import Any

from bulldag._edge import Edge
from bulldag._enums import Direction

type SortKey = Callable[[Any], Any]


def adjacency[T: Hashable](edges: Iterable[Edge[T]], direction: Direction) -> dict[T, list[T]]:
    """Index edges by the endpoint a walk in ``direction`` starts from.

    Args:
        edges: The edges to index.
        direction: ``Direction.REFERENCE`` maps each source to its references,
            ``Direction.SOURCE`` maps each reference to its sources.

    Returns:
        Mapping from key to its neighbors in the walk direction.

    """
    neighbors: defaultdict[T, list[T]] = defaultdict(list)
    for edge in edges:
        match direction:
            case Direction.REFERENCE:
                neighbors[edge.source].append(edge.reference)
            case Direction.SOURCE:
                neighbors[edge.reference].append(edge.source)
    return dict(neighbors)


def _ordered[T](items: Iterable[T], key: SortKey | None) -> Iterable[T]:
    return sorted(items, key=key) if key is not None else items


def _walk[T: Hashable](
    start: T,
    neighbors: Mapping[T, Collection[T]],
    visited: set[T],
    order: list[T],
    key: SortKey | None,
) -> None:
    if start in visited:
        return
    visited.add(start)
    stack = [(start, iter(_ordered(neighbors.get(start, ()), key)))]
    while stack:
        node, pending = stack[-1]
        for child in pending:
            if child not in visited:
                visited.add(child)
                stack.append((child, iter(_ordered(neighbors.get(child, ()), key))))
                break
        else:
            stack.pop()
            order.append(node)


def post_order[T: Hashable](
    start: T,
    neighbors: Mapping[T, Collection[T]],
    key: SortKey | None = None,
) -> list[T]:
    """Depth-first post-order walk from ``start``.

    Every node is recorded after all nodes reachable from it, so ``start``
    always comes last. Each node appears once. An explicit stack is used,
    so deep graphs do not hit the recursion limit.

    Args:
        start: Node to start from. It need not appear in ``neighbors``.
        neighbors: Mapping from node to the nodes the walk continues to.
        key: Optional sort key applied to each node's neighbors.

    Returns:
        Reachable nodes in post-order, ending with ``start``.

    Example:
        >>> post_order("a", {"a": ["b"], "b": ["c"]})
        ['c', 'b', 'a']

    """
    order: list[T] = []
    _walk(start, neighbors, set(), order, key)
    return order


def topological_sort[T: Hashable](
    roots: Iterable[T],
    successors: Mapping[T, Collection[T]],
    key: SortKey | None = None,
) -> list[T]:
    """Order nodes so every node precedes the nodes it points to.

    Runs a post-order walk from each root, sharing the visited set, and
    reverses the result.

    Args:
        roots: Nodes to start from, normally those with no predecessors.
        successors: Mapping from node to the nodes it points to.
        key: Optional sort key for roots and successors. Without it the
            order among independent nodes follows iteration order.

    Returns:
        Nodes reachable from ``roots`` in topological order.

    Example:
        >>> topological_sort(["a"], {"a": ["b", "c"], "b": ["c"]})
        ['a', 'b', 'c']

    """
    visited: set[T] = set()
    order: list[T] = []
    for root in _ordered(roots, key):
        _walk(root, successors, visited, order, key)
    order.reverse()
    return order


def has_cycle[T: Hashable](successors: Mapping[T, Collection[T]]) -> bool:
    """Whether any node can reach itself.

    Walks depth-first from every node, reachable from a root or not, keeping
    the nodes of the current path apart from those already finished. Meeting
    a node of the current path again closes a cycle.

    Example:
        >>> has_cycle({"a": ["b"], "b": ["a"]})
        True
        >>> has_cycle({"a": ["b", "c"], "b": ["c"]})
        False

    """
    finished: set[T] = set()
    for start in successors:
        if start in finished:
            continue
        on_path = {start}
        stack = [(start, iter(successors.get(start, ())))]
        while stack:
            node, pending = stack[-1]
            for child in pending:
                if child in on_path:
                    return True
                if child not in finished:
                    on_path.add(child)
                    stack.append((child, iter(successors.get(child, ()))))
                    break
            else:
                stack.pop()
                on_path.discard(node)
                finished.add(node)
    return False


def stable_key(value: Hashable) -> tuple[str, str]:
    """Sort key that orders arbitrary hashable values reproducibly.

    Values are grouped by type name and then ordered by ``repr``, so keys of
    mixed types never need to be comparable with each other.
    """
    return type(value).__name__, repr(value)
