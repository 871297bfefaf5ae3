"""Graph module providing the DAG container.

This module contains:
- BullDag[T, Ix]: An insert-only directed acyclic graph with cycle-safe edge insertion
- EdgeOutcome: The result of submitting one edge
- topological_sort, post_order: Traversal algorithms over adjacency mappings
"""

from ._algorithms import SortKey, adjacency, has_cycle, post_order, stable_key, topological_sort
from ._dag import BullDag, VertexPair
from ._outcome import EdgeOutcome

__all__ = [
    "BullDag",
    "EdgeOutcome",
    "SortKey",
    "VertexPair",
    "adjacency",
    "has_cycle",
    "post_order",
    "stable_key",
    "topological_sort",
]
