"""In-memory directed acyclic graph container."""

__all__ = [
    "BullDag",
    "Direction",
    "Edge",
    "EdgeModel",
    "EdgeOutcome",
    "EdgeStatus",
    "GraphError",
    "GraphErrorKind",
    "GraphSnapshot",
    "Index",
    "NoEdgesError",
    "NonExistentReferenceError",
    "NonExistentSourceError",
    "NonExistentVertexError",
    "RejectionReason",
    "Vertex",
    "VertexModel",
    "VertexPair",
    "WouldCycleError",
    "export_to_json",
    "export_to_toml",
    "load_edge_file",
    "load_snapshot",
    "validate_index",
]

from ._edge import Edge
from ._enums import Direction, EdgeStatus, GraphErrorKind, RejectionReason
from ._errors import (
    GraphError,
    NoEdgesError,
    NonExistentReferenceError,
    NonExistentSourceError,
    NonExistentVertexError,
    WouldCycleError,
)
from ._graph import BullDag, EdgeOutcome, VertexPair
from ._index import Index, validate_index
from ._io import (
    EdgeModel,
    GraphSnapshot,
    VertexModel,
    export_to_json,
    export_to_toml,
    load_edge_file,
    load_snapshot,
)
from ._vertex import Vertex
