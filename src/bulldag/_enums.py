"""String enums used across the graph API."""

from enum import StrEnum
from typing import Self


class _DocStrEnum(StrEnum):
    """String enum whose members carry their own docstring."""

    def __new__(cls, value: str, doc: str = "") -> Self:
        obj = str.__new__(cls, value)
        obj._value_ = value
        obj.__doc__ = doc
        return obj


class Direction(_DocStrEnum):
    """Direction in which a trace walks the graph."""

    SOURCE = "source", "Follow edges backwards, towards ancestors."
    REFERENCE = "reference", "Follow edges forwards, towards descendants."


class EdgeStatus(_DocStrEnum):
    """What happened to a submitted edge."""

    ACCEPTED = "accepted", "The edge was new and has been committed."
    DUPLICATE = "duplicate", "The edge was already present; the graph is unchanged."
    REJECTED = "rejected", "The edge was dropped; the graph is unchanged."


class RejectionReason(_DocStrEnum):
    """Why a submitted edge was rejected."""

    WOULD_CYCLE = "would_cycle", "The edge would close a directed cycle."
    SELF_LOOP = "self_loop", "Source and reference are the same vertex."
    COLLAPSED = "collapsed", "The graph has no roots or no leaves left, so it can no longer be trusted to be acyclic."


class GraphErrorKind(_DocStrEnum):
    """Category of a graph error."""

    WOULD_CYCLE = "would_cycle", "An edge would close a cycle."
    NON_EXISTENT_SOURCE = "non_existent_source", "The source vertex is not in the graph."
    NON_EXISTENT_REFERENCE = "non_existent_reference", "The reference vertex is not in the graph."
    NON_EXISTENT_VERTEX = "non_existent_vertex", "The vertex is not in the graph."
    NO_EDGES = "no_edges", "No edges were supplied."
    OTHER = "other", "Any other failure."
