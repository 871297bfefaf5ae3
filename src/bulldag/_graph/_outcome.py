"""Result of submitting an edge to a graph."""

from collections.abc import Hashable
from dataclasses import dataclass

from bulldag._edge import Edge
from bulldag._enums import EdgeStatus, RejectionReason


@dataclass(frozen=True, slots=True)
class EdgeOutcome[Ix: Hashable]:
    """What a graph did with one submitted edge.

    Attributes:
        edge: The submitted edge.
        status: Whether it was committed, already present, or dropped.
        reason: Why it was dropped. ``None`` unless rejected.

    """

    edge: Edge[Ix]
    status: EdgeStatus
    reason: RejectionReason | None = None

    @property
    def accepted(self) -> bool:
        """Whether the edge is part of the graph after the submission."""
        return self.status is not EdgeStatus.REJECTED

    @property
    def rejected(self) -> bool:
        return self.status is EdgeStatus.REJECTED
