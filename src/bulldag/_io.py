from __future__ import annotations

import json
import logging
import tomllib
from pathlib import Path
from typing import TYPE_CHECKING, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from ._edge import Edge
from ._errors import GraphError, NoEdgesError
from ._graph import BullDag, stable_key
from ._vertex import Vertex

if TYPE_CHECKING:
    from collections.abc import Hashable, Iterable

    from ._graph import VertexPair

logger = logging.getLogger(__name__)


# =============================================================================
# Snapshot Models
# =============================================================================


class EdgeModel(BaseModel):
    """Serialized form of an edge."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    source: Any
    reference: Any


class VertexModel(BaseModel):
    """Serialized form of a vertex."""

    model_config = ConfigDict(extra="forbid")

    index: Any
    data: Any = None
    sources: list[Any] = Field(default_factory=list)
    references: list[Any] = Field(default_factory=list)


class GraphSnapshot(BaseModel):
    """Plain structural dump of a graph.

    The snapshot records vertices, edges, roots and leaves exactly as they
    are, without interpretation. Restoring it with :meth:`to_graph` gives
    back the same state, consistent or not; call ``validate()`` on the
    result to check it. There is no versioning.
    """

    model_config = ConfigDict(extra="forbid")

    vertices: list[VertexModel] = Field(default_factory=list)
    edges: list[EdgeModel] = Field(default_factory=list)
    roots: list[Any] = Field(default_factory=list)
    leaves: list[Any] = Field(default_factory=list)

    @classmethod
    def from_graph(cls, graph: BullDag[Any, Any]) -> GraphSnapshot:
        vertices = [graph.require_vertex(index) for index in _sorted(graph)]
        return cls(
            vertices=[
                VertexModel(
                    index=vertex.get_index(),
                    data=vertex.get_data(),
                    sources=_sorted(vertex.get_sources()),
                    references=_sorted(vertex.get_references()),
                )
                for vertex in vertices
            ],
            edges=[
                EdgeModel(source=edge.source, reference=edge.reference)
                for edge in sorted(graph.get_edges(), key=lambda e: (stable_key(e.source), stable_key(e.reference)))
            ],
            roots=_sorted(graph.get_roots()),
            leaves=_sorted(graph.get_leaves()),
        )

    def to_graph(self) -> BullDag[Any, Any]:
        """Rebuild the dumped graph.

        Raises:
            GraphError: If a key cannot be used as a vertex index.

        """
        vertices: list[Vertex[Any, Any]] = []
        try:
            for entry in self.vertices:
                index = _freeze(entry.index)
                vertex: Vertex[Any, Any] = Vertex(entry.data, index)
                for source in entry.sources:
                    vertex.add_edge(Edge(_freeze(source), index))
                for reference in entry.references:
                    vertex.add_edge(Edge(index, _freeze(reference)))
                vertices.append(vertex)
            return BullDag.from_parts(
                vertices=vertices,
                edges=[Edge(_freeze(edge.source), _freeze(edge.reference)) for edge in self.edges],
                roots=[_freeze(root) for root in self.roots],
                leaves=[_freeze(leaf) for leaf in self.leaves],
            )
        except TypeError as e:
            msg = f"Invalid vertex index in snapshot: {e}"
            raise GraphError(msg) from e


def _freeze(value: Any) -> Any:
    """Turn lists back into tuples so keys read from JSON or TOML are hashable again."""
    if isinstance(value, list):
        return tuple(_freeze(item) for item in value)
    return value


def _sorted(values: Iterable[Hashable]) -> list[Any]:
    return sorted(values, key=stable_key)


def _strip_none(value: Any) -> Any:
    """Recursively drop ``None`` entries from dicts, which TOML cannot represent."""
    if isinstance(value, dict):
        return {k: _strip_none(v) for k, v in value.items() if v is not None}
    if isinstance(value, (list, tuple)):
        return [_strip_none(item) for item in value]
    return value


# =============================================================================
# Snapshot Export / Import
# =============================================================================


def export_to_json(graph: BullDag[Any, Any], output_path: Path, *, indent: int = 2) -> None:
    """Write a JSON snapshot of the graph."""
    snapshot = GraphSnapshot.from_graph(graph)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(snapshot.model_dump_json(indent=indent))
    logger.debug(f"Exported graph snapshot to {output_path}")


def export_to_toml(graph: BullDag[Any, Any], output_path: Path) -> None:
    """Write a TOML snapshot of the graph.

    ``None`` payloads and ``None`` table values are omitted and read back as
    ``None``. TOML has no null inside arrays, so a payload such as
    ``[1, None]`` cannot be written.

    Raises:
        GraphError: If a payload or key has no TOML representation. Nothing
            is written in that case.

    """
    snapshot = GraphSnapshot.from_graph(graph)
    try:
        content = tomli_w.dumps(_strip_none(snapshot.model_dump(mode="python")))
    except TypeError as e:
        msg = f"Cannot write graph snapshot as TOML: {e}"
        raise GraphError(msg) from e
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(content, encoding="utf-8")
    logger.debug(f"Exported graph snapshot to {output_path}")


def load_snapshot(input_path: Path) -> GraphSnapshot:
    """Load a snapshot written by :func:`export_to_json` or :func:`export_to_toml`.

    The format is chosen by file suffix.

    Raises:
        GraphError: If the file cannot be parsed or has an unknown suffix.

    """
    suffix = input_path.suffix.lower()
    try:
        match suffix:
            case ".json":
                snapshot = GraphSnapshot.model_validate(json.loads(input_path.read_text()))
            case ".toml":
                with input_path.open("rb") as f:
                    snapshot = GraphSnapshot.model_validate(tomllib.load(f))
            case _:
                msg = f"Unsupported snapshot format '{suffix}' for {input_path}. Expected .json or .toml"
                raise GraphError(msg)
    except (json.JSONDecodeError, tomllib.TOMLDecodeError, ValidationError) as e:
        msg = f"Invalid snapshot {input_path}: {e}"
        raise GraphError(msg) from e

    logger.debug(f"Loaded graph snapshot from {input_path}")
    return snapshot


# =============================================================================
# Edge Files
# =============================================================================


class _VertexEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    index: Any
    data: Any = None


class _EdgeFile(BaseModel):
    model_config = ConfigDict(extra="forbid")

    vertices: list[_VertexEntry] = Field(default_factory=list)
    edges: list[EdgeModel] = Field(default_factory=list)


def load_edge_file(input_path: Path) -> list[VertexPair[Any, Any]]:
    """Read ``(source, reference)`` vertex pairs from a TOML edge file.

    The file declares payloads under ``[[vertices]]`` and arcs under
    ``[[edges]]``. Keys used by an edge but never declared get a ``None``
    payload.

    Example file::

        [[vertices]]
        index = "a"
        data = 1

        [[edges]]
        source = "a"
        reference = "b"

    Raises:
        NoEdgesError: If the file declares no edges.
        GraphError: If the file is not valid TOML, has unknown fields,
            declares a vertex twice, or uses an unhashable key.

    """
    with input_path.open("rb") as f:
        try:
            data = tomllib.load(f)
        except tomllib.TOMLDecodeError as e:
            msg = f"Invalid TOML in {input_path}: {e}"
            raise GraphError(msg) from e

    try:
        edge_file = _EdgeFile.model_validate(data)
    except ValidationError as e:
        msg = f"Invalid edge file {input_path}: {e}"
        raise GraphError(msg) from e

    if not edge_file.edges:
        msg = f"No edges defined in {input_path}"
        raise NoEdgesError(msg)

    vertices: dict[Any, Vertex[Any, Any]] = {}

    def vertex_for(index: Any) -> Vertex[Any, Any]:
        if index not in vertices:
            vertices[index] = Vertex(None, index)
        return vertices[index]

    try:
        for entry in edge_file.vertices:
            index = _freeze(entry.index)
            if index in vertices:
                msg = f"Vertex {index!r} declared more than once in {input_path}"
                raise GraphError(msg)
            vertices[index] = Vertex(entry.data, index)
        pairs = [
            (vertex_for(_freeze(edge.source)), vertex_for(_freeze(edge.reference))) for edge in edge_file.edges
        ]
    except TypeError as e:
        msg = f"Invalid vertex index in {input_path}: {e}"
        raise GraphError(msg) from e

    logger.debug(f"Loaded {len(pairs)} edges over {len(vertices)} vertices from {input_path}")
    return pairs
