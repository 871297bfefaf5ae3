import logging
from collections.abc import Hashable
from pathlib import Path
from typing import Annotated, Any, NoReturn

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape

from bulldag._enums import Direction
from bulldag._errors import GraphError
from bulldag._graph import BullDag, EdgeOutcome, SortKey, stable_key
from bulldag._io import export_to_json, export_to_toml, load_edge_file, load_snapshot

from .config import BulldagConfig, ConfigError, get_config
from .render import format_key, render_keys, render_outcomes, render_summary, render_validation

app = typer.Typer()

logger = logging.getLogger(__name__)
# Console for stderr (info/errors)
err_console = Console(stderr=True)
# Console for stdout (results)
out_console = Console()

EdgesArgument = Annotated[
    Path | None,
    typer.Argument(help="Path to a TOML edge file (defaults to [tool.bulldag].edges)"),
]


@app.callback()
def callback(
    *,
    verbose: bool = typer.Option(default=False, help="Enable verbose output"),
) -> None:
    """Bulldag CLI."""
    log_level = logging.DEBUG if verbose else logging.INFO

    # Configure rich logging handler to output to stderr
    logging.basicConfig(
        level=log_level,
        format="%(message)s",
        handlers=[
            RichHandler(
                console=err_console,
                show_time=False,
                show_path=verbose,
                rich_tracebacks=True,
            ),
        ],
    )


def _fail(error: Exception) -> NoReturn:
    err_console.print(f"[red]Error: {escape(str(error))}[/red]")
    raise typer.Exit(code=1)


def _load_config() -> BulldagConfig:
    try:
        return get_config()
    except ConfigError as e:
        _fail(e)


def _sort_key(config: BulldagConfig) -> SortKey | None:
    return stable_key if config.sort_keys else None


def _build_graph(edges: Path | None, config: BulldagConfig) -> tuple[BullDag[Any, Any], list[EdgeOutcome[Any]]]:
    """Load an edge file and submit every edge to a fresh graph."""
    if edges is None:
        if config.edges is None:
            _fail(ConfigError("No edge file given and [tool.bulldag].edges is not set"))
        edges = config.edges

    err_console.print(f"[cyan]Loading edges from:[/cyan] {edges}")
    try:
        pairs = load_edge_file(edges)
    except (GraphError, OSError) as e:
        _fail(e)

    graph: BullDag[Any, Any] = BullDag()
    outcomes = graph.extend_from_edges(pairs)
    logger.debug(f"Built {graph!r}")
    return graph, outcomes


def _parse_key(text: str, graph: BullDag[Any, Any]) -> Hashable:
    """Match a command-line key against the graph, trying it as an integer second."""
    if text in graph:
        return text
    try:
        number = int(text)
    except ValueError:
        return text
    return number if number in graph else text


@app.command()
def check(
    edges: EdgesArgument = None,
    *,
    strict: Annotated[
        bool,
        typer.Option("--strict", help="Exit with an error if any edge is rejected"),
    ] = False,
) -> None:
    """Insert every edge of an edge file and report which ones were accepted."""
    config = _load_config()
    graph, outcomes = _build_graph(edges, config)

    render_outcomes(outcomes, out_console)
    err_console.print()
    render_summary(graph, "Graph", err_console)

    rejected = [outcome for outcome in outcomes if outcome.rejected]
    if rejected:
        err_console.print(f"[yellow]⚠ {len(rejected)} edge(s) rejected[/yellow]")
        if strict:
            raise typer.Exit(code=1)
    else:
        err_console.print("[green]✓ All edges accepted[/green]")


@app.command()
def order(edges: EdgesArgument = None) -> None:
    """Print the vertices in topological order."""
    config = _load_config()
    graph, _ = _build_graph(edges, config)

    try:
        keys = graph.topological_sort(key=_sort_key(config))
    except GraphError as e:
        _fail(e)

    render_keys(keys, out_console)


@app.command()
def trace(
    key: Annotated[str, typer.Argument(help="Key of the vertex to trace from")],
    edges: EdgesArgument = None,
    *,
    direction: Annotated[
        Direction,
        typer.Option("-d", "--direction", help="'source' for ancestors, 'reference' for descendants"),
    ] = Direction.REFERENCE,
) -> None:
    """Print every vertex reachable from KEY, the vertex itself last."""
    config = _load_config()
    graph, _ = _build_graph(edges, config)
    target = _parse_key(key, graph)

    try:
        keys = graph.trace(target, direction)
    except GraphError as e:
        _fail(e)

    err_console.print(f"[cyan]Tracing {direction.value}s of:[/cyan] {format_key(target)}")
    render_keys(keys, out_console)


@app.command()
def export(
    edges: EdgesArgument = None,
    *,
    output: Annotated[
        Path | None,
        typer.Option("-o", "--output", help="Snapshot path, .json or .toml (defaults to [tool.bulldag].output)"),
    ] = None,
) -> None:
    """Build the graph and write a snapshot of it."""
    config = _load_config()
    if output is None:
        if config.output is None:
            _fail(ConfigError("No output path given and [tool.bulldag].output is not set"))
        output = config.output

    graph, _ = _build_graph(edges, config)

    err_console.print(f"[cyan]Writing snapshot to:[/cyan] {output}")
    try:
        match output.suffix.lower():
            case ".json":
                export_to_json(graph, output)
            case ".toml":
                export_to_toml(graph, output)
            case suffix:
                msg = f"Unsupported snapshot format '{suffix}'. Expected .json or .toml"
                raise GraphError(msg)
    except (GraphError, OSError) as e:
        _fail(e)

    err_console.print("[green]✓ Snapshot written[/green]")


@app.command()
def validate(
    snapshot: Annotated[Path, typer.Argument(help="Path to a .json or .toml snapshot")],
) -> None:
    """Check a snapshot for broken root/leaf bookkeeping, dangling edges and cycles."""
    try:
        graph = load_snapshot(snapshot).to_graph()
    except (GraphError, OSError) as e:
        _fail(e)

    render_summary(graph, snapshot.name, err_console)
    errors = graph.validate()
    render_validation(errors, out_console)
    if errors:
        raise typer.Exit(code=1)
