"""Rich rendering utilities for graph commands."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from bulldag._enums import EdgeStatus

if TYPE_CHECKING:
    from collections.abc import Hashable

    from rich.console import Console

    from bulldag._graph import BullDag, EdgeOutcome

_STATUS_STYLE = {
    EdgeStatus.ACCEPTED: "[green]✓ accepted[/green]",
    EdgeStatus.DUPLICATE: "[yellow]= duplicate[/yellow]",
    EdgeStatus.REJECTED: "[red]✗ rejected[/red]",
}


def format_key(key: Hashable) -> str:
    """Format a vertex key for display, escaping Rich markup."""
    return escape(key if isinstance(key, str) else repr(key))


def render_outcomes(outcomes: list[EdgeOutcome[Any]], console: Console) -> None:
    """Render one row per submitted edge.

    Args:
        outcomes: Outcomes in submission order.
        console: Rich Console to output to.

    """
    table = Table(show_header=True, header_style="bold cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Source", style="bold")
    table.add_column("Reference", style="bold")
    table.add_column("Result")

    for number, outcome in enumerate(outcomes, start=1):
        status = _STATUS_STYLE[outcome.status]
        if outcome.reason is not None:
            status += f" [dim]({outcome.reason.value})[/dim]"
        table.add_row(
            str(number),
            format_key(outcome.edge.source),
            format_key(outcome.edge.reference),
            status,
        )

    console.print(table)


def render_summary(graph: BullDag[Any, Any], title: str, console: Console) -> None:
    """Render vertex, edge, root and leaf counts in a panel."""
    table = Table(show_header=False, box=None)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right", style="bold")
    table.add_row("Vertices", str(len(graph)))
    table.add_row("Edges", str(graph.n_edges()))
    table.add_row("Roots", str(graph.n_roots()))
    table.add_row("Leaves", str(graph.n_leaves()))

    console.print(Panel(table, title=f"[bold]{escape(title)}[/bold]", border_style="cyan"))


def render_keys(keys: list[Hashable], console: Console) -> None:
    """Render keys one per line, numbered."""
    width = len(str(len(keys)))
    for number, key in enumerate(keys, start=1):
        console.print(f"[dim]{number:>{width}}.[/dim] {format_key(key)}")


def render_validation(errors: list[str], console: Console) -> None:
    """Render invariant violations, or a success line when there are none."""
    if not errors:
        console.print("[green]✓ Graph is consistent[/green]")
        return
    console.print(f"[red]✗ {len(errors)} problem(s) found:[/red]")
    for error in errors:
        console.print(f"  [red]•[/red] {escape(error)}")
