"""Rich formatting helpers for the Lineage CLI.

Provides functions that format audit records for terminal display.
Rich auto-detects TTY and degrades gracefully when piped (no ANSI codes).
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.markup import escape
from rich.table import Table

if TYPE_CHECKING:
    from lineage.models.report import AuditRecord


def get_console() -> Console:
    """Create a Rich Console that auto-detects TTY for graceful pipe degradation."""
    return Console(stderr=False)


def format_records(records: list[AuditRecord], console: Console) -> None:
    """Display audit records as a compact table, one row per event."""
    if not records:
        console.print("[dim]No records.[/dim]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Time", style="dim")
    table.add_column("Event", style="cyan")
    table.add_column("Health")
    table.add_column("Failed")

    for record in records:
        failed = record.invariants.failed()
        health = "[green]ok[/green]" if not failed else f"[red]{len(failed)} failed[/red]"
        table.add_row(
            escape(record.timestamp),
            escape(record.type),
            health,
            escape(", ".join(failed)),
        )

    console.print(table)


def format_check_summary(
    total: int,
    failures: dict[str, int],
    console: Console,
) -> None:
    """Display per-invariant failure counts across an audit log."""
    console.print(f"Records: {total}")
    if not any(failures.values()):
        console.print("[green]All invariants held.[/green]")
        return

    table = Table(show_header=True, header_style="bold", box=None, pad_edge=False)
    table.add_column("Invariant")
    table.add_column("Failures", justify="right")
    for name, count in failures.items():
        style = "red" if count else "green"
        table.add_row(name, f"[{style}]{count}[/{style}]")
    console.print(table)


def format_tree(record: AuditRecord, console: Console) -> None:
    """Display the tree text carried by one audit record."""
    console.print(
        f"[bold]{escape(record.type)}[/bold] [dim]{escape(record.timestamp)}[/dim]"
    )
    console.print(escape(record.tree_text or ""), highlight=False)
    for violation in record.invariants.violations:
        console.print(f"[red]![/red] {escape(violation)}", highlight=False)


def format_error(message: str, console: Console) -> None:
    """Display an error message."""
    console.print(f"[red]Error:[/red] {message}", highlight=False)
