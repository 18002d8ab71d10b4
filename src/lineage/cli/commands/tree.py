"""lineage tree -- show the latest recorded agent tree."""

from __future__ import annotations

import click

from lineage.cli.formatting import format_tree


@click.command()
@click.pass_context
def tree(ctx: click.Context) -> None:
    """Show the agent tree from the newest record that carries one.

    Records only carry a tree when diagnostics run with include_tree=True.
    """
    from lineage.cli import _audit_records

    with _audit_records(ctx) as (records, console):
        latest = next((r for r in reversed(records) if r.tree_text is not None), None)
        if latest is None:
            console.print("[dim]No record carries a tree snapshot.[/dim]")
            return
        format_tree(latest, console)
