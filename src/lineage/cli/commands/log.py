"""lineage log -- show recent audit records."""

from __future__ import annotations

import click

from lineage.cli.formatting import format_records


@click.command()
@click.option("-n", "--limit", default=20, type=int, help="Maximum number of records to show.")
@click.option("--violations", "violations_only", is_flag=True, help="Only show records with failed invariants.")
@click.option("--type", "event_type", default=None, help="Only show records of this event type.")
@click.pass_context
def log(ctx: click.Context, limit: int, violations_only: bool, event_type: str | None) -> None:
    """Show the most recent audit records, oldest first."""
    from lineage.cli import _audit_records

    with _audit_records(ctx) as (records, console):
        if event_type:
            records = [r for r in records if r.type.casefold() == event_type.casefold()]
        if violations_only:
            records = [r for r in records if not r.invariants.ok]
        format_records(records[-limit:] if limit > 0 else records, console)
