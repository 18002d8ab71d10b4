"""lineage check -- summarize invariant failures across the audit log."""

from __future__ import annotations

import click

from lineage.cli.formatting import format_check_summary
from lineage.models.report import INVARIANT_NAMES


@click.command()
@click.option("--strict", is_flag=True, help="Exit with status 1 if any invariant ever failed.")
@click.pass_context
def check(ctx: click.Context, strict: bool) -> None:
    """Count how often each invariant failed."""
    from lineage.cli import _audit_records

    with _audit_records(ctx) as (records, console):
        failures = {name: 0 for name in INVARIANT_NAMES}
        for record in records:
            for name in record.invariants.failed():
                failures[name] += 1
        format_check_summary(len(records), failures, console)

    if strict and any(failures.values()):
        raise SystemExit(1)
