"""Lineage CLI -- inspect a workspace's tree diagnostics audit log.

This module is NEVER imported from lineage/__init__.py.
It is only loaded via the ``lineage`` entry point defined in pyproject.toml.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import TYPE_CHECKING

try:
    import click
except ImportError:
    raise ImportError(
        "CLI dependencies not installed. Install with: pip install agent-lineage[cli]"
    ) from None

from lineage.cli.formatting import format_error, get_console

if TYPE_CHECKING:
    from collections.abc import Iterator

    from rich.console import Console

    from lineage.models.report import AuditRecord


@click.group()
@click.option(
    "--workspace",
    default=".",
    envvar="LINEAGE_WORKSPACE",
    type=click.Path(file_okay=False),
    help="Workspace root containing the .logs directory.",
)
@click.option(
    "--log-file",
    default=None,
    type=click.Path(dir_okay=False),
    help="Explicit audit log path (overrides --workspace).",
)
@click.pass_context
def cli(ctx: click.Context, workspace: str, log_file: str | None) -> None:
    """Lineage: inspect agent tree diagnostics."""
    ctx.ensure_object(dict)
    ctx.obj["workspace"] = workspace
    ctx.obj["log_file"] = log_file


@contextmanager
def _audit_records(ctx: click.Context) -> Iterator[tuple[list[AuditRecord], Console]]:
    """Load the audit log selected on the command line and yield (records, console).

    Formats any failure (missing file, unreadable file) as a CLI error.
    """
    from lineage.diagnostics.audit import read_audit_log, resolve_log_path

    console = get_console()
    try:
        path = ctx.obj["log_file"] or resolve_log_path(ctx.obj["workspace"])
        records = read_audit_log(path)
        yield records, console
    except SystemExit:
        raise
    except Exception as e:
        format_error(str(e), console)
        raise SystemExit(1) from None


# Register subcommands after cli group is defined
from lineage.cli.commands.log import log  # noqa: E402
from lineage.cli.commands.check import check  # noqa: E402
from lineage.cli.commands.tree import tree  # noqa: E402

cli.add_command(log)
cli.add_command(check)
cli.add_command(tree)
